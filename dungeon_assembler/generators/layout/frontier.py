"""
Open-door frontier for wave-based layout growth.

The frontier holds every unconnected door of committed rooms. Entries are
identified by their SocketHandle, never by position: two doors at the same
world position are still two entries.

Waves:
    wave = frontier.begin_wave()     # immutable snapshot
    ... consume() entries, seed() new rooms ...
    frontier.end_wave()              # doors seeded during the wave join the live set

Doors seeded while a wave is running go to a pending accumulator, so the
snapshot being iterated is never affected by growth inside the wave.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .directions import DoorDirection, Vec3
from .layout_types import RoomInstance, SocketHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenDoor:
    """Frontier entry: a door that can still take a new room.

    Position and direction are denormalised copies of the placed door's
    world values; equality and hashing use the handle only.
    """
    handle: SocketHandle
    world_position: Vec3 = field(compare=False)
    direction: DoorDirection = field(compare=False)
    door_id: str = field(default="", compare=False)


class DoorFrontier:
    """Set of open doors with wave snapshotting."""

    def __init__(self):
        self._live: Dict[SocketHandle, OpenDoor] = {}
        self._pending: Dict[SocketHandle, OpenDoor] = {}
        self._in_wave = False

    # -- membership --

    def __len__(self) -> int:
        return len(self._live) + len(self._pending)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __contains__(self, entry) -> bool:
        handle = entry.handle if isinstance(entry, OpenDoor) else entry
        return handle in self._live or handle in self._pending

    def __iter__(self) -> Iterator[OpenDoor]:
        return iter(self.entries())

    def entries(self) -> List[OpenDoor]:
        """All open doors, live first, in insertion order."""
        return list(self._live.values()) + list(self._pending.values())

    @property
    def in_wave(self) -> bool:
        return self._in_wave

    # -- mutation --

    def seed(self, room: RoomInstance, used: Optional[SocketHandle] = None) -> int:
        """
        Add every door of a newly committed room.

        Args:
            room: The room that was just committed
            used: Handle of the door that attached the room (not added)

        Returns:
            Number of doors added
        """
        target = self._pending if self._in_wave else self._live
        added = 0
        for door in room.doors:
            if door.handle == used:
                continue
            if door.handle in self:
                continue
            target[door.handle] = OpenDoor(
                handle=door.handle,
                world_position=door.world_position,
                direction=door.world_direction,
                door_id=door.id,
            )
            added += 1
        logger.debug("Seeded %d open door(s) from room %d (%s)", added, room.index, room.name)
        return added

    def snapshot_wave(self) -> Tuple[OpenDoor, ...]:
        """Current live frontier as a fixed tuple; the live set is untouched."""
        return tuple(self._live.values())

    def begin_wave(self) -> Tuple[OpenDoor, ...]:
        """Fold in anything pending, snapshot, and start routing seeds to pending."""
        if self._in_wave:
            raise RuntimeError("A wave is already in progress")
        self._merge_pending()
        self._in_wave = True
        return self.snapshot_wave()

    def end_wave(self) -> None:
        self._in_wave = False
        self._merge_pending()

    def consume(self, entry: OpenDoor) -> bool:
        """Remove an entry because a connection was formed through it."""
        removed = self._remove(entry)
        if removed:
            logger.debug("Consumed open door %s (%s) of room %d",
                         entry.door_id, entry.direction.value, entry.handle.room)
        return removed

    def drop(self, entry: OpenDoor) -> bool:
        """Remove an entry abandoned as a dead end."""
        removed = self._remove(entry)
        if removed:
            logger.debug("Dropped dead-end door %s (%s) of room %d",
                         entry.door_id, entry.direction.value, entry.handle.room)
        return removed

    def choose(self, rng: random.Random) -> Optional[OpenDoor]:
        """Draw one open door uniformly at random (None if empty)."""
        entries = self.entries()
        if not entries:
            return None
        return rng.choice(entries)

    # -- internals --

    def _remove(self, entry: OpenDoor) -> bool:
        handle = entry.handle
        if handle in self._live:
            del self._live[handle]
            return True
        if handle in self._pending:
            del self._pending[handle]
            return True
        return False

    def _merge_pending(self) -> None:
        for handle, entry in self._pending.items():
            self._live.setdefault(handle, entry)
        self._pending.clear()
