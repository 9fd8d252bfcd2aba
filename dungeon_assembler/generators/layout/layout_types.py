"""
Data model for modular room layouts.

Defines the core data structures used by the layout engine:
- DoorSocket: Connection point authored on a room template (local space)
- RoomTemplate: Immutable authored room with door sockets and a bounding volume
- SocketHandle: (room index, door index) address of a placed door
- PlacedDoor: A door socket on a placed room, with world position and direction
- RoomInstance: A template placed at a world position and rotation
- Connection: Link between two doors of two different rooms

Rooms live in an arena (a list ordered by commit time) owned by the layout
session; doors are addressed by index handles into it rather than by object
references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from dungeon_assembler.validation.spatial_validation import AABB

from .directions import (
    ROTATIONS,
    DoorDirection,
    Vec3,
    as_vec3,
    closest_direction,
    direction_vector,
    rotate_vector,
)


class RoomRole(Enum):
    """Role a template plays in a catalog."""
    NORMAL = "normal"
    START = "start"
    DESTINATION = "destination"


@dataclass(frozen=True)
class DoorSocket:
    """Door connection point on a template (local space)."""
    id: str                           # Unique within its template
    position: Vec3                    # Offset from the room origin
    direction: DoorDirection          # Which way the door faces

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'position': list(self.position),
            'direction': self.direction.value,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'DoorSocket':
        return DoorSocket(
            id=str(data['id']),
            position=as_vec3(data['position']),
            direction=DoorDirection(data['direction']),
        )


@dataclass(eq=False)
class RoomTemplate:
    """Authored room definition.

    Templates compare by identity: two templates with the same content are
    still different catalog entries.
    """
    name: str
    doors: Tuple[DoorSocket, ...] = ()
    bounds: Optional[AABB] = None     # Local bounding volume (None = malformed asset)
    role: RoomRole = RoomRole.NORMAL

    def __post_init__(self):
        self.doors = tuple(self.doors)

    @property
    def is_start(self) -> bool:
        return self.role == RoomRole.START

    @property
    def is_destination(self) -> bool:
        return self.role == RoomRole.DESTINATION

    def world_bounds(self, position: Sequence[float], rotation: int) -> Optional[AABB]:
        """Bounds of this template placed at position with rotation.

        Quarter turns keep the box axis-aligned, so rotating its two corners
        and re-taking min/max is exact.
        """
        if self.bounds is None:
            return None
        lo, hi = self.bounds.corners
        rotated = [rotate_vector(lo, rotation), rotate_vector(hi, rotation)]
        return AABB.from_points(rotated).translated(position)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'role': self.role.value,
            'doors': [d.to_dict() for d in self.doors],
            'bounds': self.bounds.to_dict() if self.bounds else None,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'RoomTemplate':
        bounds = data.get('bounds')
        return RoomTemplate(
            name=str(data['name']),
            doors=tuple(DoorSocket.from_dict(d) for d in data.get('doors', [])),
            bounds=AABB.from_dict(bounds) if bounds else None,
            role=RoomRole(data.get('role', RoomRole.NORMAL.value)),
        )


class SocketHandle(NamedTuple):
    """Address of a placed door: index of its room and of the door in the room."""
    room: int
    door: int


@dataclass(eq=False)
class PlacedDoor:
    """A door socket on a placed room.

    World position and direction are computed once, when the room is placed.
    The used flag is monotonic: it can be set, never cleared.
    """
    handle: SocketHandle
    socket: DoorSocket
    world_position: Vec3
    world_direction: DoorDirection
    _used: bool = field(default=False, repr=False)
    active: bool = True

    @property
    def id(self) -> str:
        return self.socket.id

    @property
    def used(self) -> bool:
        return self._used

    def mark_used(self) -> None:
        self._used = True

    def deactivate(self) -> bool:
        """Deactivate an unused door. Returns True if this call changed it."""
        if self._used or not self.active:
            return False
        self.active = False
        return True


@dataclass(eq=False)
class RoomInstance:
    """A template placed in the world."""
    index: int                              # Position in the session's commit order
    template: RoomTemplate
    position: Vec3
    rotation: int = 0                       # 0, 90, 180, 270 degrees
    bounds: Optional[AABB] = None           # World-space bounding volume
    doors: List[PlacedDoor] = field(default_factory=list)
    handle: Any = field(default=None, repr=False)   # Host runtime handle

    @staticmethod
    def place(index: int, template: RoomTemplate, position: Sequence[float],
              rotation: int = 0) -> 'RoomInstance':
        """Factory method placing a template and deriving its world-space doors."""
        if rotation not in ROTATIONS:
            raise ValueError(f"Illegal room rotation {rotation}; expected one of {ROTATIONS}")
        origin = as_vec3(position)
        room = RoomInstance(
            index=index,
            template=template,
            position=origin,
            rotation=rotation,
            bounds=template.world_bounds(origin, rotation),
        )
        for door_index, socket in enumerate(template.doors):
            world_pos = rotate_vector(socket.position, rotation) + origin
            world_dir = closest_direction(rotate_vector(direction_vector(socket.direction), rotation))
            room.doors.append(PlacedDoor(
                handle=SocketHandle(index, door_index),
                socket=socket,
                world_position=as_vec3(world_pos),
                world_direction=world_dir,
            ))
        return room

    @property
    def name(self) -> str:
        return self.template.name

    def door(self, door_id: str) -> Optional[PlacedDoor]:
        for placed in self.doors:
            if placed.id == door_id:
                return placed
        return None

    def unused_doors(self) -> List[PlacedDoor]:
        return [d for d in self.doors if not d.used]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'template': self.template.name,
            'role': self.template.role.value,
            'position': list(self.position),
            'rotation': self.rotation,
            'bounds': self.bounds.to_dict() if self.bounds else None,
            'doors': [
                {
                    'id': d.id,
                    'position': list(d.world_position),
                    'direction': d.world_direction.value,
                    'used': d.used,
                    'active': d.active,
                }
                for d in self.doors
            ],
        }


@dataclass
class Connection:
    """Connection between two doors.

    A connection links door_a on room_a (the already-placed side) to door_b on
    room_b (the room attached through it). A forced connection is made by the
    destination fallback: only door_a was consumed and door_b is None.
    """
    room_a: int
    door_a: str
    room_b: int
    door_b: Optional[str]
    forced: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'room_a': self.room_a,
            'door_a': self.door_a,
            'room_b': self.room_b,
            'door_b': self.door_b,
            'forced': self.forced,
        }
