"""
Wave-based layout engine.

Grows a map outward from a start room by attaching rooms to open doors:

1. The start template is committed at the origin with no rotation and its
   doors seed the frontier.
2. Each wave snapshots the frontier. For every open door in the snapshot a
   candidate template is chosen (the destination is forced when only its slot
   is left), and its doors are tried under the four quarter-turn rotations in
   random order. The first alignment whose bounds clear every committed room
   is committed; both doors are marked used and the new room's other doors
   join the next wave.
3. Growth stops when the target count is reached, the frontier is empty, or a
   whole wave places nothing.
4. If the frontier ran out, or a stalled wave left only the destination's slot,
   the destination is forced onto an open door without rotation search as a
   last resort. With no open door left the session ends partially successful.
5. Doors that never connected are retired by the cleanup pass.

Every rejection is non-fatal. The session always returns what it committed,
with a terminal status and diagnostic issues.

All random draws come from one random.Random owned by the session, so two
sessions with the same catalog, settings and seed build identical maps.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from dungeon_assembler.validation.core import Severity, ValidationIssue, ValidationResult, ValidationStage
from dungeon_assembler.validation.spatial_validation import is_overlapping

from .cleanup import remove_unused_doors
from .directions import ROTATIONS, are_opposite, direction_vector, rotate_vector
from .frontier import DoorFrontier, OpenDoor
from .host import NULL_HOST, HostAdapter
from .layout_types import Connection, RoomInstance, RoomTemplate

if TYPE_CHECKING:
    from dungeon_assembler.generators.templates.catalog import RoomCatalog

logger = logging.getLogger(__name__)

# Distinct cardinal unit vectors are sqrt(2) apart; a tolerance at or above
# this would accept doors that are not facing each other.
MAX_SNAP_TOLERANCE = math.sqrt(2.0)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class LayoutError(Exception):
    pass


class LayoutConfigError(LayoutError):
    pass


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SessionState(Enum):
    EMPTY = "empty"
    SEEDED = "seeded"
    GROWING = "growing"
    TERMINATED = "terminated"


class GenerationStatus(Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    STALLED = "stalled"


# ---------------------------------------------------------------------------
# Settings / Result dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LayoutSettings:
    # Rooms to place, start and destination included
    total_rooms: int = 10

    # Max distance between a rotated door direction and the required one
    door_snap_tolerance: float = 0.2

    # Seeding for reproducible generation
    seed: Optional[int] = None  # None = random seed, otherwise deterministic

    # Only try candidate doors whose unrotated direction already opposes the open door
    match_local_direction: bool = False

    def validate(self) -> List[str]:
        errors = []
        if isinstance(self.total_rooms, bool) or not isinstance(self.total_rooms, int):
            errors.append(f"total_rooms must be an integer, got {self.total_rooms!r}")
        elif self.total_rooms < 2:
            errors.append("total_rooms must be at least 2 (start and destination)")
        tol = self.door_snap_tolerance
        if not isinstance(tol, (int, float)) or not (0.0 < tol < MAX_SNAP_TOLERANCE):
            errors.append(f"door_snap_tolerance must be in (0, {MAX_SNAP_TOLERANCE:.4f}), got {tol!r}")
        return errors


@dataclass
class GenerationResult:
    status: GenerationStatus
    rooms: List[RoomInstance] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    seed: Optional[int] = None
    total_rooms: int = 0
    door_snap_tolerance: float = 0.2
    issues: List[ValidationIssue] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status == GenerationStatus.SUCCESS

    @property
    def room_count(self) -> int:
        return len(self.rooms)

    @property
    def start_room(self) -> Optional[RoomInstance]:
        return self.rooms[0] if self.rooms else None

    @property
    def destination_room(self) -> Optional[RoomInstance]:
        for room in self.rooms:
            if room.template.is_destination:
                return room
        return None

    @property
    def destination_placed(self) -> bool:
        return self.destination_room is not None

    @property
    def diagnostics(self) -> ValidationResult:
        """Generation issues as a validation result (FAIL means the map is incomplete)."""
        return ValidationResult(issues=list(self.issues), stage=ValidationStage.GENERATION)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'seed': self.seed,
            'total_rooms': self.total_rooms,
            'door_snap_tolerance': self.door_snap_tolerance,
            'rooms': [room.to_dict() for room in self.rooms],
            'connections': [c.to_dict() for c in self.connections],
            'issues': [i.to_dict() for i in self.issues],
            'metrics': dict(self.metrics),
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class LayoutEngine:
    """One generation session over a room catalog.

    Args:
        catalog: Templates to draw from
        settings: Layout settings (defaults if omitted)
        rng: Random source; when given it is the only source of randomness and
            settings.seed is only recorded on the result
        host: Runtime adapter notified of spawned rooms and retired doors
    """

    def __init__(self, catalog: 'RoomCatalog', settings: Optional[LayoutSettings] = None,
                 rng: Optional[random.Random] = None, host: Optional[HostAdapter] = None):
        self.catalog = catalog
        self.settings = settings or LayoutSettings()
        self._validate_settings()

        seed = self.settings.seed
        if rng is None:
            if seed is None:
                seed = random.randint(0, 2**31 - 1)
            rng = random.Random(seed)
        self.seed = seed
        self.rng = rng
        self.host = host or NULL_HOST

        self.state = SessionState.EMPTY
        self.rooms: List[RoomInstance] = []
        self.connections: List[Connection] = []
        self.frontier = DoorFrontier()
        self.destination_placed = False
        self.issues: List[ValidationIssue] = []
        self.metrics: Dict[str, Any] = {
            'waves': 0,
            'trials': 0,
            'rejected_overlap': 0,
            'misaligned': 0,
            'doors_without_candidate': 0,
            'dead_ends': 0,
            'doors_removed': 0,
        }
        self.wave_callback: Optional[Callable[[int, int, int], None]] = None

    # -- helpers --

    def set_wave_callback(self, callback: Callable[[int, int, int], None]):
        """Call `callback(wave, committed, target)` after every wave."""
        self.wave_callback = callback

    @property
    def target(self) -> int:
        return self.settings.total_rooms

    def _validate_settings(self):
        errors = self.settings.validate()
        if self.catalog is None:
            errors.append("a room catalog is required")
        else:
            errors.extend(self.catalog.check())
        if errors:
            raise LayoutConfigError(f"Invalid layout settings: {'; '.join(errors)}")

    def _issue(self, severity: Severity, code: str, message: str, **context) -> ValidationIssue:
        issue = ValidationIssue(severity=severity, code=code, message=message, **context)
        self.issues.append(issue)
        if severity == Severity.FAIL:
            logger.error(str(issue))
        elif severity == Severity.WARN:
            logger.warning(str(issue))
        else:
            logger.info(str(issue))
        return issue

    def _commit(self, room: RoomInstance):
        room.handle = self.host.spawn(room.template, room.position, room.rotation)
        self.rooms.append(room)
        if room.template is self.catalog.destination:
            self.destination_placed = True
        logger.debug("Committed room %d: %s at %s rotation=%d",
                     room.index, room.name, room.position, room.rotation)

    # -- stages --

    def _place_start(self):
        room = RoomInstance.place(0, self.catalog.start, (0.0, 0.0, 0.0), 0)
        self._commit(room)
        self.frontier.seed(room)
        self.state = SessionState.SEEDED

    def _choose_template(self) -> Optional[RoomTemplate]:
        if not self.destination_placed and len(self.rooms) == self.target - 1:
            return self.catalog.destination
        if not self.catalog.rooms:
            return None
        return self.rng.choice(self.catalog.rooms)

    def _candidate_doors(self, template: RoomTemplate, open_door: OpenDoor) -> Sequence[int]:
        indices = range(len(template.doors))
        if self.settings.match_local_direction:
            return [i for i in indices
                    if are_opposite(template.doors[i].direction, open_door.direction)]
        return list(indices)

    def _try_attach(self, open_door: OpenDoor, template: RoomTemplate) -> bool:
        """Search door/rotation pairs of `template` for a valid fit on `open_door`."""
        required = -direction_vector(open_door.direction)
        anchor = np.asarray(open_door.world_position, dtype=float)
        tolerance = self.settings.door_snap_tolerance

        for door_index in self._candidate_doors(template, open_door):
            socket = template.doors[door_index]
            local_dir = direction_vector(socket.direction)
            for rotation in self.rng.sample(ROTATIONS, len(ROTATIONS)):
                rotated_dir = rotate_vector(local_dir, rotation)
                if np.linalg.norm(rotated_dir - required) > tolerance:
                    self.metrics['misaligned'] += 1
                    continue

                position = anchor - rotate_vector(socket.position, rotation)
                bounds = template.world_bounds(position, rotation)
                self.metrics['trials'] += 1
                if is_overlapping(bounds, (room.bounds for room in self.rooms)):
                    self.metrics['rejected_overlap'] += 1
                    logger.debug("Rejected %s via door %s at rotation %d: overlap",
                                 template.name, socket.id, rotation)
                    continue

                self._attach(template, position, rotation, door_index, open_door)
                return True
        return False

    def _attach(self, template: RoomTemplate, position, rotation: int, door_index: int,
                open_door: OpenDoor):
        room = RoomInstance.place(len(self.rooms), template, position, rotation)
        new_door = room.doors[door_index]
        parent_door = self.rooms[open_door.handle.room].doors[open_door.handle.door]

        parent_door.mark_used()
        new_door.mark_used()
        self._commit(room)
        self.connections.append(Connection(
            room_a=open_door.handle.room,
            door_a=parent_door.id,
            room_b=room.index,
            door_b=new_door.id,
        ))
        self.frontier.seed(room, used=new_door.handle)

    def _run_wave(self) -> int:
        wave = self.frontier.begin_wave()
        self.metrics['waves'] += 1
        wave_number = self.metrics['waves']
        placed = 0
        tried = 0
        try:
            for open_door in wave:
                if len(self.rooms) >= self.target:
                    break
                tried += 1
                template = self._choose_template()
                if template is None:
                    self.metrics['doors_without_candidate'] += 1
                    logger.debug("No candidate template for door %s of room %d",
                                 open_door.door_id, open_door.handle.room)
                    continue
                if self._try_attach(open_door, template):
                    self.frontier.consume(open_door)
                    placed += 1
        finally:
            self.frontier.end_wave()

        logger.info("Wave %d: %d door(s) tried, %d room(s) placed, %d/%d committed, %d open",
                    wave_number, tried, placed, len(self.rooms), self.target, len(self.frontier))
        if self.wave_callback:
            try:
                self.wave_callback(wave_number, len(self.rooms), self.target)
            except Exception:
                logger.exception("Wave callback failed")
        return placed

    def _force_destination(self) -> GenerationStatus:
        """Place the destination on any open door, unrotated, as a last resort."""
        template = self.catalog.destination
        open_door = self.frontier.choose(self.rng)
        if open_door is None:
            self._issue(Severity.FAIL, "GEN-004",
                        "No open doors remain for the destination fallback",
                        template=template.name,
                        remediation="Use templates with more doors or a larger total_rooms")
            return GenerationStatus.PARTIAL_SUCCESS

        position = np.asarray(open_door.world_position, dtype=float)
        bounds = template.world_bounds(position, 0)
        self.metrics['trials'] += 1
        if is_overlapping(bounds, (room.bounds for room in self.rooms)):
            self.metrics['rejected_overlap'] += 1
            self._issue(Severity.FAIL, "GEN-003",
                        f"Destination '{template.name}' overlaps existing rooms at the fallback door",
                        room=open_door.handle.room, door=open_door.door_id, template=template.name,
                        remediation="Give the destination a smaller footprint or retry with another seed")
            return GenerationStatus.PARTIAL_SUCCESS

        room = RoomInstance.place(len(self.rooms), template, position, 0)
        parent_door = self.rooms[open_door.handle.room].doors[open_door.handle.door]
        parent_door.mark_used()
        self._commit(room)
        self.connections.append(Connection(
            room_a=open_door.handle.room,
            door_a=parent_door.id,
            room_b=room.index,
            door_b=None,
            forced=True,
        ))
        self.frontier.consume(open_door)
        self.frontier.seed(room)
        self._issue(Severity.INFO, "GEN-005",
                    f"Destination '{template.name}' placed by forced fallback",
                    room=room.index, door=open_door.door_id, template=template.name)
        return GenerationStatus.SUCCESS

    def _finalize(self, stalled: bool) -> GenerationStatus:
        count = len(self.rooms)
        if stalled:
            self._issue(Severity.WARN, "GEN-001",
                        f"Growth stalled: a full wave placed no rooms ({count}/{self.target})",
                        remediation="Add templates whose doors and footprints fit together")
        elif count < self.target:
            self._issue(Severity.WARN, "GEN-002",
                        f"Open doors exhausted before reaching the target ({count}/{self.target})",
                        remediation="Add templates with more doors")

        if count >= self.target:
            status = GenerationStatus.SUCCESS
        elif self.destination_placed:
            status = GenerationStatus.STALLED
        elif not stalled or count == self.target - 1:
            # An exhausted frontier always ends in the fallback; a stalled wave
            # only when the destination slot is the one left
            status = self._force_destination()
        else:
            status = GenerationStatus.STALLED
            self._issue(Severity.FAIL, "GEN-006",
                        f"Destination '{self.catalog.destination.name}' was never placed",
                        template=self.catalog.destination.name)

        for entry in self.frontier.entries():
            if self.frontier.drop(entry):
                self.metrics['dead_ends'] += 1
        return status

    # -- main entry --

    def generate(self) -> GenerationResult:
        """Run the session to a terminal state and return the committed layout."""
        if self.state is not SessionState.EMPTY:
            raise LayoutError("generate() can only run once per session")

        logger.info("Generating layout from catalog '%s': %d rooms, seed %s",
                    self.catalog.name, self.target, self.seed)

        self._place_start()
        stalled = False
        while len(self.rooms) < self.target and self.frontier:
            self.state = SessionState.GROWING
            if self._run_wave() == 0:
                stalled = True
                break

        status = self._finalize(stalled)
        self.state = SessionState.TERMINATED
        self.metrics['doors_removed'] = remove_unused_doors(self.rooms, self.host)

        logger.info("Layout %s: %d/%d rooms, %d connection(s), destination %s",
                    status.value, len(self.rooms), self.target, len(self.connections),
                    "placed" if self.destination_placed else "missing")

        return GenerationResult(
            status=status,
            rooms=list(self.rooms),
            connections=list(self.connections),
            seed=self.seed,
            total_rooms=self.target,
            door_snap_tolerance=self.settings.door_snap_tolerance,
            issues=list(self.issues),
            metrics=dict(self.metrics),
        )

    def discard(self) -> int:
        """Release every committed room through the host, newest first.

        Returns:
            Number of rooms released
        """
        released = 0
        for room in reversed(self.rooms):
            self.host.despawn(room.handle)
            room.handle = None
            released += 1
        self.rooms.clear()
        self.connections.clear()
        self.frontier = DoorFrontier()
        self.destination_placed = False
        self.state = SessionState.TERMINATED
        logger.info("Discarded session: %d room(s) released", released)
        return released


def generate_layout(catalog: 'RoomCatalog', total_rooms: int = 10, seed: Optional[int] = None,
                    door_snap_tolerance: float = 0.2, host: Optional[HostAdapter] = None) -> GenerationResult:
    """Convenience wrapper: build a LayoutEngine and run it once."""
    settings = LayoutSettings(total_rooms=total_rooms, door_snap_tolerance=door_snap_tolerance, seed=seed)
    return LayoutEngine(catalog, settings, host=host).generate()
