"""
Post-generation audit of a finished layout.

Checks a GenerationResult against the structural guarantees of the engine:

- LAYOUT-001: No two committed rooms overlap
- LAYOUT-002: Connections are symmetric and every used door is accounted for
- LAYOUT-003: The start room sits at the origin without rotation
- LAYOUT-004: At most one destination room
- LAYOUT-005: Room count does not exceed the requested total
- LAYOUT-006: Every rotation is a legal quarter turn
- LAYOUT-007: No used door was deactivated by cleanup
- LAYOUT-008: Every room is reachable from the start room
"""

import logging
from collections import deque
from itertools import combinations
from typing import Dict, List, Set, Tuple

import numpy as np

from dungeon_assembler.validation.core import (
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationStage,
)

from .directions import ROTATIONS, are_opposite
from .layout_engine import GenerationResult, GenerationStatus

logger = logging.getLogger(__name__)


class LayoutValidator:
    """Validator for generated layouts."""

    def validate(self, result: GenerationResult) -> ValidationResult:
        """Run all audit checks on a generation result."""
        audit = ValidationResult(stage=ValidationStage.AUDIT)

        if not result.rooms:
            audit.add_issue(ValidationIssue(
                severity=Severity.FAIL,
                code="LAYOUT-003",
                message="Layout has no rooms; the start room is always committed",
            ))
            return audit

        for check in (
            self._check_overlaps,
            self._check_connections,
            self._check_start,
            self._check_destination,
            self._check_count,
            self._check_rotations,
            self._check_door_states,
            self._check_connectivity,
        ):
            for issue in check(result):
                audit.add_issue(issue)

        if audit.failed:
            logger.warning("Layout audit failed: %d error(s), %d warning(s)",
                           len(audit.errors), len(audit.warnings))
        else:
            logger.info("Layout audit passed (%d warning(s))", len(audit.warnings))
        return audit

    def _check_overlaps(self, result: GenerationResult) -> List[ValidationIssue]:
        issues = []
        for a, b in combinations(result.rooms, 2):
            if a.bounds is None or b.bounds is None:
                continue
            if a.bounds.intersects(b.bounds):
                issues.append(ValidationIssue(
                    severity=Severity.FAIL,
                    code="LAYOUT-001",
                    message=f"Rooms {a.index} ({a.name}) and {b.index} ({b.name}) overlap "
                            f"(volume {a.bounds.intersection_volume(b.bounds):.3f})",
                    room=b.index,
                    template=b.name,
                ))
        for room in result.rooms:
            if room.bounds is None:
                issues.append(ValidationIssue(
                    severity=Severity.WARN,
                    code="LAYOUT-001",
                    message=f"Room {room.index} ({room.name}) has no bounding volume",
                    room=room.index,
                    template=room.name,
                ))
        return issues

    def _check_connections(self, result: GenerationResult) -> List[ValidationIssue]:
        issues = []
        rooms = result.rooms
        tolerance = result.door_snap_tolerance
        endpoints: Dict[Tuple[int, str], int] = {}

        def door_of(room_index, door_id):
            if not (0 <= room_index < len(rooms)):
                return None
            return rooms[room_index].door(door_id)

        for conn in result.connections:
            door_a = door_of(conn.room_a, conn.door_a)
            if door_a is None:
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-002",
                    message=f"Connection references unknown door {conn.door_a} on room {conn.room_a}",
                    room=conn.room_a, door=conn.door_a,
                ))
                continue
            if not door_a.used:
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-002",
                    message=f"Connected door {conn.door_a} on room {conn.room_a} is not marked used",
                    room=conn.room_a, door=conn.door_a,
                ))
            endpoints[(conn.room_a, conn.door_a)] = endpoints.get((conn.room_a, conn.door_a), 0) + 1

            if conn.forced:
                if not (0 <= conn.room_b < len(rooms)):
                    issues.append(ValidationIssue(
                        severity=Severity.FAIL, code="LAYOUT-002",
                        message=f"Forced connection references unknown room {conn.room_b}",
                        room=conn.room_b,
                    ))
                continue

            door_b = door_of(conn.room_b, conn.door_b)
            if door_b is None:
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-002",
                    message=f"Connection references unknown door {conn.door_b} on room {conn.room_b}",
                    room=conn.room_b, door=conn.door_b,
                ))
                continue
            if not door_b.used:
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-002",
                    message=f"Connected door {conn.door_b} on room {conn.room_b} is not marked used",
                    room=conn.room_b, door=conn.door_b,
                ))
            endpoints[(conn.room_b, conn.door_b)] = endpoints.get((conn.room_b, conn.door_b), 0) + 1

            gap = float(np.linalg.norm(np.subtract(door_a.world_position, door_b.world_position)))
            if gap > tolerance:
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-002",
                    message=f"Doors {conn.door_a}/{conn.door_b} of rooms {conn.room_a}/{conn.room_b} "
                            f"are {gap:.3f} apart",
                    room=conn.room_b, door=conn.door_b,
                ))
            if not are_opposite(door_a.world_direction, door_b.world_direction):
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-002",
                    message=f"Doors {conn.door_a}/{conn.door_b} of rooms {conn.room_a}/{conn.room_b} "
                            f"face {door_a.world_direction.value}/{door_b.world_direction.value}",
                    room=conn.room_b, door=conn.door_b,
                ))

        for (room_index, door_id), count in endpoints.items():
            if count > 1:
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-002",
                    message=f"Door {door_id} on room {room_index} is used by {count} connections",
                    room=room_index, door=door_id,
                ))

        for room in rooms:
            for door in room.doors:
                if door.used and (room.index, door.id) not in endpoints:
                    issues.append(ValidationIssue(
                        severity=Severity.FAIL, code="LAYOUT-002",
                        message=f"Door {door.id} on room {room.index} is used but has no connection",
                        room=room.index, door=door.id,
                    ))
        return issues

    def _check_start(self, result: GenerationResult) -> List[ValidationIssue]:
        start = result.rooms[0]
        issues = []
        if not start.template.is_start:
            issues.append(ValidationIssue(
                severity=Severity.FAIL, code="LAYOUT-003",
                message=f"First room is '{start.name}', not a start template",
                room=0, template=start.name,
            ))
        if start.position != (0.0, 0.0, 0.0) or start.rotation != 0:
            issues.append(ValidationIssue(
                severity=Severity.FAIL, code="LAYOUT-003",
                message=f"Start room is at {start.position} rotation {start.rotation}, "
                        f"expected the origin without rotation",
                room=0, template=start.name,
            ))
        return issues

    def _check_destination(self, result: GenerationResult) -> List[ValidationIssue]:
        destinations = [r for r in result.rooms if r.template.is_destination]
        if len(destinations) > 1:
            return [ValidationIssue(
                severity=Severity.FAIL, code="LAYOUT-004",
                message=f"{len(destinations)} destination rooms placed: "
                        f"{', '.join(str(r.index) for r in destinations)}",
                room=destinations[1].index, template=destinations[1].name,
            )]
        if not destinations:
            severity = Severity.FAIL if result.status == GenerationStatus.SUCCESS else Severity.WARN
            return [ValidationIssue(
                severity=severity, code="LAYOUT-004",
                message="No destination room was placed",
                remediation="Retry with another seed or a larger room pool",
            )]
        return []

    def _check_count(self, result: GenerationResult) -> List[ValidationIssue]:
        issues = []
        if result.total_rooms and len(result.rooms) > result.total_rooms:
            issues.append(ValidationIssue(
                severity=Severity.FAIL, code="LAYOUT-005",
                message=f"{len(result.rooms)} rooms placed, more than the requested {result.total_rooms}",
            ))
        for position, room in enumerate(result.rooms):
            if room.index != position:
                issues.append(ValidationIssue(
                    severity=Severity.FAIL, code="LAYOUT-005",
                    message=f"Room at position {position} carries index {room.index}",
                    room=room.index, template=room.name,
                ))
        return issues

    def _check_rotations(self, result: GenerationResult) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                severity=Severity.FAIL, code="LAYOUT-006",
                message=f"Room {room.index} has illegal rotation {room.rotation}",
                room=room.index, template=room.name,
            )
            for room in result.rooms if room.rotation not in ROTATIONS
        ]

    def _check_door_states(self, result: GenerationResult) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                severity=Severity.FAIL, code="LAYOUT-007",
                message=f"Used door {door.id} on room {room.index} was deactivated",
                room=room.index, door=door.id,
            )
            for room in result.rooms for door in room.doors
            if door.used and not door.active
        ]

    def _check_connectivity(self, result: GenerationResult) -> List[ValidationIssue]:
        """BFS over connections from the start room."""
        adjacency: Dict[int, Set[int]] = {room.index: set() for room in result.rooms}
        for conn in result.connections:
            if conn.room_a in adjacency and conn.room_b in adjacency:
                adjacency[conn.room_a].add(conn.room_b)
                adjacency[conn.room_b].add(conn.room_a)

        visited = {0}
        queue = deque([0])
        while queue:
            current = queue.popleft()
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        return [
            ValidationIssue(
                severity=Severity.FAIL, code="LAYOUT-008",
                message=f"Room {room.index} ({room.name}) is not reachable from the start room",
                room=room.index, template=room.name,
            )
            for room in result.rooms if room.index not in visited
        ]


def validate_layout(result: GenerationResult) -> ValidationResult:
    """Audit a generation result. Convenience wrapper around LayoutValidator."""
    return LayoutValidator().validate(result)
