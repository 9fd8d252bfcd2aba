"""
Helpers for authoring rectangular room templates.

Rooms are centred on their origin; the floor sits at z=0. Doors sit on the
wall midline, offset along the wall by a given amount.
"""

from typing import Sequence, Tuple

from dungeon_assembler.generators.layout.directions import DoorDirection
from dungeon_assembler.generators.layout.layout_types import DoorSocket, RoomRole, RoomTemplate
from dungeon_assembler.validation.spatial_validation import AABB

# Default ceiling height in world units
ROOM_HEIGHT = 4.0

DoorSpec = Tuple[str, DoorDirection, float]


def wall_door(door_id: str, direction: DoorDirection, width: float, depth: float,
              offset: float = 0.0) -> DoorSocket:
    """Door on the wall facing `direction`, `offset` units along that wall."""
    half_w, half_d = width / 2.0, depth / 2.0
    positions = {
        DoorDirection.NORTH: (offset, half_d, 0.0),
        DoorDirection.SOUTH: (offset, -half_d, 0.0),
        DoorDirection.EAST: (half_w, offset, 0.0),
        DoorDirection.WEST: (-half_w, offset, 0.0),
    }
    return DoorSocket(id=door_id, position=positions[direction], direction=direction)


def rect_room(name: str, width: float, depth: float, doors: Sequence[DoorSpec],
              role: RoomRole = RoomRole.NORMAL, height: float = ROOM_HEIGHT) -> RoomTemplate:
    """Rectangular room `width` (X) by `depth` (Y) with the given doors."""
    sockets = tuple(
        wall_door(door_id, direction, width, depth, offset)
        for door_id, direction, offset in doors
    )
    bounds = AABB(-width / 2.0, -depth / 2.0, 0.0, width / 2.0, depth / 2.0, height)
    return RoomTemplate(name=name, doors=sockets, bounds=bounds, role=role)
