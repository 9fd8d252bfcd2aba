"""
Directional geometry for door sockets.

Coordinate frame (Z is up):
- NORTH = +Y
- EAST  = +X
- SOUTH = -Y
- WEST  = -X

Rotation System:
- Rooms support 0°, 90°, 180°, 270° rotation about Z (clockwise seen from above)
- A 90° turn maps NORTH -> EAST -> SOUTH -> WEST -> NORTH
- Quarter-turn matrices are integer valued, so rotated positions stay exact
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Sequence, Tuple

import numpy as np

# Legal room rotations in degrees
ROTATIONS: Tuple[int, ...] = (0, 90, 180, 270)

Vec3 = Tuple[float, float, float]


class DoorDirection(Enum):
    """Cardinal direction a door faces."""
    NORTH = "north"  # +Y direction
    EAST = "east"    # +X direction
    SOUTH = "south"  # -Y direction
    WEST = "west"    # -X direction

    def opposite(self) -> 'DoorDirection':
        """Return the opposite direction."""
        opposites = {
            DoorDirection.NORTH: DoorDirection.SOUTH,
            DoorDirection.SOUTH: DoorDirection.NORTH,
            DoorDirection.EAST: DoorDirection.WEST,
            DoorDirection.WEST: DoorDirection.EAST,
        }
        return opposites[self]

    def rotated(self, rotation: int) -> 'DoorDirection':
        """Get the direction after applying a room rotation."""
        directions = [DoorDirection.NORTH, DoorDirection.EAST,
                      DoorDirection.SOUTH, DoorDirection.WEST]
        idx = directions.index(self)
        new_idx = (idx + _quarter_turns(rotation)) % 4
        return directions[new_idx]


_UNIT_VECTORS: Dict[DoorDirection, Tuple[float, float, float]] = {
    DoorDirection.NORTH: (0.0, 1.0, 0.0),
    DoorDirection.EAST: (1.0, 0.0, 0.0),
    DoorDirection.SOUTH: (0.0, -1.0, 0.0),
    DoorDirection.WEST: (-1.0, 0.0, 0.0),
}

# Evaluation order for closest_direction ties
_TIE_BREAK_ORDER = (DoorDirection.NORTH, DoorDirection.SOUTH,
                    DoorDirection.EAST, DoorDirection.WEST)


def _quarter_turns(rotation: int) -> int:
    if rotation % 90 != 0:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {rotation}")
    return (rotation // 90) % 4


def direction_vector(direction: DoorDirection) -> np.ndarray:
    """Unit vector for a cardinal direction."""
    return np.array(_UNIT_VECTORS[direction], dtype=float)


def closest_direction(vector: Sequence[float]) -> DoorDirection:
    """
    Classify a vector as the cardinal direction it points most toward.

    The vertical component takes part in normalisation only. Ties are
    resolved in the order NORTH, SOUTH, EAST, WEST.

    Raises:
        ValueError: If the vector has zero length
    """
    v = np.asarray(vector, dtype=float)
    length = np.linalg.norm(v)
    if length == 0.0:
        raise ValueError("Cannot classify a zero-length vector")
    n = v / length

    dots = {d: float(np.dot(n, direction_vector(d))) for d in _TIE_BREAK_ORDER}
    best = max(dots.values())
    for d in _TIE_BREAK_ORDER:
        if dots[d] == best:
            return d
    return DoorDirection.WEST


def are_opposite(d1: DoorDirection, d2: DoorDirection) -> bool:
    """True iff the directions form a NORTH/SOUTH or EAST/WEST pair."""
    return d1.opposite() == d2


def rotation_matrix(rotation: int) -> np.ndarray:
    """Integer 3x3 matrix rotating clockwise about Z by a quarter-turn multiple."""
    cos, sin = {0: (1, 0), 1: (0, 1), 2: (-1, 0), 3: (0, -1)}[_quarter_turns(rotation)]
    # 90° clockwise: (x, y) -> (y, -x)
    return np.array([
        [cos, sin, 0],
        [-sin, cos, 0],
        [0, 0, 1],
    ], dtype=float)


def rotate_vector(vector: Sequence[float], rotation: int) -> np.ndarray:
    """Rotate a 3-vector about the vertical axis."""
    return rotation_matrix(rotation) @ np.asarray(vector, dtype=float)


def as_vec3(vector: Sequence[float]) -> Vec3:
    """Convert any 3-sequence (including numpy arrays) to a plain float tuple."""
    x, y, z = (float(c) for c in vector)
    # Normalise negative zero so equal positions compare and serialise equally
    return (x + 0.0, y + 0.0, z + 0.0)
