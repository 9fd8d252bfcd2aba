"""
Spatial validation for room placement.

Provides axis-aligned bounding box (AABB) based overlap detection used by the
layout engine before a candidate room is committed.

Rules:
- A candidate without a bounding volume is always rejected. A missing volume
  must never be silently accepted.
- A committed room without a bounding volume is skipped (logged), so one
  malformed peer cannot block every later placement.
- Overlap is exact: any intersection with positive volume counts, faces that
  merely touch do not. Door snapping tolerance plays no part here.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class AABB:
    """Axis-Aligned Bounding Box for room geometry."""
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    @staticmethod
    def from_points(points: Iterable[Sequence[float]]) -> 'AABB':
        """Smallest box containing every given point."""
        pts = [tuple(float(c) for c in p) for p in points]
        if not pts:
            raise ValueError("AABB.from_points needs at least one point")
        xs, ys, zs = zip(*pts)
        return AABB(min(xs), min(ys), min(zs), max(xs), max(ys), max(zs))

    @property
    def corners(self) -> Tuple[Vec3, Vec3]:
        return ((self.min_x, self.min_y, self.min_z),
                (self.max_x, self.max_y, self.max_z))

    def intersects(self, other: 'AABB') -> bool:
        """Check if this AABB intersects another AABB."""
        # Two AABBs intersect if they overlap on all three axes
        return (
            self.min_x < other.max_x and self.max_x > other.min_x and
            self.min_y < other.max_y and self.max_y > other.min_y and
            self.min_z < other.max_z and self.max_z > other.min_z
        )

    def intersection_volume(self, other: 'AABB') -> float:
        """Calculate the intersection volume with another AABB."""
        if not self.intersects(other):
            return 0.0

        # Calculate overlap on each axis
        overlap_x = min(self.max_x, other.max_x) - max(self.min_x, other.min_x)
        overlap_y = min(self.max_y, other.max_y) - max(self.min_y, other.min_y)
        overlap_z = min(self.max_z, other.max_z) - max(self.min_z, other.min_z)

        return max(0.0, overlap_x) * max(0.0, overlap_y) * max(0.0, overlap_z)

    def translated(self, offset: Sequence[float]) -> 'AABB':
        dx, dy, dz = (float(c) for c in offset)
        return AABB(self.min_x + dx, self.min_y + dy, self.min_z + dz,
                    self.max_x + dx, self.max_y + dy, self.max_z + dz)

    @property
    def volume(self) -> float:
        """Calculate the volume of this AABB."""
        return (
            (self.max_x - self.min_x) *
            (self.max_y - self.min_y) *
            (self.max_z - self.min_z)
        )

    def to_dict(self) -> dict:
        return {
            'min': [self.min_x, self.min_y, self.min_z],
            'max': [self.max_x, self.max_y, self.max_z],
        }

    @staticmethod
    def from_dict(data: dict) -> 'AABB':
        lo, hi = data['min'], data['max']
        return AABB(float(lo[0]), float(lo[1]), float(lo[2]),
                    float(hi[0]), float(hi[1]), float(hi[2]))


def is_overlapping(
    candidate: Optional[AABB],
    placed_bounds: Iterable[Optional[AABB]],
) -> bool:
    """
    Check whether a candidate room would overlap any committed room.

    Overlap means positive shared volume (AABB.intersects is strict), so rooms
    joined door to door share a wall face without being rejected.

    Args:
        candidate: World-space bounds of the candidate (None if the template
            has no bounding volume)
        placed_bounds: World-space bounds of every committed room, in commit
            order (None entries for rooms without a volume)

    Returns:
        True if the candidate must be rejected
    """
    if candidate is None:
        logger.warning("Candidate room has no bounding volume; rejecting placement")
        return True

    for index, bounds in enumerate(placed_bounds):
        if bounds is None:
            logger.warning("Committed room %d has no bounding volume; skipped in overlap test", index)
            continue
        if candidate.intersects(bounds):
            logger.debug("Candidate overlaps room %d (volume %.3f)",
                         index, candidate.intersection_volume(bounds))
            return True

    return False
