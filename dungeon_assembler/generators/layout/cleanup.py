"""
Post-generation cleanup: retire every door that never formed a connection.
"""

import logging
from typing import Iterable, Optional

from .host import NULL_HOST, HostAdapter
from .layout_types import RoomInstance

logger = logging.getLogger(__name__)


def remove_unused_doors(rooms: Iterable[RoomInstance], host: Optional[HostAdapter] = None) -> int:
    """Deactivate unused doors on all rooms.

    Safe to call repeatedly; doors already deactivated are skipped.

    Returns:
        Number of doors deactivated by this call
    """
    host = host or NULL_HOST
    removed = 0
    for room in rooms:
        for door in room.doors:
            if door.deactivate():
                host.deactivate_door(room.handle, door)
                removed += 1
    logger.info("Cleanup removed %d unused door(s)", removed)
    return removed
