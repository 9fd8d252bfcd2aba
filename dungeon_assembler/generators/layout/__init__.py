"""
Layout Module for Modular Dungeon Generation

Grows a map of prefabricated rooms outward from a start room by snapping door
sockets together, wave by wave, until the target room count is reached.
"""

from .directions import (
    ROTATIONS,
    DoorDirection,
    are_opposite,
    closest_direction,
    direction_vector,
    rotate_vector,
)
from .layout_types import (
    Connection,
    DoorSocket,
    PlacedDoor,
    RoomInstance,
    RoomRole,
    RoomTemplate,
    SocketHandle,
)
from .frontier import DoorFrontier, OpenDoor
from .host import HostAdapter, NULL_HOST
from .cleanup import remove_unused_doors
from .layout_engine import (
    GenerationResult,
    GenerationStatus,
    LayoutConfigError,
    LayoutEngine,
    LayoutError,
    LayoutSettings,
    SessionState,
    generate_layout,
)
from .layout_validation import LayoutValidator, validate_layout

__all__ = [
    # Geometry
    'ROTATIONS',
    'DoorDirection',
    'are_opposite',
    'closest_direction',
    'direction_vector',
    'rotate_vector',
    # Data model
    'Connection',
    'DoorSocket',
    'PlacedDoor',
    'RoomInstance',
    'RoomRole',
    'RoomTemplate',
    'SocketHandle',
    # Engine
    'DoorFrontier',
    'OpenDoor',
    'HostAdapter',
    'NULL_HOST',
    'remove_unused_doors',
    'GenerationResult',
    'GenerationStatus',
    'LayoutConfigError',
    'LayoutEngine',
    'LayoutError',
    'LayoutSettings',
    'SessionState',
    'generate_layout',
    # Audit
    'LayoutValidator',
    'validate_layout',
]
