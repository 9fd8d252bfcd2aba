"""
Keep catalog: wide halls and stairwells leading up to a throne room.
"""

from dungeon_assembler.generators.layout.directions import DoorDirection
from dungeon_assembler.generators.layout.layout_types import RoomRole

from ..catalog import RoomCatalog
from .shapes import rect_room

N, E, S, W = DoorDirection.NORTH, DoorDirection.EAST, DoorDirection.SOUTH, DoorDirection.WEST


KEEP_CATALOG = RoomCatalog(
    name="keep",
    description="Large halls and guard rooms around a central gatehouse. Ends in the throne room.",
    start=rect_room("Gatehouse", 16, 12, [
        ("north", N, 0), ("east", E, 2), ("west", W, -2),
    ], role=RoomRole.START, height=8.0),
    destination=rect_room("ThroneRoom", 20, 20, [
        ("entry", S, 0),
    ], role=RoomRole.DESTINATION, height=10.0),
    rooms=[
        rect_room("GreatHall", 20, 16, [
            ("north", N, 0), ("east", E, 0), ("south", S, 0), ("west", W, 0),
        ], height=8.0),
        rect_room("Gallery", 6, 24, [("front", N, 0), ("back", S, 0), ("side", E, 4)]),
        rect_room("GuardRoom", 10, 10, [("entry", S, 0), ("back", N, 2)]),
        rect_room("Armory", 10, 8, [("entry", W, 0)]),
        rect_room("Crossing", 8, 8, [
            ("north", N, 0), ("east", E, 0), ("south", S, 0), ("west", W, 0),
        ]),
    ],
)
