"""
Crypt catalog: narrow corridors linking burial chambers.
"""

from dungeon_assembler.generators.layout.directions import DoorDirection
from dungeon_assembler.generators.layout.layout_types import RoomRole

from ..catalog import RoomCatalog
from .shapes import rect_room

N, E, S, W = DoorDirection.NORTH, DoorDirection.EAST, DoorDirection.SOUTH, DoorDirection.WEST


CRYPT_CATALOG = RoomCatalog(
    name="crypt",
    description="Narrow corridors and junctions linking burial chambers. Ends in the reliquary.",
    start=rect_room("Narthex", 12, 12, [
        ("north", N, 0), ("east", E, 0), ("south", S, 0), ("west", W, 0),
    ], role=RoomRole.START),
    destination=rect_room("Reliquary", 12, 10, [
        ("entry", S, 0),
    ], role=RoomRole.DESTINATION, height=6.0),
    rooms=[
        rect_room("Corridor", 4, 16, [("front", N, 0), ("back", S, 0)]),
        rect_room("Corner", 8, 8, [("in", S, 0), ("out", E, 0)]),
        rect_room("TJunction", 12, 8, [("left", W, 0), ("right", E, 0), ("stem", S, 0)]),
        rect_room("BurialChamber", 16, 12, [
            ("north", N, -4), ("east", E, 0), ("south", S, 4), ("west", W, 0),
        ]),
        rect_room("Ossuary", 8, 8, [("entry", S, 0)]),
    ],
)
