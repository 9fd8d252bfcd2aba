"""End-to-end generation scenarios and structural invariants.

Invariants covered over many seeds of the built-in catalogs:
1. No two committed rooms overlap.
2. Connections are symmetric: both doors used, positions coincide, directions oppose.
3. The start room sits at the origin without rotation.
4. At most one destination room.
5. Room count never exceeds the target.
6. Used doors are never deactivated by cleanup.
"""

from __future__ import annotations

from itertools import combinations

import numpy as np
import pytest

from dungeon_assembler.generators.layout.layout_engine import GenerationStatus, LayoutConfigError
from dungeon_assembler.generators.layout.layout_validation import validate_layout
from dungeon_assembler.generators.templates.builtin import CRYPT_CATALOG, KEEP_CATALOG
from dungeon_assembler.generators.templates.catalog import RoomCatalog

from tests.factories import (
    blind_vault,
    dead_end,
    doorless,
    hall,
    hall_catalog,
    hub,
    make_engine,
    north_facing_vault,
    vault,
)

SEEDS = range(40)
CATALOGS = [CRYPT_CATALOG, KEEP_CATALOG]


def runs(total_rooms=14):
    for catalog in CATALOGS:
        for seed in SEEDS:
            yield catalog, seed, make_engine(catalog, total_rooms=total_rooms, seed=seed).generate()


def test_no_overlap_between_committed_rooms():
    for catalog, seed, result in runs():
        for a, b in combinations(result.rooms, 2):
            assert not a.bounds.intersects(b.bounds), f"{catalog.name} seed {seed}: rooms {a.index}/{b.index}"


def test_connection_symmetry():
    for catalog, seed, result in runs():
        for conn in result.connections:
            door_a = result.rooms[conn.room_a].door(conn.door_a)
            assert door_a.used
            if conn.forced:
                continue
            door_b = result.rooms[conn.room_b].door(conn.door_b)
            assert door_b.used
            gap = np.linalg.norm(np.subtract(door_a.world_position, door_b.world_position))
            assert gap <= 1e-6, f"{catalog.name} seed {seed}: door gap {gap}"
            assert door_a.world_direction.opposite() is door_b.world_direction


def test_start_destination_and_count_invariants():
    for catalog, seed, result in runs():
        assert result.rooms[0].template is catalog.start
        assert result.rooms[0].position == (0.0, 0.0, 0.0)
        assert result.rooms[0].rotation == 0
        destinations = [r for r in result.rooms if r.template is catalog.destination]
        assert len(destinations) <= 1
        assert len(result.rooms) <= 14
        if result.status == GenerationStatus.SUCCESS:
            assert len(destinations) == 1


def test_used_doors_stay_active_and_unused_doors_are_removed():
    for catalog, seed, result in runs():
        for room in result.rooms:
            for door in room.doors:
                assert door.active == door.used, f"{catalog.name} seed {seed}: {room.name}.{door.id}"


def test_audit_passes_for_builtin_catalogs():
    for catalog, seed, result in runs(total_rooms=10):
        audit = validate_layout(result)
        assert audit.passed, f"{catalog.name} seed {seed}:\n{audit.report()}"


def test_every_room_but_start_hangs_from_one_connection():
    for catalog, seed, result in runs():
        assert len(result.connections) == len(result.rooms) - 1
        assert sorted(c.room_b for c in result.connections) == list(range(1, len(result.rooms)))
        for conn in result.connections:
            assert conn.room_a < conn.room_b


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

def test_single_room_target_is_rejected():
    with pytest.raises(LayoutConfigError):
        make_engine(hall_catalog(), total_rooms=1)


def test_empty_pool_stalls_before_destination():
    catalog = RoomCatalog(name="empty", start=hub(), destination=vault(), rooms=[])
    result = make_engine(catalog, total_rooms=3).generate()
    assert result.status == GenerationStatus.STALLED
    assert len(result.rooms) == 1
    assert not result.destination_placed
    codes = [i.code for i in result.issues]
    assert "GEN-001" in codes
    assert "GEN-006" in codes
    assert result.metrics['doors_without_candidate'] == 1


def test_unattachable_template_stalls_with_start_only():
    catalog = RoomCatalog(name="sealed", start=hub(), destination=vault(), rooms=[doorless()])
    result = make_engine(catalog, total_rooms=5).generate()
    assert result.status == GenerationStatus.STALLED
    assert [r.name for r in result.rooms] == ["Hub"]
    assert result.connections == []
    start_door = result.rooms[0].doors[0]
    assert not start_door.used
    assert not start_door.active


def test_destination_without_bounds_ends_partial():
    catalog = hall_catalog(destination=vault(bounds=None))
    result = make_engine(catalog, total_rooms=4).generate()
    assert result.status == GenerationStatus.PARTIAL_SUCCESS
    assert len(result.rooms) == 3
    assert not result.destination_placed
    assert "GEN-003" in [i.code for i in result.issues]


def test_forced_destination_when_no_door_aligns():
    catalog = hall_catalog(destination=north_facing_vault())
    result = make_engine(catalog, total_rooms=4, match_local_direction=True).generate()

    assert result.status == GenerationStatus.SUCCESS
    assert [r.name for r in result.rooms] == ["Hub", "Hall", "Hall", "Apse"]
    apse = result.rooms[-1]
    # Tip of the second hall is its north door at (0, 20, 0)
    assert apse.position == (0.0, 20.0, 0.0)
    assert apse.rotation == 0

    forced = result.connections[-1]
    assert forced.forced
    assert (forced.room_a, forced.door_a, forced.room_b, forced.door_b) == (2, "front", 3, None)
    assert result.rooms[2].door("front").used
    assert not apse.door("entry").used
    assert not apse.door("entry").active
    assert "GEN-005" in [i.code for i in result.issues]
    assert validate_layout(result).passed


def test_fallback_without_open_doors_ends_partial():
    catalog = RoomCatalog(name="closet", start=hub(), destination=vault(), rooms=[dead_end()])
    result = make_engine(catalog, total_rooms=3).generate()
    assert result.status == GenerationStatus.PARTIAL_SUCCESS
    assert [r.name for r in result.rooms] == ["Hub", "Closet"]
    codes = [i.code for i in result.issues]
    assert "GEN-002" in codes
    assert "GEN-004" in codes


def test_frontier_exhausted_early_ends_partial():
    catalog = RoomCatalog(name="closet", start=hub(), destination=vault(), rooms=[dead_end()])
    result = make_engine(catalog, total_rooms=6).generate()
    assert result.status == GenerationStatus.PARTIAL_SUCCESS
    assert [r.name for r in result.rooms] == ["Hub", "Closet"]
    assert not result.destination_placed
    codes = [i.code for i in result.issues]
    assert "GEN-002" in codes
    assert "GEN-004" in codes
    assert "GEN-006" not in codes


def test_fallback_overlapping_the_parent_ends_partial():
    # Entry faces north locally, so the direction filter leaves it no socket
    # and the hall's tip wave stalls with only the destination slot left
    catalog = hall_catalog(destination=blind_vault())
    result = make_engine(catalog, total_rooms=3, match_local_direction=True).generate()

    assert result.status == GenerationStatus.PARTIAL_SUCCESS
    assert [r.name for r in result.rooms] == ["Hub", "Hall"]
    assert not result.destination_placed
    codes = [i.code for i in result.issues]
    assert "GEN-001" in codes
    assert "GEN-003" in codes
    assert result.metrics['rejected_overlap'] == 1
    # Forced footprint at the hall's front door cuts into the hall itself
    forced = blind_vault().world_bounds((0.0, 12.0, 0.0), 0)
    assert forced.intersects(result.rooms[1].bounds)
    assert not result.rooms[1].door("front").used
    assert not result.rooms[1].door("front").active


def test_long_hall_reaches_target_exactly():
    catalog = RoomCatalog(name="halls", start=hub(), destination=vault(), rooms=[hall()])
    result = make_engine(catalog, total_rooms=20).generate()
    assert result.status == GenerationStatus.SUCCESS
    assert len(result.rooms) == 20
    assert result.rooms[-1].name == "Vault"
    assert result.rooms[-1].position == (0.0, 4.0 + 8.0 * 18 + 4.0, 0.0)
