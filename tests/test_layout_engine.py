import random

import pytest

from dungeon_assembler.generators.layout.directions import DoorDirection
from dungeon_assembler.generators.layout.layout_engine import (
    GenerationStatus,
    LayoutConfigError,
    LayoutEngine,
    LayoutError,
    LayoutSettings,
    SessionState,
    generate_layout,
)
from dungeon_assembler.generators.templates.builtin.shapes import rect_room
from dungeon_assembler.generators.templates.catalog import RoomCatalog
from dungeon_assembler.validation.core import ValidationStage

from tests.factories import (
    cross_hub,
    dead_end,
    hall,
    hall_catalog,
    hub,
    make_engine,
    small_vault,
)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("total_rooms", [1, 0, -3])
def test_too_few_rooms_is_a_config_error(total_rooms):
    with pytest.raises(LayoutConfigError, match="total_rooms"):
        make_engine(hall_catalog(), total_rooms=total_rooms)


@pytest.mark.parametrize("tolerance", [0.0, -0.1, 1.5, 2.0])
def test_tolerance_outside_open_range_is_a_config_error(tolerance):
    with pytest.raises(LayoutConfigError, match="door_snap_tolerance"):
        make_engine(hall_catalog(), door_snap_tolerance=tolerance)


def test_config_error_lists_every_problem():
    with pytest.raises(LayoutConfigError) as info:
        make_engine(hall_catalog(), total_rooms=1, door_snap_tolerance=5.0)
    assert "total_rooms" in str(info.value)
    assert "door_snap_tolerance" in str(info.value)


def test_default_settings():
    settings = LayoutSettings()
    assert settings.total_rooms == 10
    assert settings.door_snap_tolerance == pytest.approx(0.2)
    assert settings.seed is None
    assert settings.validate() == []


def test_seed_is_drawn_when_not_given():
    engine = LayoutEngine(hall_catalog(), LayoutSettings(total_rooms=3))
    assert isinstance(engine.seed, int)
    assert engine.generate().seed == engine.seed


# ---------------------------------------------------------------------------
# Growth
# ---------------------------------------------------------------------------

def test_start_room_is_committed_at_origin():
    result = make_engine(hall_catalog(), total_rooms=3).generate()
    start = result.rooms[0]
    assert start.template.is_start
    assert start.position == (0.0, 0.0, 0.0)
    assert start.rotation == 0


def test_hall_chain_grows_north_one_room_per_wave():
    result = make_engine(hall_catalog(), total_rooms=5).generate()
    assert result.status == GenerationStatus.SUCCESS
    assert [r.name for r in result.rooms] == ["Hub", "Hall", "Hall", "Hall", "Vault"]
    assert [r.position for r in result.rooms] == [
        (0.0, 0.0, 0.0), (0.0, 8.0, 0.0), (0.0, 16.0, 0.0), (0.0, 24.0, 0.0), (0.0, 32.0, 0.0),
    ]
    assert result.rooms[-1].rotation == 0
    assert result.metrics['waves'] == 4
    assert result.destination_placed


def test_connections_link_the_snapped_doors():
    result = make_engine(hall_catalog(), total_rooms=3).generate()
    assert [(c.room_a, c.room_b) for c in result.connections] == [(0, 1), (1, 2)]
    for conn in result.connections:
        door_a = result.rooms[conn.room_a].door(conn.door_a)
        door_b = result.rooms[conn.room_b].door(conn.door_b)
        assert door_a.used and door_b.used
        assert door_a.world_position == door_b.world_position
        assert door_a.world_direction.opposite() is door_b.world_direction
        assert not conn.forced


def test_two_room_layout_places_destination_directly():
    catalog = RoomCatalog(name="pair", start=cross_hub(), destination=small_vault(), rooms=[])
    result = make_engine(catalog, total_rooms=2).generate()
    assert result.status == GenerationStatus.SUCCESS
    assert [r.name for r in result.rooms] == ["CrossHub", "SmallVault"]
    # First open door is the hub's north door at (0, 6, 0)
    assert result.rooms[1].position == (0.0, 8.0, 0.0)
    assert not any(c.forced for c in result.connections)


def test_wave_stops_at_target_and_leftover_doors_are_dead_ends():
    catalog = RoomCatalog(name="spokes", start=cross_hub(), destination=small_vault(), rooms=[dead_end()])
    result = make_engine(catalog, total_rooms=3).generate()

    assert result.status == GenerationStatus.SUCCESS
    assert [r.name for r in result.rooms] == ["CrossHub", "Closet", "SmallVault"]
    assert [(c.room_a, c.door_a, c.room_b, c.door_b) for c in result.connections] == [
        (0, "north", 1, "entry"),
        (0, "east", 2, "entry"),
    ]
    vault = result.rooms[2]
    assert vault.position == (8.0, 0.0, 0.0)
    assert vault.rotation == 90
    assert result.metrics['waves'] == 1
    assert result.metrics['dead_ends'] == 2
    assert result.metrics['doors_removed'] == 2
    hub_doors = {d.id: d.active for d in result.rooms[0].doors}
    assert hub_doors == {"north": True, "east": True, "south": False, "west": False}


def test_room_count_never_exceeds_target():
    for total in (2, 3, 7, 12):
        result = make_engine(hall_catalog(), total_rooms=total).generate()
        assert len(result.rooms) <= total


def test_same_seed_same_layout():
    from dungeon_assembler.generators.templates.builtin import CRYPT_CATALOG

    def snapshot(seed):
        result = make_engine(CRYPT_CATALOG, total_rooms=12, seed=seed).generate()
        return (
            result.status,
            [(r.name, r.position, r.rotation) for r in result.rooms],
            [c.to_dict() for c in result.connections],
        )

    assert snapshot(2024) == snapshot(2024)


def test_injected_rng_is_the_only_randomness():
    from dungeon_assembler.generators.templates.builtin import KEEP_CATALOG

    def run():
        engine = LayoutEngine(KEEP_CATALOG, LayoutSettings(total_rooms=10), rng=random.Random(77))
        return [(r.name, r.position, r.rotation) for r in engine.generate().rooms]

    assert run() == run()


def test_generate_twice_raises():
    engine = make_engine(hall_catalog(), total_rooms=3)
    engine.generate()
    assert engine.state is SessionState.TERMINATED
    with pytest.raises(LayoutError):
        engine.generate()


def test_diagnostics_are_generation_stage_results():
    clean = make_engine(hall_catalog(), total_rooms=3).generate().diagnostics
    assert clean.stage is ValidationStage.GENERATION
    assert clean.passed
    assert clean.issues == []

    catalog = RoomCatalog(name="closet", start=hub(), destination=small_vault(), rooms=[dead_end()])
    result = make_engine(catalog, total_rooms=5).generate()
    diagnostics = result.diagnostics
    assert diagnostics.stage is ValidationStage.GENERATION
    assert diagnostics.failed
    assert [i.code for i in diagnostics.warnings] == ["GEN-002"]
    assert [i.code for i in diagnostics.errors] == ["GEN-004"]
    assert diagnostics.to_dict()['stage'] == "generation"


# ---------------------------------------------------------------------------
# Host integration
# ---------------------------------------------------------------------------

def test_host_spawns_only_committed_rooms(recording_host):
    from dungeon_assembler.generators.templates.builtin import CRYPT_CATALOG

    engine = make_engine(CRYPT_CATALOG, total_rooms=10, seed=5, host=recording_host)
    result = engine.generate()
    assert len(recording_host.spawned) == len(result.rooms)
    assert result.metrics['trials'] >= len(result.rooms) - 1
    assert [s[1] for s in recording_host.spawned] == [r.name for r in result.rooms]
    assert [r.handle for r in result.rooms] == [s[0] for s in recording_host.spawned]
    assert len(recording_host.deactivated) == result.metrics['doors_removed']


def test_discard_despawns_in_reverse_order(recording_host):
    engine = make_engine(hall_catalog(), total_rooms=4, host=recording_host)
    engine.generate()
    assert engine.discard() == 4
    assert recording_host.despawned == ["obj3", "obj2", "obj1", "obj0"]
    assert engine.rooms == []
    assert engine.connections == []
    assert engine.state is SessionState.TERMINATED


def test_generate_layout_wrapper():
    result = generate_layout(hall_catalog(), total_rooms=4, seed=3)
    assert result.status == GenerationStatus.SUCCESS
    assert result.seed == 3
    assert result.room_count == 4


# ---------------------------------------------------------------------------
# Door filter
# ---------------------------------------------------------------------------

def test_local_direction_filter_blocks_rotation_only_matches():
    north_only = RoomCatalog(
        name="north-only",
        start=hub(),
        destination=small_vault(),
        # Only door faces north locally, like the hub's open door
        rooms=[rect_room("NorthNook", 4, 4, [("mouth", DoorDirection.NORTH, 0)])],
    )
    loose = make_engine(north_only, total_rooms=4).generate()
    strict = make_engine(north_only, total_rooms=4, match_local_direction=True).generate()

    assert loose.room_count >= 2
    assert loose.rooms[1].name == "NorthNook"
    assert loose.rooms[1].rotation == 180
    assert strict.room_count == 1
    assert strict.status == GenerationStatus.STALLED


def test_hall_chain_is_unchanged_by_local_direction_filter():
    loose = make_engine(hall_catalog(), total_rooms=5).generate()
    strict = make_engine(hall_catalog(), total_rooms=5, match_local_direction=True).generate()
    assert [r.position for r in loose.rooms] == [r.position for r in strict.rooms]
    assert strict.status == GenerationStatus.SUCCESS


def test_pool_templates_are_all_reachable():
    catalog = RoomCatalog(name="mixed", start=cross_hub(), destination=small_vault(),
                          rooms=[hall(), dead_end()])
    names = set()
    for seed in range(20):
        result = make_engine(catalog, total_rooms=6, seed=seed).generate()
        names.update(r.name for r in result.rooms)
    assert {"Hall", "Closet"} <= names
