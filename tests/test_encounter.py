import random

import pytest

from monster_app.backend.models import encounter
from monster_app.backend.models.encounter import GameMap, MapDataError, MapSession, move
from monster_app.backend.models.game import GameData, RARITY_WEIGHTS


@pytest.fixture(scope="module")
def data():
    return GameData()


@pytest.fixture
def game_map(data):
    return data.game_map()


def test_map_loads_and_starts_in_town(game_map):
    assert (game_map.width, game_map.height) == (20, 15)
    assert game_map.start == (10, 7)
    assert game_map.tile_at(*game_map.start) == "town"


def test_map_validation_rejects_unwalkable_start():
    raw = {
        "name": "test",
        "width": 2,
        "height": 1,
        "start": {"x": 0, "y": 0},
        "legend": {"W": "water", "G": "grass"},
        "tiles": ["WG"],
    }
    with pytest.raises(MapDataError):
        GameMap.from_dict("broken", raw)


def test_move_onto_grass_rolls_encounter(game_map, static_rng):
    session = MapSession.at_start("p1", game_map)
    result = move(session, game_map, 1, 0, static_rng([0.05]), encounter_rate=0.1)
    assert result.moved
    assert result.tile == "grass"
    assert result.encounter
    assert (session.x, session.y) == (11, 7)


def test_move_without_encounter(game_map, static_rng):
    session = MapSession.at_start("p1", game_map)
    result = move(session, game_map, 1, 0, static_rng([0.5]), encounter_rate=0.1)
    assert result.moved
    assert not result.encounter


def test_town_never_triggers_encounters(game_map, static_rng):
    session = MapSession.at_start("p1", game_map)
    result = move(session, game_map, -1, 0, static_rng([0.0]), encounter_rate=1.0)
    assert result.tile == "town"
    assert not result.encounter
    assert session.message == encounter.TOWN_ARRIVAL


def test_water_blocks_movement(game_map, static_rng):
    session = MapSession(player_id="p1", map_id=game_map.id, x=1, y=1)
    result = move(session, game_map, 0, -1, static_rng(), encounter_rate=1.0)
    assert not result.moved
    assert (session.x, session.y) == (1, 1)
    assert session.message == "水の上は歩けません"


def test_mountain_blocks_movement(game_map, static_rng):
    session = MapSession(player_id="p1", map_id=game_map.id, x=6, y=1)
    result = move(session, game_map, 1, 0, static_rng(), encounter_rate=1.0)
    assert not result.moved
    assert result.tile == "mountain"


def test_moves_outside_grid_are_rejected(game_map, static_rng):
    session = MapSession(player_id="p1", map_id=game_map.id, x=0, y=0)
    result = move(session, game_map, -1, 0, static_rng(), encounter_rate=1.0)
    assert not result.moved
    assert session.message == encounter.OUT_OF_BOUNDS


def test_only_single_steps_are_allowed(game_map, static_rng):
    session = MapSession.at_start("p1", game_map)
    for dx, dy in ((0, 0), (2, 0), (1, 1)):
        result = move(session, game_map, dx, dy, static_rng(), encounter_rate=1.0)
        assert not result.moved
    assert (session.x, session.y) == game_map.start


def test_wild_monster_starts_at_full_hp(data):
    wild = data.generate_wild_monster(random.Random(7))
    assert wild.current_hp == wild.max_hp
    assert wild.species_id in data.species


def test_rarity_weighting_favours_common_species(data):
    rng = random.Random(1234)
    picks = [data.pick_wild_species(rng)["rarity"] for _ in range(2000)]
    assert picks.count("common") > picks.count("rare") > 0
    assert set(picks) <= set(RARITY_WEIGHTS)
