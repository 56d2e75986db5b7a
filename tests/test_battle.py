import re
from datetime import datetime, timezone

import pytest

from monster_app.backend.models.domain import (
    BattleMonster,
    BattleRules,
    BattleState,
    BattleStore,
    WildMonster,
    apply_action,
    hp_ratio_capture_chance,
    start_battle,
)
from monster_app.backend.models.errors import BattleConcludedError, NotFoundError
from monster_app.backend.models.validation import BattleAction

UUID4 = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def build_wild(hp: int = 35, max_hp: int = 35) -> WildMonster:
    return WildMonster(species_id="electric_mouse", species_name="でんきネズミ", current_hp=hp, max_hp=max_hp)


def build_ally(hp: int = 40) -> BattleMonster:
    return BattleMonster(id="ally-1", name="ほのおトカゲ", current_hp=hp, max_hp=40)


def test_start_battle_is_in_battle_state():
    battle = start_battle("player-1", build_wild(), build_ally())
    assert battle.state is BattleState.BATTLE
    assert len(battle.id) == 12
    assert battle.log == ["野生のでんきネズミが現れた!"]
    assert battle.snapshot()["state"] == "battle"


def test_fight_finishing_blow_is_victory_and_clamps_hp():
    battle = start_battle("player-1", build_wild(hp=1), build_ally())
    result = apply_action(battle, BattleAction.FIGHT, BattleRules(player_damage=1))
    assert battle.state is BattleState.VICTORY
    assert battle.wild_monster.current_hp == 0
    assert result.captured_monster is None
    assert "たおした" in result.message

    overkill = start_battle("player-1", build_wild(hp=1), build_ally())
    apply_action(overkill, BattleAction.FIGHT, BattleRules(player_damage=50))
    assert overkill.wild_monster.current_hp == 0


def test_fight_triggers_counter_attack_until_defeat():
    battle = start_battle("player-1", build_wild(hp=35), build_ally(hp=8))
    result = apply_action(battle, BattleAction.FIGHT, BattleRules(player_damage=10, wild_damage=8))
    assert battle.wild_monster.current_hp == 25
    assert battle.player_monster.current_hp == 0
    assert battle.state is BattleState.DEFEAT
    assert "たおれてしまった" in result.message


def test_fight_without_ally_has_no_counter_attack():
    battle = start_battle("player-1", build_wild(hp=35))
    apply_action(battle, BattleAction.FIGHT)
    assert battle.state is BattleState.BATTLE
    assert battle.wild_monster.current_hp == 25


def test_flee_escapes_and_blocks_further_actions(static_rng):
    battle = start_battle("player-1", build_wild(), build_ally())
    battle.rng = static_rng([0.0])
    result = apply_action(battle, BattleAction.FLEE)
    assert battle.state is BattleState.ESCAPE
    assert result.message == "うまく にげだした!"
    with pytest.raises(BattleConcludedError):
        apply_action(battle, BattleAction.FIGHT)


def test_failed_flee_lets_wild_monster_strike(static_rng):
    battle = start_battle("player-1", build_wild(), build_ally(hp=40))
    battle.rng = static_rng([0.95])
    apply_action(battle, BattleAction.FLEE, BattleRules(flee_chance=0.9, wild_damage=8))
    assert battle.state is BattleState.BATTLE
    assert battle.player_monster.current_hp == 32


def test_capture_success_emits_owned_monster_record(static_rng):
    battle = start_battle("player-1", build_wild(hp=17), build_ally())
    battle.rng = static_rng([0.99])
    moment = datetime(2025, 7, 15, tzinfo=timezone.utc)
    result = apply_action(
        battle, BattleAction.CAPTURE, BattleRules(capture_chance=lambda wild: 1.0), now=moment
    )
    captured = result.captured_monster
    assert battle.state is BattleState.CAPTURE
    assert captured is not None
    assert captured.current_hp == 17
    assert captured.max_hp == 35
    assert captured.player_id == "player-1"
    assert captured.captured_at == moment
    assert UUID4.match(captured.id)
    assert captured.id != battle.wild_monster.species_id
    assert result.to_dict()["capturedMonster"]["capturedAt"] == "2025-07-15T00:00:00.000Z"


def test_capture_failure_stays_in_battle(static_rng):
    battle = start_battle("player-1", build_wild(), build_ally(hp=40))
    battle.rng = static_rng([0.5])
    result = apply_action(battle, BattleAction.CAPTURE, BattleRules(capture_chance=lambda wild: 0.0))
    assert battle.state is BattleState.BATTLE
    assert result.captured_monster is None
    assert "capturedMonster" not in result.to_dict()
    assert battle.player_monster.current_hp == 32


def test_capture_chance_rises_as_hp_falls():
    full = hp_ratio_capture_chance(build_wild(hp=35))
    weak = hp_ratio_capture_chance(build_wild(hp=1))
    assert 0.2 <= full < weak <= 0.95


def test_store_rejects_unknown_battle():
    store = BattleStore()
    battle = store.add(start_battle("player-1", build_wild()))
    with store.acting(battle.id) as same:
        assert same is battle
    store.discard(battle.id)
    with pytest.raises(NotFoundError):
        store.get(battle.id)


def test_store_forgets_concluded_battles_when_player_starts_again(static_rng):
    store = BattleStore()
    finished = store.add(start_battle("player-1", build_wild()))
    finished.rng = static_rng([0.0])
    apply_action(finished, BattleAction.FLEE)
    open_battle = store.add(start_battle("player-2", build_wild()))

    store.add(start_battle("player-1", build_wild()))
    with pytest.raises(NotFoundError):
        store.get(finished.id)
    assert store.get(open_battle.id) is open_battle
    assert len(store) == 2


def test_discarded_battle_cannot_be_acted_on():
    store = BattleStore()
    battle = store.add(start_battle("player-1", build_wild()))
    with store.acting(battle.id):
        store.discard(battle.id)
    with pytest.raises(NotFoundError):
        with store.acting(battle.id):
            pass


def test_battle_monster_tracks_damage_taken():
    ally = BattleMonster(id="m-1", name="ピカ", current_hp=35, max_hp=35)
    ally.current_hp = 27
    assert ally.damage_taken == 8
    assert "currentHp" in ally.to_dict() and "startHp" not in ally.to_dict()
