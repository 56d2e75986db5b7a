import pytest

from monster_app.backend.models.errors import ValidationFailedError
from monster_app.backend.models.validation import (
    BATTLE_ACTION,
    INVALID_CHARACTERS,
    NICKNAME,
    PLAYER_NAME,
    BattleAction,
    require,
)


@pytest.mark.parametrize(
    "name",
    ["abc", "テストプレイヤー", "でんき太郎", "Ash-2024", "サトシ ケッチャム", "a" * 20, "山田　花子"],
)
def test_player_name_accepts_permitted_characters(name):
    result = PLAYER_NAME.validate(name)
    assert result.ok
    assert result.value == name


@pytest.mark.parametrize("name", ["", "ab", "  ab  "])
def test_player_name_too_short(name):
    result = PLAYER_NAME.validate(name)
    assert not result.ok
    assert "短すぎます" in result.error
    assert "3〜20" in result.error


def test_player_name_too_long():
    result = PLAYER_NAME.validate("a" * 21)
    assert not result.ok
    assert "長すぎます" in result.error
    assert "3〜20" in result.error


@pytest.mark.parametrize("name", ["abc!", "name@home", "<script>", "ＡＢＣ"])
def test_player_name_invalid_characters(name):
    result = PLAYER_NAME.validate(name)
    assert not result.ok
    assert result.error == INVALID_CHARACTERS


@pytest.mark.parametrize("value", [None, 123, ["abc"]])
def test_player_name_requires_a_string(value):
    assert not PLAYER_NAME.validate(value).ok


def test_player_name_is_stripped():
    assert PLAYER_NAME.validate("  ピカ太  ").value == "ピカ太"


def test_nickname_allows_single_character():
    assert NICKNAME.validate("ピ").ok
    empty = NICKNAME.validate("")
    assert not empty.ok
    assert "1〜20" in empty.error


def test_validators_are_pure():
    assert PLAYER_NAME.validate("ab") == PLAYER_NAME.validate("ab")
    assert PLAYER_NAME.validate("abc") == PLAYER_NAME.validate("abc")


def test_battle_action_accepts_only_three_tokens():
    assert BATTLE_ACTION.validate("たたかう").value is BattleAction.FIGHT
    assert BATTLE_ACTION.validate("つかまえる").value is BattleAction.CAPTURE
    assert BATTLE_ACTION.validate("にげる").value is BattleAction.FLEE
    for value in ("fight", "", None, "たたかう "):
        result = BATTLE_ACTION.validate(value)
        assert not result.ok
        assert "バトルアクションが無効です" in result.error


def test_require_raises_validation_error():
    assert require(NICKNAME.validate("ピカ")) == "ピカ"
    with pytest.raises(ValidationFailedError) as excinfo:
        require(NICKNAME.validate("x" * 21))
    assert excinfo.value.status_code == 400
