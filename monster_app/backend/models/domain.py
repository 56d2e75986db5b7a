"""Battle state machine for wild monster encounters."""
from __future__ import annotations

import random
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

from .dates import now_utc, to_iso
from .errors import BattleConcludedError, NotFoundError
from .ids import generate_short_id, generate_uuid
from .validation import BattleAction


class BattleState(str, Enum):
    """Phase of a single encounter. Everything except ``BATTLE`` is terminal."""

    BATTLE = "battle"
    CAPTURE = "capture"
    VICTORY = "victory"
    DEFEAT = "defeat"
    ESCAPE = "escape"

    @property
    def concluded(self) -> bool:
        return self is not BattleState.BATTLE


@dataclass
class WildMonster:
    """Unowned monster generated for one encounter."""

    species_id: str
    species_name: str
    current_hp: int
    max_hp: int

    def to_dict(self) -> Dict:
        return {
            "speciesId": self.species_id,
            "speciesName": self.species_name,
            "currentHp": self.current_hp,
            "maxHp": self.max_hp,
        }


@dataclass
class BattleMonster:
    """The player's monster taking part in the battle."""

    id: str
    name: str
    current_hp: int
    max_hp: int
    start_hp: Optional[int] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.start_hp is None:
            self.start_hp = self.current_hp

    @property
    def damage_taken(self) -> int:
        return max(0, self.start_hp - self.current_hp)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "currentHp": self.current_hp,
            "maxHp": self.max_hp,
        }


@dataclass
class CapturedMonster:
    """Owned-monster record produced by a successful capture."""

    id: str
    player_id: str
    species_id: str
    species_name: str
    current_hp: int
    max_hp: int
    captured_at: datetime
    nickname: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "playerId": self.player_id,
            "speciesId": self.species_id,
            "speciesName": self.species_name,
            "nickname": self.nickname,
            "currentHp": self.current_hp,
            "maxHp": self.max_hp,
            "capturedAt": to_iso(self.captured_at),
        }


@dataclass
class BattleInfo:
    """In-memory representation of an on-going battle."""

    id: str
    player_id: str
    wild_monster: WildMonster
    started_at: datetime
    state: BattleState = BattleState.BATTLE
    player_monster: Optional[BattleMonster] = None
    log: List[str] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def snapshot(self) -> Dict:
        """Build a serializable snapshot of the battle."""

        return {
            "id": self.id,
            "playerId": self.player_id,
            "wildMonster": self.wild_monster.to_dict(),
            "playerMonster": self.player_monster.to_dict() if self.player_monster else None,
            "state": self.state.value,
            "startedAt": to_iso(self.started_at),
            "log": list(self.log),
        }


@dataclass
class ActionResult:
    """What one submitted action produced."""

    battle: BattleInfo
    message: str
    captured_monster: Optional[CapturedMonster] = None

    def to_dict(self) -> Dict:
        payload = {"battleInfo": self.battle.snapshot(), "message": self.message}
        if self.captured_monster is not None:
            payload["capturedMonster"] = self.captured_monster.to_dict()
        return payload


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp a numeric value between the supplied bounds."""

    return max(minimum, min(value, maximum))


def hp_ratio_capture_chance(wild: WildMonster) -> float:
    """Weaker wild monsters are easier to catch."""

    ratio = wild.current_hp / wild.max_hp if wild.max_hp else 0.0
    return clamp(1.0 - 0.7 * ratio, 0.2, 0.95)


@dataclass
class BattleRules:
    """Balance parameters applied by :func:`apply_action`."""

    player_damage: int = 10
    wild_damage: int = 8
    flee_chance: float = 0.9
    capture_chance: Callable[[WildMonster], float] = hp_ratio_capture_chance


def apply_damage(current_hp: int, damage: int) -> int:
    """Subtract ``damage`` from ``current_hp`` without going below zero."""

    return max(0, current_hp - damage)


def start_battle(
    player_id: str,
    wild_monster: WildMonster,
    player_monster: Optional[BattleMonster] = None,
    *,
    battle_id: Optional[str] = None,
    rng_seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> BattleInfo:
    """Create a new battle in the ``battle`` state and return it."""

    battle = BattleInfo(
        id=battle_id or generate_short_id(12),
        player_id=player_id,
        wild_monster=wild_monster,
        started_at=now or now_utc(),
        player_monster=player_monster,
        rng=random.Random(rng_seed) if rng_seed is not None else random.Random(),
    )
    battle.log.append(f"野生の{wild_monster.species_name}が現れた!")
    return battle


def wild_counter_attack(battle: BattleInfo, rules: BattleRules) -> List[str]:
    """Let the wild monster strike the player's active monster."""

    ally = battle.player_monster
    wild = battle.wild_monster
    if ally is None or rules.wild_damage <= 0:
        return []
    ally.current_hp = apply_damage(ally.current_hp, rules.wild_damage)
    lines = [f"野生の{wild.species_name}のこうげき! {ally.name}に{rules.wild_damage}のダメージ!"]
    if ally.current_hp <= 0:
        battle.state = BattleState.DEFEAT
        lines.append(f"{ally.name}はたおれてしまった...")
    return lines


def apply_action(
    battle: BattleInfo,
    action: BattleAction,
    rules: Optional[BattleRules] = None,
    *,
    id_factory: Callable[[], str] = generate_uuid,
    now: Optional[datetime] = None,
) -> ActionResult:
    """Handle the player's selected action and advance the battle.

    Raises :class:`BattleConcludedError` if the battle already reached a
    terminal state.
    """

    if battle.state.concluded:
        raise BattleConcludedError()
    rules = rules or BattleRules()
    wild = battle.wild_monster
    rng = battle.rng
    lines: List[str] = []
    captured: Optional[CapturedMonster] = None

    if action is BattleAction.FIGHT:
        attacker = battle.player_monster.name if battle.player_monster else "プレイヤー"
        wild.current_hp = apply_damage(wild.current_hp, rules.player_damage)
        lines.append(f"{attacker}のこうげき! 野生の{wild.species_name}に{rules.player_damage}のダメージ!")
        if wild.current_hp <= 0:
            battle.state = BattleState.VICTORY
            lines.append(f"野生の{wild.species_name}をたおした!")
        else:
            lines.extend(wild_counter_attack(battle, rules))
    elif action is BattleAction.CAPTURE:
        if rng.random() < rules.capture_chance(wild):
            battle.state = BattleState.CAPTURE
            captured = CapturedMonster(
                id=id_factory(),
                player_id=battle.player_id,
                species_id=wild.species_id,
                species_name=wild.species_name,
                current_hp=wild.current_hp,
                max_hp=wild.max_hp,
                captured_at=now or now_utc(),
            )
            lines.append(f"やった! 野生の{wild.species_name}をつかまえた!")
        else:
            lines.append(f"おしい! 野生の{wild.species_name}はにげだそうとしている!")
            lines.extend(wild_counter_attack(battle, rules))
    elif action is BattleAction.FLEE:
        if rng.random() < rules.flee_chance:
            battle.state = BattleState.ESCAPE
            lines.append("うまく にげだした!")
        else:
            lines.append("しかし にげきれなかった!")
            lines.extend(wild_counter_attack(battle, rules))
    else:
        raise ValueError(f"Unsupported battle action: {action!r}")

    battle.log.extend(lines)
    return ActionResult(battle=battle, message=" ".join(lines), captured_monster=captured)


class BattleStore:
    """Battles kept in memory for the lifetime of the process.

    Each battle has its own lock; actions for it are applied while holding
    that lock so a duplicated submission sees the state left by the first
    one. Concluded battles stay until they are discarded or the same player
    starts another battle.
    """

    def __init__(self) -> None:
        self._battles: Dict[str, BattleInfo] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._battles)

    def add(self, battle: BattleInfo) -> BattleInfo:
        with self._lock:
            stale = [
                other.id
                for other in self._battles.values()
                if other.player_id == battle.player_id and other.state.concluded
            ]
            for battle_id in stale:
                self._forget(battle_id)
            self._battles[battle.id] = battle
            self._locks[battle.id] = threading.Lock()
        return battle

    def get(self, battle_id: str) -> BattleInfo:
        battle = self._battles.get(battle_id)
        if battle is None:
            raise NotFoundError("バトルが見つかりません")
        return battle

    def discard(self, battle_id: str) -> BattleInfo:
        with self._lock:
            battle = self.get(battle_id)
            self._forget(battle_id)
        return battle

    def _forget(self, battle_id: str) -> None:
        del self._battles[battle_id]
        self._locks.pop(battle_id, None)

    @contextmanager
    def acting(self, battle_id: str) -> Iterator[BattleInfo]:
        with self._lock:
            self.get(battle_id)
            battle_lock = self._locks[battle_id]
        with battle_lock:
            # the battle may have been discarded while waiting
            yield self.get(battle_id)
