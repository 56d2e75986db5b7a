"""Battle handling endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from loguru import logger
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models import inventory
from ..models.domain import BattleInfo, BattleRules, WildMonster, apply_action, start_battle
from ..models.errors import ValidationFailedError
from ..models.ids import generate_short_id
from ..models.schemas import BattleActRequest, BattleStartRequest
from ..models.validation import BATTLE_ACTION, require

router = APIRouter(tags=["battles"])


def battle_rules() -> BattleRules:
    return BattleRules(
        player_damage=settings.player_damage,
        wild_damage=settings.wild_damage,
        flee_chance=settings.flee_chance,
    )


def begin_battle(
    request: Request,
    db: Session,
    player_id: str,
    wild: WildMonster,
    player_monster_id: Optional[str] = None,
) -> BattleInfo:
    """Start a battle for the player's active monster and keep it in the store."""

    inventory.get_player(db, player_id)
    ally = inventory.usable_monster(db, player_id, player_monster_id)
    battle = start_battle(
        player_id,
        wild,
        inventory.to_battle_monster(ally),
        battle_id=generate_short_id(settings.battle_id_length),
    )
    request.app.state.battles.add(battle)
    logger.info("Battle {} started: {} vs wild {}", battle.id, ally.id, wild.species_id)
    return battle


@router.post("/battles")
def battle_start(payload: BattleStartRequest, request: Request, db: Session = Depends(get_db)):
    """Initialize a battle and store it in the application state."""

    data = request.app.state.data
    inventory.get_species(db, payload.wildMonster.speciesId)
    wild = data.new_wild_monster(payload.wildMonster.speciesId)
    if payload.wildMonster.maxHp is not None and payload.wildMonster.maxHp != wild.max_hp:
        raise ValidationFailedError("最大HPが種族の基本HPと一致しません")
    if payload.wildMonster.currentHp is not None and payload.wildMonster.currentHp != wild.max_hp:
        raise ValidationFailedError("野生のモンスターはHPが満タンの状態でしか出現しません")
    battle = begin_battle(request, db, payload.playerId, wild, payload.playerMonsterId)
    return battle.snapshot()


@router.get("/battles/{battle_id}")
def battle_get(battle_id: str, request: Request):
    """Reload the current state of a battle."""

    return request.app.state.battles.get(battle_id).snapshot()


@router.post("/battles/{battle_id}/actions")
def battle_act(battle_id: str, payload: BattleActRequest, request: Request, db: Session = Depends(get_db)):
    """Execute a player action and advance the battle."""

    action = require(BATTLE_ACTION.validate(payload.action))
    with request.app.state.battles.acting(battle_id) as battle:
        result = apply_action(battle, action, battle_rules())
        if battle.state.concluded:
            logger.info("Battle {} concluded: {}", battle.id, battle.state.value)
            if battle.player_monster is not None:
                inventory.write_back_hp(db, battle.player_monster)
            if result.captured_monster is not None:
                inventory.save_captured(db, result.captured_monster)
    return result.to_dict()


@router.delete("/battles/{battle_id}")
def battle_discard(battle_id: str, request: Request, db: Session = Depends(get_db)):
    """Forget a battle. Damage taken in an unfinished battle is still saved."""

    battles = request.app.state.battles
    with battles.acting(battle_id) as battle:
        if not battle.state.concluded and battle.player_monster is not None:
            logger.info("Battle {} abandoned", battle.id)
            inventory.write_back_hp(db, battle.player_monster)
        battles.discard(battle_id)
    return {"success": True, "data": battle.snapshot()}
