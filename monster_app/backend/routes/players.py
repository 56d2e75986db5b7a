"""Player related endpoints."""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models import inventory
from ..models.errors import ValidationFailedError
from ..models.game import STARTER_SPECIES
from ..models.schemas import MonsterAcquireRequest, PlayerCreateRequest
from ..models.validation import PLAYER_NAME, require

router = APIRouter(tags=["players"])


@router.post("/players")
def create_player(payload: PlayerCreateRequest, db: Session = Depends(get_db)):
    """Create a new player together with a starter monster."""

    name = require(PLAYER_NAME.validate(payload.name))
    starter_id = payload.speciesId or settings.starter_species_id
    if payload.speciesId and payload.speciesId not in STARTER_SPECIES:
        raise ValidationFailedError("選択できないスターターモンスターです")
    player, starter = inventory.create_player(db, name, starter_id)
    return {
        "success": True,
        "data": {
            "id": player.id,
            "name": player.name,
            "createdAt": inventory.player_to_dict(player)["createdAt"],
            "initialMonsterId": starter.id,
            "initialMonster": inventory.monster_to_dict(starter),
        },
    }


@router.get("/players")
def list_players(db: Session = Depends(get_db)):
    """Return every registered player."""

    players = [inventory.player_to_dict(player) for player in inventory.list_players(db)]
    return {"success": True, "data": players, "count": len(players)}


@router.get("/players/{player_id}")
def get_player(player_id: str, db: Session = Depends(get_db)):
    player = inventory.get_player(db, player_id, "指定されたプレイヤーが見つかりません")
    return {"success": True, "data": inventory.player_to_dict(player)}


@router.get("/players/{player_id}/monsters")
def list_monsters(player_id: str, order: Literal["asc", "desc"] = "asc", db: Session = Depends(get_db)):
    """Return the player's profile and every monster they own."""

    player = inventory.get_player(db, player_id)
    monsters = [inventory.monster_to_dict(monster) for monster in inventory.list_monsters(db, player_id, order)]
    return {
        "success": True,
        "data": {"player": inventory.player_to_dict(player), "monsters": monsters},
        "count": len(monsters),
    }


@router.post("/players/{player_id}/monsters", status_code=201)
def acquire_monster(player_id: str, payload: MonsterAcquireRequest, db: Session = Depends(get_db)):
    """Add a monster of the given species at full HP."""

    monster = inventory.acquire_monster(db, player_id, payload.speciesId)
    return {"success": True, "data": inventory.monster_to_dict(monster)}


@router.post("/players/{player_id}/rest")
def rest(player_id: str, db: Session = Depends(get_db)):
    """Rest in town to restore every monster to full HP."""

    healed = inventory.heal_all(db, player_id)
    monsters = [inventory.monster_to_dict(monster) for monster in inventory.list_monsters(db, player_id)]
    return {"success": True, "data": {"healed": healed, "monsters": monsters}}
