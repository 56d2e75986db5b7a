"""World exploration related endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models import encounter, inventory
from ..models.errors import NoUsableMonsterError
from ..models.game import DEFAULT_MAP_ID
from ..models.schemas import MoveRequest
from .battles import begin_battle

router = APIRouter(tags=["world"])


def map_session(request: Request, player_id: str) -> encounter.MapSession:
    """Return the player's map session, placing them at the start on first use."""

    sessions = request.app.state.maps
    session = sessions.get(player_id)
    if session is None:
        game_map = request.app.state.data.game_map(DEFAULT_MAP_ID)
        session = encounter.MapSession.at_start(player_id, game_map)
        sessions[player_id] = session
    return session


@router.get("/monster-species")
def list_species(db: Session = Depends(get_db)):
    """Return the species master data."""

    species = [inventory.species_to_dict(entry) for entry in inventory.list_species(db)]
    return {"success": True, "data": species, "count": len(species)}


@router.get("/map")
def get_map(request: Request):
    """Return map metadata and tiles."""

    return {"success": True, "data": request.app.state.data.game_map(DEFAULT_MAP_ID).to_dict()}


@router.get("/players/{player_id}/map")
def get_position(player_id: str, request: Request, db: Session = Depends(get_db)):
    """Return the player's position and latest status message."""

    inventory.get_player(db, player_id)
    return {"success": True, "data": map_session(request, player_id).to_dict()}


@router.post("/players/{player_id}/map/move")
def move(player_id: str, payload: MoveRequest, request: Request, db: Session = Depends(get_db)):
    """Move one tile; may trigger a wild encounter and start a battle."""

    inventory.get_player(db, player_id)
    data = request.app.state.data
    session = map_session(request, player_id)
    game_map = data.game_map(session.map_id)
    result = encounter.move(session, game_map, payload.dx, payload.dy, data.rng, settings.encounter_rate)

    battle = None
    if result.moved and result.tile == "town":
        inventory.heal_all(db, player_id)
    if result.encounter:
        wild = data.generate_wild_monster()
        try:
            battle = begin_battle(request, db, player_id, wild)
        except NoUsableMonsterError:
            session.message = encounter.NO_USABLE_MONSTER
        else:
            session.message = encounter.WILD_APPEARED.format(name=wild.species_name)

    return {
        "success": True,
        "data": {
            **session.to_dict(),
            "moved": result.moved,
            "tile": result.tile,
            "encounter": result.encounter,
            "battle": battle.snapshot() if battle else None,
        },
    }
