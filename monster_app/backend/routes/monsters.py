"""Owned monster endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import inventory
from ..models.schemas import NicknameUpdateRequest
from ..models.validation import NICKNAME, require

router = APIRouter(tags=["monsters"])


@router.patch("/monsters/{monster_id}")
@router.put("/monsters/{monster_id}", include_in_schema=False)
def update_nickname(monster_id: str, payload: NicknameUpdateRequest, db: Session = Depends(get_db)):
    """Rename an owned monster."""

    nickname = require(NICKNAME.validate(payload.nickname))
    monster = inventory.update_nickname(db, monster_id, nickname)
    return {"success": True, "data": inventory.monster_to_dict(monster)}


@router.delete("/monsters/{monster_id}")
def release_monster(monster_id: str, db: Session = Depends(get_db)):
    """Release a monster back into the wild."""

    released = inventory.release_monster(db, monster_id)
    return {"success": True, "data": released, "message": f"{released['displayName']}をにがしました"}
