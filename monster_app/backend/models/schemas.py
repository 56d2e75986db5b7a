"""Pydantic schemas for API requests."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class PlayerCreateRequest(BaseModel):
    """Request payload to register a player.

    ``name`` is left untyped so the name policy reports the error itself.
    """

    name: Any = None
    speciesId: Optional[str] = Field(default=None, alias="speciesId")

    class Config:
        populate_by_name = True


class MonsterAcquireRequest(BaseModel):
    """Request payload to add a monster of a given species."""

    speciesId: str = Field(alias="speciesId", min_length=1)

    class Config:
        populate_by_name = True


class NicknameUpdateRequest(BaseModel):
    """Request payload to rename an owned monster."""

    nickname: Any = None


class WildMonsterModel(BaseModel):
    """Wild monster chosen by the client for a battle."""

    speciesId: str = Field(alias="speciesId", min_length=1)
    speciesName: Optional[str] = Field(default=None, alias="speciesName")
    currentHp: Optional[int] = Field(default=None, alias="currentHp", ge=0)
    maxHp: Optional[int] = Field(default=None, alias="maxHp", ge=1)

    class Config:
        populate_by_name = True


class BattleStartRequest(BaseModel):
    """Request payload to start a battle."""

    playerId: str = Field(alias="playerId", min_length=1)
    wildMonster: WildMonsterModel = Field(alias="wildMonster")
    playerMonsterId: Optional[str] = Field(default=None, alias="playerMonsterId")

    class Config:
        populate_by_name = True


class BattleActRequest(BaseModel):
    """Request payload to act in battle; the action token is checked by the battle schema."""

    action: Any = None


class MoveRequest(BaseModel):
    """Request payload for one step on the map."""

    dx: int = 0
    dy: int = 0