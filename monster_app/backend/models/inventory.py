"""Persistence operations for players and their monsters."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from .dates import format_ja, now_utc, relative_ja, to_iso
from .domain import BattleMonster, CapturedMonster
from .errors import NoUsableMonsterError, NotFoundError, ValidationFailedError
from .ids import generate_uuid
from .tables import MonsterSpecies, OwnedMonster, Player

PLAYER_NOT_FOUND = "プレイヤーが見つかりません"
MONSTER_NOT_FOUND = "モンスターが見つかりません"
SPECIES_NOT_FOUND = "モンスター種族が見つかりません"


def player_to_dict(player: Player) -> Dict:
    return {
        "id": player.id,
        "name": player.name,
        "createdAt": to_iso(player.created_at),
    }


def species_to_dict(species: MonsterSpecies) -> Dict:
    return {
        "id": species.id,
        "name": species.name,
        "baseHp": species.base_hp,
        "rarity": species.rarity,
        "description": species.description,
    }


def monster_to_dict(monster: OwnedMonster) -> Dict:
    """Owned monster with the display fields used by the monster list."""

    return {
        "id": monster.id,
        "playerId": monster.player_id,
        "speciesId": monster.species_id,
        "speciesName": monster.species.name,
        "speciesDescription": monster.species.description,
        "nickname": monster.nickname,
        "displayName": monster.display_name,
        "currentHp": monster.current_hp,
        "maxHp": monster.max_hp,
        "capturedAt": to_iso(monster.obtained_at),
        "capturedAtLabel": format_ja(monster.obtained_at),
        "capturedAgo": relative_ja(monster.obtained_at),
    }


def list_species(db: Session) -> List[MonsterSpecies]:
    return db.query(MonsterSpecies).order_by(MonsterSpecies.base_hp, MonsterSpecies.id).all()


def get_species(db: Session, species_id: str) -> MonsterSpecies:
    species = db.get(MonsterSpecies, species_id)
    if species is None:
        logger.warning("Unknown species requested: {}", species_id)
        raise NotFoundError(SPECIES_NOT_FOUND)
    return species


def list_players(db: Session) -> List[Player]:
    return db.query(Player).order_by(Player.created_at).all()


def get_player(db: Session, player_id: str, message: str = PLAYER_NOT_FOUND) -> Player:
    player = db.get(Player, player_id)
    if player is None:
        raise NotFoundError(message)
    return player


def _new_monster(player_id: str, species: MonsterSpecies) -> OwnedMonster:
    now = now_utc()
    return OwnedMonster(
        id=generate_uuid(),
        player_id=player_id,
        species_id=species.id,
        nickname=None,
        current_hp=species.base_hp,
        max_hp=species.base_hp,
        obtained_at=now,
        updated_at=now,
    )


def create_player(db: Session, name: str, starter_species_id: str) -> Tuple[Player, OwnedMonster]:
    """Register a player and grant the starter monster in one transaction."""

    species = db.get(MonsterSpecies, starter_species_id)
    if species is None:
        logger.warning("Starter species missing from master data: {}", starter_species_id)
        raise ValidationFailedError("選択できないスターターモンスターです")

    now = now_utc()
    player = Player(id=generate_uuid(), name=name, created_at=now, updated_at=now)
    starter = _new_monster(player.id, species)
    db.add(player)
    db.add(starter)
    db.commit()
    db.refresh(player)
    db.refresh(starter)
    logger.info("Player {} created with starter {} ({})", player.id, starter.id, species.name)
    return player, starter


def list_monsters(db: Session, player_id: str, order: str = "asc") -> List[OwnedMonster]:
    get_player(db, player_id)
    sort_key = OwnedMonster.obtained_at.desc() if order == "desc" else OwnedMonster.obtained_at.asc()
    return (
        db.query(OwnedMonster)
        .filter(OwnedMonster.player_id == player_id)
        .order_by(sort_key, OwnedMonster.id)
        .all()
    )


def acquire_monster(db: Session, player_id: str, species_id: str) -> OwnedMonster:
    player = get_player(db, player_id)
    species = get_species(db, species_id)
    monster = _new_monster(player.id, species)
    db.add(monster)
    db.commit()
    db.refresh(monster)
    logger.info("Player {} acquired {} ({})", player_id, monster.id, species.name)
    return monster


def get_monster(db: Session, monster_id: str) -> OwnedMonster:
    monster = db.get(OwnedMonster, monster_id)
    if monster is None or monster.player is None:
        raise NotFoundError(MONSTER_NOT_FOUND)
    return monster


def update_nickname(db: Session, monster_id: str, nickname: str) -> OwnedMonster:
    monster = get_monster(db, monster_id)
    monster.nickname = nickname
    monster.updated_at = now_utc()
    db.commit()
    db.refresh(monster)
    logger.info("Monster {} renamed to {}", monster_id, nickname)
    return monster


def release_monster(db: Session, monster_id: str) -> Dict:
    """Delete the monster and return its last state."""

    monster = get_monster(db, monster_id)
    released = monster_to_dict(monster)
    db.delete(monster)
    db.commit()
    logger.info("Monster {} released by {}", monster_id, released["playerId"])
    return released


def heal_all(db: Session, player_id: str) -> int:
    """Restore every monster of the player to full HP; returns how many changed."""

    healed = 0
    for monster in list_monsters(db, player_id):
        if monster.current_hp < monster.max_hp:
            monster.current_hp = monster.max_hp
            monster.updated_at = now_utc()
            healed += 1
    db.commit()
    return healed


def usable_monster(db: Session, player_id: str, monster_id: Optional[str] = None) -> OwnedMonster:
    """The requested monster, or the first one with HP left."""

    if monster_id:
        monster = get_monster(db, monster_id)
        if monster.player_id != player_id:
            raise NotFoundError(MONSTER_NOT_FOUND)
        if monster.current_hp <= 0:
            raise NoUsableMonsterError(f"{monster.display_name}はたたかえる状態ではありません")
        return monster
    for monster in list_monsters(db, player_id):
        if monster.current_hp > 0:
            return monster
    raise NoUsableMonsterError()


def to_battle_monster(monster: OwnedMonster) -> BattleMonster:
    return BattleMonster(
        id=monster.id,
        name=monster.display_name,
        current_hp=monster.current_hp,
        max_hp=monster.max_hp,
    )


def save_captured(db: Session, captured: CapturedMonster) -> OwnedMonster:
    """Persist a monster produced by a successful capture."""

    get_player(db, captured.player_id)
    get_species(db, captured.species_id)
    monster = OwnedMonster(
        id=captured.id,
        player_id=captured.player_id,
        species_id=captured.species_id,
        nickname=captured.nickname,
        current_hp=captured.current_hp,
        max_hp=captured.max_hp,
        obtained_at=captured.captured_at,
        updated_at=captured.captured_at,
    )
    db.add(monster)
    db.commit()
    db.refresh(monster)
    logger.info("Player {} captured {} ({})", captured.player_id, monster.id, captured.species_name)
    return monster


def write_back_hp(db: Session, battle_monster: BattleMonster) -> None:
    """Apply the damage the active monster took during a battle to its row.

    Only the damage is written, so healing that happened while the battle
    was open is kept.
    """

    monster = db.get(OwnedMonster, battle_monster.id)
    if monster is None:
        logger.warning("Battle monster {} no longer exists, HP not saved", battle_monster.id)
        return
    monster.current_hp = max(0, min(monster.current_hp - battle_monster.damage_taken, monster.max_hp))
    monster.updated_at = now_utc()
    db.commit()
