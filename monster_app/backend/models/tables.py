"""Database tables for players, species master data and owned monsters."""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .dates import now_utc


class Player(Base):
    __tablename__ = "players"

    id = Column(String(36), primary_key=True)
    name = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc)

    monsters = relationship("OwnedMonster", back_populates="player", order_by="OwnedMonster.obtained_at")


class MonsterSpecies(Base):
    __tablename__ = "monster_species"

    id = Column(String(64), primary_key=True)
    name = Column(String(50), nullable=False)
    base_hp = Column(Integer, nullable=False, comment="基本HP")
    rarity = Column(String(10), nullable=False, default="common", comment="common / rare / epic")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc)

    __table_args__ = (CheckConstraint("base_hp >= 1", name="ck_species_base_hp"),)


class OwnedMonster(Base):
    __tablename__ = "owned_monsters"

    id = Column(String(36), primary_key=True)
    player_id = Column(String(36), ForeignKey("players.id"), nullable=False, index=True)
    species_id = Column(String(64), ForeignKey("monster_species.id"), nullable=False)
    nickname = Column(String(20), nullable=True)
    current_hp = Column(Integer, nullable=False)
    max_hp = Column(Integer, nullable=False)
    obtained_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc)

    player = relationship("Player", back_populates="monsters")
    species = relationship("MonsterSpecies", lazy="joined")

    __table_args__ = (
        CheckConstraint("max_hp >= 1", name="ck_owned_max_hp"),
        CheckConstraint("current_hp >= 0 AND current_hp <= max_hp", name="ck_owned_current_hp"),
    )

    @property
    def display_name(self) -> str:
        return self.nickname or self.species.name
