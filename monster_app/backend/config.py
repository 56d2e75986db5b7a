"""Runtime settings read from the environment."""
from __future__ import annotations

import os
from typing import List

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Application settings; every field can be overridden through env vars."""

    database_url: str = "sqlite:///./monster_app.db"
    cors_allow_origins: str = "*"
    log_level: str = "INFO"

    encounter_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    flee_chance: float = Field(default=0.9, ge=0.0, le=1.0)
    player_damage: int = Field(default=10, ge=1)
    wild_damage: int = Field(default=8, ge=0)
    battle_id_length: int = Field(default=12, ge=1)
    starter_species_id: str = "electric_mouse"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    @property
    def is_memory_db(self) -> bool:
        return self.database_url in {"sqlite://", "sqlite:///:memory:"}


def load_settings() -> Settings:
    """Build settings from environment variables, keeping defaults for unset ones."""

    overrides = {}
    for name in Settings.model_fields:
        value = os.getenv(name.upper())
        if value is not None:
            overrides[name] = value
    return Settings(**overrides)


settings = load_settings()
