"""Static game data and helper factories shared across FastAPI routers."""
from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from loguru import logger
from sqlalchemy.orm import Session

from .domain import WildMonster
from .encounter import GameMap
from .errors import NotFoundError
from .tables import MonsterSpecies

APP_VERSION = "0.1.0"
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"

RARITY_WEIGHTS = {"common": 70, "rare": 25, "epic": 5}
STARTER_SPECIES = ("electric_mouse", "fire_lizard", "grass_seed")
DEFAULT_MAP_ID = "default-map-001"


def load_json(path: Path) -> List | Dict:
    """Load JSON from disk."""

    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


class GameData:
    """Container for master data and helper factories."""

    def __init__(self, data_dir: Path = DATA_DIR) -> None:
        self.species_raw = load_json(data_dir / "species.json")
        self.species = {entry["id"]: entry for entry in self.species_raw}
        self.maps = {
            map_id: GameMap.from_dict(map_id, entry)
            for map_id, entry in load_json(data_dir / "maps.json").items()
        }
        self.rng = random.Random()

    def seed_species(self, db: Session) -> int:
        """Insert or refresh the species master rows; returns how many were written."""

        written = 0
        for entry in self.species_raw:
            row = db.get(MonsterSpecies, entry["id"])
            if row is None:
                row = MonsterSpecies(id=entry["id"])
                db.add(row)
            row.name = entry["name"]
            row.base_hp = entry["base_hp"]
            row.rarity = entry.get("rarity", "common")
            row.description = entry.get("description")
            written += 1
        db.commit()
        logger.info("Seeded {} monster species", written)
        return written

    def species_entry(self, species_id: str) -> Dict:
        entry = self.species.get(species_id)
        if not entry:
            raise NotFoundError("モンスター種族が見つかりません")
        return entry

    def game_map(self, map_id: str = DEFAULT_MAP_ID) -> GameMap:
        game_map = self.maps.get(map_id)
        if game_map is None:
            raise NotFoundError("マップが見つかりません")
        return game_map

    def new_wild_monster(self, species_id: str) -> WildMonster:
        """Fresh wild monster at full HP."""

        entry = self.species_entry(species_id)
        return WildMonster(
            species_id=entry["id"],
            species_name=entry["name"],
            current_hp=entry["base_hp"],
            max_hp=entry["base_hp"],
        )

    def pick_wild_species(
        self,
        rng: Optional[random.Random] = None,
        candidates: Optional[Sequence[Dict]] = None,
    ) -> Dict:
        """Choose an encounter species, weighted by rarity tier."""

        rng = rng or self.rng
        pool = list(candidates or self.species_raw)
        weights = [RARITY_WEIGHTS.get(entry.get("rarity", "common"), 1) for entry in pool]
        return rng.choices(pool, weights=weights, k=1)[0]

    def generate_wild_monster(self, rng: Optional[random.Random] = None) -> WildMonster:
        return self.new_wild_monster(self.pick_wild_species(rng)["id"])
