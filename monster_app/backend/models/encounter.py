"""Tile map movement and random encounter checks."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from loguru import logger

WALKABLE_TILES = {"grass", "town"}
ENCOUNTER_TILES = {"grass"}

TILE_MESSAGES = {
    "water": "水の上は歩けません",
    "mountain": "山は険しくて通れません",
}
OUT_OF_BOUNDS = "これ以上先には進めません"
INVALID_STEP = "一度に動けるのは1マスだけです"
TOWN_ARRIVAL = "街に到着しました。モンスターたちが元気になった!"
WILD_APPEARED = "野生の{name}が現れた!"
NO_USABLE_MONSTER = "野生のモンスターが現れた! しかし たたかえるモンスターがいません"


class MapDataError(ValueError):
    """Raised when map master data is inconsistent."""


@dataclass(frozen=True)
class GameMap:
    """Grid of tiles with a starting position."""

    id: str
    name: str
    description: str
    width: int
    height: int
    start: Tuple[int, int]
    tiles: Tuple[Tuple[str, ...], ...]

    @classmethod
    def from_dict(cls, map_id: str, data: Dict) -> "GameMap":
        legend = data["legend"]
        tiles = tuple(tuple(legend[char] for char in row) for row in data["tiles"])
        game_map = cls(
            id=map_id,
            name=data["name"],
            description=data.get("description", ""),
            width=data["width"],
            height=data["height"],
            start=(data["start"]["x"], data["start"]["y"]),
            tiles=tiles,
        )
        game_map.validate()
        return game_map

    def validate(self) -> None:
        if len(self.tiles) != self.height:
            raise MapDataError(f"{self.id}: expected {self.height} rows, got {len(self.tiles)}")
        for y, row in enumerate(self.tiles):
            if len(row) != self.width:
                raise MapDataError(f"{self.id}: row {y} has width {len(row)}, expected {self.width}")
        x, y = self.start
        if not self.in_bounds(x, y):
            raise MapDataError(f"{self.id}: start position is outside the map")
        if self.tile_at(x, y) not in WALKABLE_TILES:
            raise MapDataError(f"{self.id}: start position is not walkable")

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, x: int, y: int) -> str:
        return self.tiles[y][x]

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "width": self.width,
            "height": self.height,
            "startPosition": {"x": self.start[0], "y": self.start[1]},
            "tiles": [list(row) for row in self.tiles],
        }


@dataclass
class MapSession:
    """A player's position on a map and the last status line shown to them."""

    player_id: str
    map_id: str
    x: int
    y: int
    message: str = ""

    @classmethod
    def at_start(cls, player_id: str, game_map: GameMap) -> "MapSession":
        x, y = game_map.start
        return cls(player_id=player_id, map_id=game_map.id, x=x, y=y)

    def to_dict(self) -> Dict:
        return {
            "playerId": self.player_id,
            "mapId": self.map_id,
            "position": {"x": self.x, "y": self.y},
            "message": self.message,
        }


@dataclass
class MoveResult:
    """Outcome of one movement command."""

    moved: bool
    tile: Optional[str] = None
    encounter: bool = False
    messages: List[str] = field(default_factory=list)


def roll_encounter(rng: random.Random, rate: float) -> bool:
    """Independent per-step encounter check."""

    return rng.random() < rate


def move(
    session: MapSession,
    game_map: GameMap,
    dx: int,
    dy: int,
    rng: random.Random,
    encounter_rate: float,
) -> MoveResult:
    """Move one tile and roll for an encounter on grass.

    Rejected moves leave the position untouched and set the session message.
    """

    if abs(dx) + abs(dy) != 1:
        session.message = INVALID_STEP
        return MoveResult(moved=False, messages=[INVALID_STEP])

    x, y = session.x + dx, session.y + dy
    if not game_map.in_bounds(x, y):
        session.message = OUT_OF_BOUNDS
        return MoveResult(moved=False, messages=[OUT_OF_BOUNDS])

    tile = game_map.tile_at(x, y)
    if tile not in WALKABLE_TILES:
        message = TILE_MESSAGES.get(tile, OUT_OF_BOUNDS)
        session.message = message
        return MoveResult(moved=False, tile=tile, messages=[message])

    session.x, session.y = x, y
    session.message = ""
    result = MoveResult(moved=True, tile=tile)
    if tile == "town":
        result.messages.append(TOWN_ARRIVAL)
        session.message = TOWN_ARRIVAL
    elif tile in ENCOUNTER_TILES and roll_encounter(rng, encounter_rate):
        logger.debug("Encounter triggered for {} at ({}, {})", session.player_id, x, y)
        result.encounter = True
    return result
