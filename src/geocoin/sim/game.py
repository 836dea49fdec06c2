from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable

from geocoin.sim.caches import DEFAULT_SPAWN_PROBABILITY, Cache, CacheStore, Coin
from geocoin.sim.grid import (
    DEFAULT_NEIGHBORHOOD_RADIUS,
    DEFAULT_TILE_SIZE,
    Grid,
    LatLng,
    cell_key,
    require_coordinate,
)
from geocoin.sim.player import Player
from geocoin.sim.rng import Luck, rand

DEFAULT_START = LatLng(lat=36.98949379578401, lng=-122.06277128548504)
DIRECTIONS: dict[str, tuple[int, int]] = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameConfig:
    tile_size: float = DEFAULT_TILE_SIZE
    neighborhood_radius: int = DEFAULT_NEIGHBORHOOD_RADIUS
    spawn_probability: float = DEFAULT_SPAWN_PROBABILITY
    start: LatLng = DEFAULT_START

    def __post_init__(self) -> None:
        if isinstance(self.tile_size, bool) or not isinstance(self.tile_size, (int, float)) or not self.tile_size > 0:
            raise ValueError("tile_size must be a positive number")
        if not math.isfinite(self.tile_size):
            raise ValueError("tile_size must be finite")
        if isinstance(self.neighborhood_radius, bool) or not isinstance(self.neighborhood_radius, int):
            raise ValueError("neighborhood_radius must be an integer")
        if self.neighborhood_radius < 0:
            raise ValueError("neighborhood_radius must be >= 0")
        if isinstance(self.spawn_probability, bool) or not isinstance(self.spawn_probability, (int, float)):
            raise ValueError("spawn_probability must be a number")
        if self.spawn_probability < 0.0 or self.spawn_probability > 1.0:
            raise ValueError("spawn_probability must be within [0.0, 1.0]")
        require_coordinate(self.start.lat, field_name="start.lat")
        require_coordinate(self.start.lng, field_name="start.lng")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tile_size": self.tile_size,
            "neighborhood_radius": self.neighborhood_radius,
            "spawn_probability": self.spawn_probability,
            "start": self.start.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameConfig":
        defaults = cls()
        start = data.get("start")
        return cls(
            tile_size=data.get("tile_size", defaults.tile_size),
            neighborhood_radius=data.get("neighborhood_radius", defaults.neighborhood_radius),
            spawn_probability=data.get("spawn_probability", defaults.spawn_probability),
            start=LatLng.from_dict(start) if isinstance(start, dict) else defaults.start,
        )


class Game:
    """One play session: grid, cache store and player wired together.

    Every position update re-materializes the caches around the player.
    Mutations are committed to the store and then handed to ``autosave``
    (if given) so a persistence layer can flush them.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        *,
        player: Player | None = None,
        luck: Luck = rand,
        autosave: Callable[["Game"], None] | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.grid = Grid(tile_size=self.config.tile_size, neighborhood_radius=self.config.neighborhood_radius)
        self.caches = CacheStore(spawn_probability=self.config.spawn_probability, luck=luck)
        self.player = player or self._new_player()
        self.autosave = autosave

    def _new_player(self) -> Player:
        return Player(position=self.config.start, path=[self.config.start])

    def refresh(self) -> list[Cache]:
        self.caches.release_all()
        position = self.player.position
        for cell in self.grid.cells_near(position.lat, position.lng):
            if self.caches.has_cache(cell.i, cell.j):
                self.caches.materialize(cell.i, cell.j)
        visible = self.caches.visible
        logger.debug("%d caches visible around %s", len(visible), position)
        return visible

    def visible_caches(self) -> list[Cache]:
        return self.caches.visible

    def cache_at(self, i: int, j: int) -> Cache:
        key = cell_key(i, j)
        for cache in self.caches.visible:
            if cache.key == key:
                return cache
        raise ValueError(f"no visible cache at {key}")

    def move(self, direction: str) -> LatLng:
        if direction not in DIRECTIONS:
            raise ValueError(f"unknown direction: {direction}")
        d_lat, d_lng = DIRECTIONS[direction]
        position = self.player.position
        return self.move_to(
            position.lat + d_lat * self.config.tile_size,
            position.lng + d_lng * self.config.tile_size,
        )

    def move_to(self, lat: float, lng: float) -> LatLng:
        destination = LatLng(
            lat=require_coordinate(lat, field_name="lat"),
            lng=require_coordinate(lng, field_name="lng"),
        )
        self.player.move_to(destination)
        self.refresh()
        self._save()
        return self.player.position

    def collect(self, i: int, j: int) -> Coin | None:
        coin = self.caches.collect(self.cache_at(i, j), self.player.coins)
        if coin is not None:
            self._save()
        return coin

    def deposit(self, i: int, j: int) -> Coin | None:
        coin = self.caches.deposit(self.cache_at(i, j), self.player.coins)
        if coin is not None:
            self._save()
        return coin

    def reset(self) -> None:
        logger.info("resetting game state")
        self.caches.reset()
        self.player = self._new_player()
        self.refresh()
        self._save()

    def locate(self, coin: Coin) -> LatLng:
        """Center of the cell the coin was minted in."""
        return self.grid.center_for(self.grid.cell_at(coin.i, coin.j))

    def status(self) -> dict[str, Any]:
        position = self.player.position
        cell = self.grid.cell_for(position.lat, position.lng)
        return {
            "position": position.to_dict(),
            "cell": cell.to_dict(),
            "coins": len(self.player.coins),
            "path_length": len(self.player.path),
            "visible_caches": len(self.caches.visible),
            "known_caches": len(self.caches),
        }

    def _save(self) -> None:
        if self.autosave is not None:
            self.autosave(self)
