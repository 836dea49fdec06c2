from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from geocoin.sim.grid import cell_key, parse_cell_key
from geocoin.sim.rng import Luck, luck_key, rand

MEMENTO_VERSION = 1
SUPPORTED_MEMENTO_VERSIONS = {MEMENTO_VERSION}
DEFAULT_SPAWN_PROBABILITY = 0.1
INITIAL_COIN_LIMIT = 100
INITIAL_VALUE_KEY = "iniValue"

logger = logging.getLogger(__name__)


def _require_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


@dataclass(frozen=True)
class Coin:
    """One token, stamped with the cache it was minted in."""

    i: int
    j: int
    serial: int

    @property
    def label(self) -> str:
        return f"{self.i}:{self.j}#{self.serial}"

    def to_dict(self) -> dict[str, int]:
        return {"i": self.i, "j": self.j, "serial": self.serial}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coin":
        if not isinstance(data, dict):
            raise ValueError("coin must be an object")
        missing = {"i", "j", "serial"} - set(data.keys())
        if missing:
            raise ValueError(f"coin missing fields: {sorted(missing)}")
        return cls(
            i=_require_int(data["i"], field_name="coin.i"),
            j=_require_int(data["j"], field_name="coin.j"),
            serial=_require_int(data["serial"], field_name="coin.serial"),
        )


def encode_memento(coins: Iterable[Coin]) -> str:
    payload = {"version": MEMENTO_VERSION, "coins": [coin.to_dict() for coin in coins]}
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def decode_memento(memento: str) -> list[Coin]:
    if not isinstance(memento, str):
        raise ValueError("memento must be a string")
    try:
        payload = json.loads(memento)
    except json.JSONDecodeError as exc:
        raise ValueError(f"memento is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ValueError("memento must be an object")
    version = payload.get("version")
    if version not in SUPPORTED_MEMENTO_VERSIONS:
        raise ValueError(f"unsupported memento version: {version!r}")
    coins = payload.get("coins")
    if not isinstance(coins, list):
        raise ValueError("memento.coins must be a list")
    return [Coin.from_dict(row) for row in coins]


@dataclass
class Cache:
    """Coins currently held at cell (i, j); index 0 is collected next."""

    i: int
    j: int
    coins: list[Coin] = field(default_factory=list)

    @property
    def key(self) -> str:
        return cell_key(self.i, self.j)

    def to_memento(self) -> str:
        return encode_memento(self.coins)

    def from_memento(self, memento: str) -> None:
        self.coins = decode_memento(memento)


class CacheStore:
    """Sparse world state: one memento per visited cell, caches built on demand.

    The memento mapping is the source of truth. Cache objects handed out by
    :meth:`materialize` are transient views that must be passed back to
    :meth:`commit` after every mutation.
    """

    def __init__(
        self,
        *,
        spawn_probability: float = DEFAULT_SPAWN_PROBABILITY,
        luck: Luck = rand,
    ) -> None:
        if isinstance(spawn_probability, bool) or not isinstance(spawn_probability, (int, float)):
            raise ValueError("spawn_probability must be a number")
        if spawn_probability < 0.0 or spawn_probability > 1.0:
            raise ValueError("spawn_probability must be within [0.0, 1.0]")
        self.spawn_probability = float(spawn_probability)
        self._luck = luck
        self._mementos: dict[str, str] = {}
        self._visible: dict[str, Cache] = {}

    def __len__(self) -> int:
        return len(self._mementos)

    def __contains__(self, key: object) -> bool:
        return key in self._mementos

    @property
    def visible(self) -> list[Cache]:
        return list(self._visible.values())

    def memento_for(self, i: int, j: int) -> str | None:
        return self._mementos.get(cell_key(i, j))

    def has_cache(self, i: int, j: int) -> bool:
        return self._luck(luck_key(i, j)) < self.spawn_probability

    def initial_coin_count(self, i: int, j: int) -> int:
        return math.floor(self._luck(luck_key(i, j, INITIAL_VALUE_KEY)) * INITIAL_COIN_LIMIT)

    def spawn(self, i: int, j: int) -> Cache:
        count = self.initial_coin_count(i, j)
        return Cache(i=i, j=j, coins=[Coin(i=i, j=j, serial=serial) for serial in range(count)])

    def materialize(self, i: int, j: int) -> Cache:
        key = cell_key(i, j)
        memento = self._mementos.get(key)
        if memento is None:
            cache = self.spawn(i, j)
            logger.debug("spawned cache %s with %d coins", key, len(cache.coins))
        else:
            cache = Cache(i=i, j=j)
            cache.from_memento(memento)
            logger.debug("restored cache %s with %d coins", key, len(cache.coins))
        self._visible[key] = cache
        return cache

    def release_all(self) -> None:
        self._visible.clear()

    def commit(self, cache: Cache) -> None:
        self._mementos[cache.key] = cache.to_memento()

    def reset(self) -> None:
        logger.info("clearing %d cache mementos", len(self._mementos))
        self._mementos.clear()
        self._visible.clear()

    def snapshot(self) -> list[tuple[str, str]]:
        return list(self._mementos.items())

    def load(self, entries: Iterable[tuple[str, str]]) -> None:
        loaded: dict[str, str] = {}
        for index, entry in enumerate(entries):
            if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                raise ValueError(f"mementos[{index}] must be a (key, memento) pair")
            key, memento = entry
            i, j = parse_cell_key(key)
            if key != cell_key(i, j):
                raise ValueError(f"mementos[{index}] key is not canonical: {key!r}")
            decode_memento(memento)
            loaded[key] = memento
        self._mementos = loaded
        self._visible.clear()

    def collect(self, cache: Cache, inventory: list[Coin]) -> Coin | None:
        """Move the front coin of ``cache`` onto the top of ``inventory``."""
        if not cache.coins:
            return None
        coin = cache.coins.pop(0)
        inventory.append(coin)
        self.commit(cache)
        return coin

    def deposit(self, cache: Cache, inventory: list[Coin]) -> Coin | None:
        """Move the top coin of ``inventory`` to the front of ``cache``."""
        if not inventory:
            return None
        coin = inventory.pop()
        cache.coins.insert(0, coin)
        self.commit(cache)
        return coin
