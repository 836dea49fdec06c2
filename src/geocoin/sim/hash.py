from __future__ import annotations

import hashlib
import json
from typing import Any

from geocoin.sim.caches import CacheStore
from geocoin.sim.game import Game


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def store_hash(store: CacheStore) -> str:
    return _digest(sorted([key, memento] for key, memento in store.snapshot()))


def state_hash(entries: dict[str, Any]) -> str:
    """Hash of the four persisted entries (mementos, coins, position, path)."""
    return _digest(
        {
            "mementos": [list(pair) for pair in entries["mementos"]],
            "coins": entries["coins"],
            "position": entries["position"],
            "path": entries["path"],
        }
    )


def game_hash(game: Game) -> str:
    return state_hash(
        {
            "mementos": game.caches.snapshot(),
            "coins": game.player.coins_payload(),
            "position": game.player.position_payload(),
            "path": game.player.path_payload(),
        }
    )
