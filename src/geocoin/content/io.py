from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from geocoin.content.schema import (
    validate_coin_payload,
    validate_export_payload,
    validate_memento_entries,
    validate_path_payload,
    validate_position_payload,
)
from geocoin.content.storage import KeyValueStorage, write_atomic_text
from geocoin.sim.game import Game, GameConfig
from geocoin.sim.hash import state_hash
from geocoin.sim.player import Player, position_to_dict
from geocoin.sim.rng import Luck, rand

SCHEMA_VERSION = 1
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")

MEMENTOS_KEY = "mementos"
COINS_KEY = "coins"
POSITION_KEY = "position"
PATH_KEY = "path"
STORAGE_KEYS = (MEMENTOS_KEY, COINS_KEY, POSITION_KEY, PATH_KEY)

logger = logging.getLogger(__name__)


def _game_entries(game: Game) -> dict[str, Any]:
    return {
        MEMENTOS_KEY: [[key, memento] for key, memento in game.caches.snapshot()],
        COINS_KEY: game.player.coins_payload(),
        POSITION_KEY: game.player.position_payload(),
        PATH_KEY: game.player.path_payload(),
    }


def _canonical_json(payload: Any) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _read_entry(storage: KeyValueStorage, key: str) -> Any:
    raw = storage.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{key} entry is not valid JSON: {exc.msg}") from exc


def _read_entries(storage: KeyValueStorage) -> dict[str, Any]:
    mementos = _read_entry(storage, MEMENTOS_KEY)
    coins = _read_entry(storage, COINS_KEY)
    position = _read_entry(storage, POSITION_KEY)
    path = _read_entry(storage, PATH_KEY)
    if mementos is not None:
        validate_memento_entries(mementos)
    if coins is not None:
        validate_coin_payload(coins)
    if position is not None:
        validate_position_payload(position)
    if path is not None:
        validate_path_payload(path)
    return {MEMENTOS_KEY: mementos, COINS_KEY: coins, POSITION_KEY: position, PATH_KEY: path}


def _build_game(entries: dict[str, Any], config: GameConfig, luck: Luck) -> Game:
    position = entries[POSITION_KEY]
    player = Player.from_payloads(
        position=position if position is not None else position_to_dict(config.start),
        coins=entries[COINS_KEY],
        path=entries[PATH_KEY],
    )
    if not player.path:
        player.path.append(player.position)
    game = Game(config, player=player, luck=luck)
    if entries[MEMENTOS_KEY] is not None:
        game.caches.load((key, memento) for key, memento in entries[MEMENTOS_KEY])
    return game


def save_game(storage: KeyValueStorage, game: Game) -> None:
    for key, payload in _game_entries(game).items():
        storage.set(key, json.dumps(payload, separators=(",", ":")))


def clear_game(storage: KeyValueStorage) -> None:
    for key in STORAGE_KEYS:
        storage.delete(key)


def load_game(
    storage: KeyValueStorage,
    config: GameConfig | None = None,
    *,
    luck: Luck = rand,
    autosave: bool = True,
) -> Game:
    """Restore a game from ``storage``; absent or corrupt state starts a fresh one."""
    config = config or GameConfig()
    try:
        entries = _read_entries(storage)
        if entries[MEMENTOS_KEY] is None:
            logger.info("no saved world state, starting a fresh game")
        game = _build_game(entries, config, luck)
        game.refresh()
    except (ValueError, OverflowError) as exc:
        logger.warning("discarding unreadable saved game: %s", exc)
        game = Game(config, luck=luck)
        game.refresh()

    if autosave:
        game.autosave = lambda current: save_game(storage, current)
    return game


def export_game_json(path: str | Path, game: Game) -> None:
    entries = _game_entries(game)
    payload = {
        "schema_version": SCHEMA_VERSION,
        "state_hash": state_hash(entries),
        **entries,
    }
    validate_export_payload(payload)
    write_atomic_text(path, _canonical_json(payload))
    logger.info("exported game to %s", path)


def import_game_json(path: str | Path, config: GameConfig | None = None, *, luck: Luck = rand) -> Game:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    validate_export_payload(payload)
    expected_hash = payload["state_hash"]
    actual_hash = state_hash(payload)
    if expected_hash != actual_hash:
        raise ValueError(
            f"state_hash mismatch while importing game (stored={expected_hash}, recomputed={actual_hash})"
        )
    game = _build_game(payload, config or GameConfig(), luck)
    game.refresh()
    return game
