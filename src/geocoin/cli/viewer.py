from __future__ import annotations

from typing import Callable

from geocoin.sim.caches import Coin
from geocoin.sim.game import DIRECTIONS, Game

RESET_CONFIRMATION = "YES"
SHORT_DIRECTIONS = {"n": "north", "s": "south", "e": "east", "w": "west"}
HELP_TEXT = (
    "Commands: show | n | s | e | w | goto <lat> <lng> | collect <i> <j> | "
    "deposit <i> <j> | coins | locate <n> | reset | quit"
)


class AsciiViewer:
    """Read-only projection of game state for terminal display."""

    def render(self, game: Game) -> str:
        status = game.status()
        position = game.player.position
        lines = [
            f"position=({position.lat:.6f},{position.lng:.6f}) "
            f"cell=({status['cell']['i']},{status['cell']['j']}) coins={status['coins']}"
        ]
        caches = sorted(game.visible_caches(), key=lambda c: (c.i, c.j))
        if not caches:
            return "\n".join(lines + ["<no caches nearby>"])

        for cache in caches:
            southwest, northeast = game.grid.bounds_for(game.grid.cell_at(cache.i, cache.j))
            lines.append(
                f"cache[{cache.i},{cache.j}] coins={len(cache.coins)} "
                f"sw=({southwest.lat:.4f},{southwest.lng:.4f}) ne=({northeast.lat:.4f},{northeast.lng:.4f})"
            )
        return "\n".join(lines)

    def render_coins(self, game: Game) -> str:
        if not game.player.coins:
            return "<no coins>"
        return "\n".join(f"{index}: {coin.label}" for index, coin in enumerate(game.player.coins))


class GameController:
    """Small command adapter; issues actions to the game but does not own state."""

    def __init__(self, game: Game) -> None:
        self.game = game

    def step(self, direction: str) -> None:
        self.game.move(SHORT_DIRECTIONS.get(direction, direction))

    def goto(self, lat: float, lng: float) -> None:
        self.game.move_to(lat, lng)

    def collect(self, i: int, j: int) -> Coin | None:
        return self.game.collect(i, j)

    def deposit(self, i: int, j: int) -> Coin | None:
        return self.game.deposit(i, j)

    def locate(self, index: int) -> str:
        coins = self.game.player.coins
        if index < 0 or index >= len(coins):
            raise ValueError(f"no coin at inventory slot {index}")
        center = self.game.locate(coins[index])
        return f"{coins[index].label} home=({center.lat:.6f},{center.lng:.6f})"

    def reset(self) -> None:
        self.game.reset()


def run_session(
    game: Game,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    view = AsciiViewer()
    controller = GameController(game)

    output_fn(HELP_TEXT)
    output_fn(view.render(game))

    while True:
        try:
            raw = input_fn("> ").strip()
        except EOFError:
            break
        if raw in {"quit", "exit"}:
            break
        if raw == "show":
            output_fn(view.render(game))
            continue
        if raw == "coins":
            output_fn(view.render_coins(game))
            continue
        if raw == "reset":
            answer = input_fn(f"Type '{RESET_CONFIRMATION}' to erase all caches and coins: ").strip()
            if answer == RESET_CONFIRMATION:
                controller.reset()
                output_fn("game reset")
                output_fn(view.render(game))
            else:
                output_fn("reset cancelled")
            continue

        parts = raw.split()
        try:
            if len(parts) == 1 and (parts[0] in SHORT_DIRECTIONS or parts[0] in DIRECTIONS):
                controller.step(parts[0])
                output_fn(view.render(game))
                continue
            if len(parts) == 3 and parts[0] == "goto":
                controller.goto(float(parts[1]), float(parts[2]))
                output_fn(view.render(game))
                continue
            if len(parts) == 3 and parts[0] in {"collect", "deposit"}:
                action = controller.collect if parts[0] == "collect" else controller.deposit
                coin = action(int(parts[1]), int(parts[2]))
                output_fn(f"{parts[0]}ed {coin.label}" if coin is not None else "nothing to move")
                continue
            if len(parts) == 2 and parts[0] == "locate":
                output_fn(controller.locate(int(parts[1])))
                continue
        except ValueError as exc:
            output_fn(f"error: {exc}")
            continue

        output_fn("unknown command")
