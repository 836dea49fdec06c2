from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from geocoin.sim.caches import Coin
from geocoin.sim.grid import LatLng, require_coordinate


def position_to_dict(position: LatLng) -> dict[str, float]:
    """Stored position layout: ``i`` carries latitude, ``j`` longitude."""
    return {"i": position.lat, "j": position.lng}


def position_from_dict(data: dict[str, Any]) -> LatLng:
    if not isinstance(data, dict):
        raise ValueError("position must be an object")
    if "i" not in data or "j" not in data:
        raise ValueError("position requires i and j")
    return LatLng(
        lat=require_coordinate(data["i"], field_name="position.i"),
        lng=require_coordinate(data["j"], field_name="position.j"),
    )


@dataclass
class Player:
    """Coins held (a stack, last collected on top), position and path walked."""

    position: LatLng
    coins: list[Coin] = field(default_factory=list)
    path: list[LatLng] = field(default_factory=list)

    def move_to(self, position: LatLng) -> None:
        self.position = position
        self.path.append(position)

    def coins_payload(self) -> list[dict[str, int]]:
        return [coin.to_dict() for coin in self.coins]

    def position_payload(self) -> dict[str, float]:
        return position_to_dict(self.position)

    def path_payload(self) -> list[dict[str, float]]:
        return [point.to_dict() for point in self.path]

    @classmethod
    def from_payloads(
        cls,
        *,
        position: dict[str, Any],
        coins: list[dict[str, Any]] | None = None,
        path: list[dict[str, Any]] | None = None,
    ) -> "Player":
        return cls(
            position=position_from_dict(position),
            coins=[Coin.from_dict(row) for row in coins or []],
            path=[LatLng.from_dict(row) for row in path or []],
        )
