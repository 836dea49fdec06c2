from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

DEFAULT_TILE_SIZE = 1e-4
DEFAULT_NEIGHBORHOOD_RADIUS = 8
CELL_KEY_SEPARATOR = ","


def require_coordinate(value: Any, *, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    if not math.isfinite(value):
        raise ValueError(f"{field_name} must be finite")
    return float(value)


@dataclass(frozen=True)
class LatLng:
    """Geographic point in degrees."""

    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LatLng":
        if not isinstance(data, dict):
            raise ValueError("point must be an object")
        if "lat" not in data or "lng" not in data:
            raise ValueError("point requires lat and lng")
        return cls(
            lat=require_coordinate(data["lat"], field_name="point.lat"),
            lng=require_coordinate(data["lng"], field_name="point.lng"),
        )


@dataclass(frozen=True, order=True)
class Cell:
    """Lattice cell (i, j); i follows latitude, j follows longitude."""

    i: int
    j: int

    @property
    def key(self) -> str:
        return cell_key(self.i, self.j)

    def to_dict(self) -> dict[str, int]:
        return {"i": self.i, "j": self.j}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cell":
        return cls(i=int(data["i"]), j=int(data["j"]))


def cell_key(i: int, j: int) -> str:
    """Canonical registry key ``"i,j"``; integers never contain the separator."""
    return f"{int(i)}{CELL_KEY_SEPARATOR}{int(j)}"


def parse_cell_key(key: str) -> tuple[int, int]:
    if not isinstance(key, str):
        raise ValueError("cell key must be a string")
    parts = key.split(CELL_KEY_SEPARATOR)
    if len(parts) != 2:
        raise ValueError(f"cell key must look like 'i,j': {key!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"cell key must hold two integers: {key!r}") from exc


class Grid:
    """Flyweight registry of cells on a square lattice of ``tile_size`` degrees."""

    def __init__(
        self,
        tile_size: float = DEFAULT_TILE_SIZE,
        neighborhood_radius: int = DEFAULT_NEIGHBORHOOD_RADIUS,
    ) -> None:
        if not isinstance(tile_size, (int, float)) or isinstance(tile_size, bool) or not tile_size > 0:
            raise ValueError("tile_size must be a positive number")
        if not math.isfinite(tile_size):
            raise ValueError("tile_size must be finite")
        if isinstance(neighborhood_radius, bool) or not isinstance(neighborhood_radius, int):
            raise ValueError("neighborhood_radius must be an integer")
        if neighborhood_radius < 0:
            raise ValueError("neighborhood_radius must be >= 0")
        self.tile_size = float(tile_size)
        self.neighborhood_radius = neighborhood_radius
        self._cells: dict[str, Cell] = {}

    def __len__(self) -> int:
        return len(self._cells)

    @property
    def known_cells(self) -> list[Cell]:
        return list(self._cells.values())

    def cell_at(self, i: int, j: int) -> Cell:
        key = cell_key(i, j)
        cell = self._cells.get(key)
        if cell is None:
            cell = Cell(i=int(i), j=int(j))
            self._cells[key] = cell
        return cell

    def cell_for(self, lat: float, lng: float) -> Cell:
        return self.cell_at(math.floor(lat / self.tile_size), math.floor(lng / self.tile_size))

    def cells_near(self, lat: float, lng: float) -> list[Cell]:
        origin = self.cell_for(lat, lng)
        radius = self.neighborhood_radius
        cells: list[Cell] = []
        for i in range(origin.i - radius, origin.i + radius + 1):
            for j in range(origin.j - radius, origin.j + radius + 1):
                cells.append(self.cell_at(i, j))
        return cells

    def bounds_for(self, cell: Cell) -> tuple[LatLng, LatLng]:
        southwest = LatLng(lat=cell.i * self.tile_size, lng=cell.j * self.tile_size)
        northeast = LatLng(lat=(cell.i + 1) * self.tile_size, lng=(cell.j + 1) * self.tile_size)
        return southwest, northeast

    def center_for(self, cell: Cell) -> LatLng:
        return LatLng(lat=(cell.i + 0.5) * self.tile_size, lng=(cell.j + 0.5) * self.tile_size)
