from __future__ import annotations

import math
from typing import Any

SUPPORTED_SCHEMA_VERSIONS = {1}
REQUIRED_COIN_FIELDS = {"i", "j", "serial"}
REQUIRED_EXPORT_FIELDS = {"schema_version", "state_hash", "mementos", "coins", "position", "path"}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_memento_entries(payload: Any, *, field_name: str = "mementos") -> None:
    if not isinstance(payload, list):
        raise ValueError(f"{field_name} must be a list")
    for index, entry in enumerate(payload):
        if not isinstance(entry, list) or len(entry) != 2:
            raise ValueError(f"{field_name}[{index}] must be a [key, memento] pair")
        key, memento = entry
        if not isinstance(key, str) or not key:
            raise ValueError(f"{field_name}[{index}] key must be a non-empty string")
        if not isinstance(memento, str):
            raise ValueError(f"{field_name}[{index}] memento must be a string")


def validate_coin_payload(payload: Any, *, field_name: str = "coins") -> None:
    if not isinstance(payload, list):
        raise ValueError(f"{field_name} must be a list")
    for index, row in enumerate(payload):
        if not isinstance(row, dict):
            raise ValueError(f"{field_name}[{index}] must be an object")
        missing = REQUIRED_COIN_FIELDS - set(row.keys())
        if missing:
            raise ValueError(f"{field_name}[{index}] missing fields: {sorted(missing)}")
        for key in sorted(REQUIRED_COIN_FIELDS):
            if not _is_int(row[key]):
                raise ValueError(f"{field_name}[{index}].{key} must be an integer")


def validate_position_payload(payload: Any, *, field_name: str = "position") -> None:
    if not isinstance(payload, dict):
        raise ValueError(f"{field_name} must be an object")
    for key in ("i", "j"):
        if key not in payload:
            raise ValueError(f"{field_name} requires {key}")
        if not _is_number(payload[key]):
            raise ValueError(f"{field_name}.{key} must be a number")


def validate_path_payload(payload: Any, *, field_name: str = "path") -> None:
    if not isinstance(payload, list):
        raise ValueError(f"{field_name} must be a list")
    for index, point in enumerate(payload):
        if not isinstance(point, dict):
            raise ValueError(f"{field_name}[{index}] must be an object")
        for key in ("lat", "lng"):
            if not _is_number(point.get(key)):
                raise ValueError(f"{field_name}[{index}].{key} must be a number")


def validate_export_payload(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise ValueError("export payload must be an object")
    missing = REQUIRED_EXPORT_FIELDS - set(payload.keys())
    if missing:
        raise ValueError(f"export payload missing fields: {sorted(missing)}")
    if payload["schema_version"] not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {payload['schema_version']}")
    if not isinstance(payload["state_hash"], str):
        raise ValueError("state_hash must be a string")
    validate_memento_entries(payload["mementos"])
    validate_coin_payload(payload["coins"])
    validate_position_payload(payload["position"])
    validate_path_payload(payload["path"])
