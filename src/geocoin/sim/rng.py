from __future__ import annotations

import hashlib
from typing import Callable

LUCK_BITS = 53

Luck = Callable[[str], float]


def luck_key(*parts: object) -> str:
    """Join key parts the same way for every caller: ``"i,j"`` or ``"i,j,iniValue"``."""
    return ",".join(str(part) for part in parts)


def rand(key: str) -> float:
    """Map ``key`` to a reproducible value in [0, 1)."""
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    # 53 bits so the quotient stays exact in a double and never rounds up to 1.0.
    value = int.from_bytes(digest[:8], byteorder="big", signed=False) >> (64 - LUCK_BITS)
    return value / (1 << LUCK_BITS)
