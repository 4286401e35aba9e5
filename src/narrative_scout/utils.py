"""Utility helpers for step logging and number formatting."""

from __future__ import annotations

import math
import sys
from datetime import datetime


def log_step(message: str) -> None:
    """Print a progress line to stderr, keeping stdout for results."""

    print(f"[STEP] {message}", file=sys.stderr, flush=True)


def round_half_up(value: float) -> int:
    """Round .5 upwards instead of to the nearest even integer."""

    return int(math.floor(value + 0.5))


def signed(value: float, digits: int = 1) -> str:
    """Format with an explicit ``+`` for positive values."""

    prefix = "+" if value > 0 else ""
    return f"{prefix}{value:.{digits}f}"


def usd_billions(value: float, digits: int = 2) -> str:
    return f"${value / 1e9:.{digits}f}B"


def usd_millions(value: float, digits: int = 1) -> str:
    return f"${value / 1e6:.{digits}f}M"


def token_price(value: float) -> str:
    if value < 1:
        return f"${value:#.3g}"
    return f"${value:.2f}"


def parse_iso_datetime(text: str | None) -> datetime | None:
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def as_float(value: object) -> float:
    """Coerce an upstream number, treating missing or malformed values as 0."""

    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
