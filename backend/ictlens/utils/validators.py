"""
ICT Lens — Input Validators

Checks applied to caller-supplied candle histories before they reach the
ICT engine. Raise ValueError on invalid input so callers can map to 400
responses.
"""

from __future__ import annotations

import math
from typing import Sequence

from ictlens.engines.price_series import time_sort_key
from ictlens.models import Candle

MAX_CANDLES = 10_000


def validate_candles(candles: Sequence[Candle], max_candles: int = MAX_CANDLES) -> list[Candle]:
    """Validate an OHLC history for the engine.

    - prices must be finite, with ``low <= open, close <= high``
    - times must be interpretable and strictly ascending

    An empty list is valid (the engine returns empty output for it).

    Returns the candles as a list or raises ValueError naming the first bad bar.
    """
    if len(candles) > max_candles:
        raise ValueError(
            f"Too many candles: {len(candles)} (maximum is {max_candles})"
        )

    previous_key = None
    for index, candle in enumerate(candles):
        prices = (candle.open, candle.high, candle.low, candle.close)
        if not all(math.isfinite(p) for p in prices):
            raise ValueError(f"Candle {index} has a non-finite price")
        if candle.low > min(candle.open, candle.close) or candle.high < max(candle.open, candle.close):
            raise ValueError(
                f"Candle {index} is inconsistent: low/high must bound open and close"
            )

        key = _time_key(candle, index)
        if previous_key is not None and key <= previous_key:
            raise ValueError(
                f"Candle {index} is out of order: times must be strictly ascending"
            )
        previous_key = key

    return list(candles)


# ── Helpers ──────────────────────────────────────


def _time_key(candle: Candle, index: int) -> float:
    if isinstance(candle.time, str) and not candle.time.strip():
        raise ValueError(f"Candle {index} has an empty time")
    try:
        key = time_sort_key(candle.time)
    except ValueError:
        raise ValueError(f"Candle {index} has an unreadable time: '{candle.time}'")
    if not math.isfinite(key):
        raise ValueError(f"Candle {index} has a non-finite time")
    return key
