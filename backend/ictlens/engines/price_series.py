"""
ICT Lens — Price Series Helpers

Columnar numpy view of a candle sequence plus the small windowed helpers
shared by the gap detector and the confluence scorer: moving average,
average body, window extremes, range midpoint, and time coercion for
sorting and session checks.

All window helpers return None instead of a number when the window is not
fully available, so callers can fail the dependent filter.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

import numpy as np

from ictlens.models import Candle, CandleTime

_SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class PriceSeries:
    """Candle sequence split into parallel arrays, oldest first."""
    times: tuple[CandleTime, ...]
    open: np.ndarray
    high: np.ndarray
    low: np.ndarray
    close: np.ndarray

    @classmethod
    def from_candles(cls, candles: Sequence[Candle]) -> "PriceSeries":
        return cls(
            times=tuple(c.time for c in candles),
            open=np.array([c.open for c in candles], dtype=float),
            high=np.array([c.high for c in candles], dtype=float),
            low=np.array([c.low for c in candles], dtype=float),
            close=np.array([c.close for c in candles], dtype=float),
        )

    def __len__(self) -> int:
        return len(self.times)

    def body(self, i: int) -> float:
        """Absolute body size of bar *i*."""
        return abs(float(self.close[i]) - float(self.open[i]))


# ──────────────────────────────────────────────
# Windowed Numerics
# ──────────────────────────────────────────────

def _finite_or_none(value: float) -> Optional[float]:
    value = float(value)
    return value if math.isfinite(value) else None


def sma_at(values: np.ndarray, index: int, period: int) -> Optional[float]:
    """Simple moving average of the *period* values ending at *index*.

    None during warm-up (``index < period - 1``).
    """
    if index < period - 1 or index >= len(values):
        return None
    return _finite_or_none(np.mean(values[index - period + 1: index + 1]))


def average_body(series: PriceSeries, end: int, lookback: int) -> Optional[float]:
    """Mean absolute body over the *lookback* bars ending at *end* (inclusive)."""
    start = end - lookback + 1
    if start < 0 or end >= len(series):
        return None
    bodies = np.abs(series.close[start: end + 1] - series.open[start: end + 1])
    return _finite_or_none(np.mean(bodies))


def window_min(values: np.ndarray, start: int, stop: int) -> Optional[float]:
    """Minimum of ``values[start:stop]``, clamped to the array; None if empty."""
    window = values[max(0, start): max(0, stop)]
    if window.size == 0:
        return None
    return _finite_or_none(np.min(window))


def window_max(values: np.ndarray, start: int, stop: int) -> Optional[float]:
    """Maximum of ``values[start:stop]``, clamped to the array; None if empty."""
    window = values[max(0, start): max(0, stop)]
    if window.size == 0:
        return None
    return _finite_or_none(np.max(window))


def range_midpoint(series: PriceSeries, start: int, stop: int) -> Optional[float]:
    """Midpoint of the high/low range over bars ``[start, stop)``."""
    hi = window_max(series.high, start, stop)
    lo = window_min(series.low, start, stop)
    if hi is None or lo is None:
        return None
    return (hi + lo) / 2


# ──────────────────────────────────────────────
# Time Coercion
# ──────────────────────────────────────────────

def time_sort_key(time: CandleTime) -> float:
    """Coerce a bar time to a comparable number.

    Numbers and numeric strings are used as-is; ISO date(-time) strings
    become UTC epoch seconds. Raises ValueError for anything else.

    >>> time_sort_key(1704205800)
    1704205800.0
    >>> time_sort_key("2024-01-02")
    1704153600.0
    """
    if isinstance(time, (int, float)):
        return float(time)
    text = str(time).strip()
    try:
        return float(text)
    except ValueError:
        pass
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Cannot interpret bar time: '{time}'")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def intraday_epoch(time: CandleTime, threshold: float = 1e9) -> Optional[float]:
    """Epoch seconds for intraday bars, None for daily-or-above bars.

    Calendar-date strings and numbers below *threshold* are not intraday.
    """
    if isinstance(time, str):
        try:
            value = float(time)
        except ValueError:
            return None
    else:
        value = float(time)
    if not math.isfinite(value) or value < threshold:
        return None
    return value


def parse_hhmm(text: str) -> int:
    """'08:30' → minutes after midnight."""
    hours, minutes = text.split(":")
    return int(hours) * 60 + int(minutes)


def in_session(
    epoch: float,
    utc_offset_hours: float,
    windows: Sequence[tuple[str, str]],
) -> bool:
    """True if *epoch*, shifted by a fixed UTC offset, falls in any [start, end) window."""
    local_seconds = (epoch + utc_offset_hours * 3600) % _SECONDS_PER_DAY
    minute = int(local_seconds // 60)
    return any(parse_hhmm(start) <= minute < parse_hhmm(end) for start, end in windows)
