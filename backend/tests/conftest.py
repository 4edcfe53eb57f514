"""
Shared candle scenarios for the ICT engine tests.

The base scenario is a 60-bar 5-minute uptrend starting 2024-01-02 09:30
New York (EST):

  bars 0–50   steady climb, body 0.05, no gaps
  bar 51      displacement candle (body 1.4) that sweeps the 10-bar low
  bar 52      forms a bullish FVG: bottom 105.15 (high of bar 50),
              top 106.0 (low of bar 52)
  bars 53–54  hold above the gap
  bar 55      14:05 NY, retraces into the gap
  bars 56–59  drift higher without new gaps
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from ictlens.models import Candle

BASE_EPOCH = 1704205800  # 2024-01-02 14:30 UTC = 09:30 EST
BAR_SECONDS = 300

# (open, high, low, close)
MITIGATION_BARS = {
    "rejection": (106.4, 106.7, 105.5, 106.6),  # long lower wick, into the gap
    "flat": (106.6, 106.7, 105.7, 105.8),       # into the gap, no rejection wick
    None: (106.6, 107.0, 106.3, 106.8),         # stays above the gap
}


def setup_rows(
    sweep: bool = True,
    mitigation: str | None = "rejection",
    retest: bool = False,
) -> list[tuple[float, float, float, float]]:
    """OHLC rows for the bullish FVG scenario."""
    rows = []
    for k in range(51):
        o = 100 + 0.1 * k
        rows.append((o, o + 0.15, o - 0.1, o + 0.05))

    rows.append((105.1, 106.6, 103.8 if sweep else 104.2, 106.5))  # 51
    rows.append((106.6, 107.2, 106.0, 107.0))                      # 52
    rows.append((107.0, 107.5, 106.5, 107.3))                      # 53
    rows.append((107.3, 107.6, 106.9, 107.1))                      # 54
    rows.append(MITIGATION_BARS[mitigation])                       # 55
    rows.append((106.6, 107.0, 106.3, 106.8))                      # 56
    rows.append((106.8, 107.2, 105.6 if retest else 106.5, 107.0))  # 57
    rows.append((107.0, 107.4, 106.7, 107.2))                      # 58
    rows.append((107.2, 107.6, 106.9, 107.4))                      # 59
    return rows


def mirror_rows(rows, pivot: float = 200.0):
    """Reflect prices around *pivot*: bullish structure becomes bearish."""
    return [(pivot - o, pivot - l, pivot - h, pivot - c) for o, h, l, c in rows]


def bar_times(n: int, kind: str = "intraday") -> list:
    if kind == "intraday":
        return [BASE_EPOCH + i * BAR_SECONDS for i in range(n)]
    start = date(2024, 1, 1)
    return [(start + timedelta(days=i)).isoformat() for i in range(n)]


def to_candles(rows, kind: str = "intraday") -> list[Candle]:
    times = bar_times(len(rows), kind)
    return [
        Candle(time=t, open=o, high=h, low=l, close=c)
        for t, (o, h, l, c) in zip(times, rows)
    ]


@pytest.fixture
def long_setup() -> list[Candle]:
    """High-confluence bullish scenario, mitigated with a rejection wick at 14:05 NY."""
    return to_candles(setup_rows())


@pytest.fixture
def short_setup() -> list[Candle]:
    """Mirror image of ``long_setup``."""
    return to_candles(mirror_rows(setup_rows()))


@pytest.fixture
def weak_setup() -> list[Candle]:
    """Daily bars, no sweep, no rejection wick: the gap mitigates below threshold."""
    return to_candles(setup_rows(sweep=False, mitigation="flat"), kind="daily")


@pytest.fixture
def unmitigated_setup() -> list[Candle]:
    return to_candles(setup_rows(mitigation=None))
