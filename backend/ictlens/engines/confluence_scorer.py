"""
ICT Lens — Confluence Scorer

Composite 0–100 score for a mitigated Fair Value Gap. Seven independent
binary criteria, each worth either 0 or its full weight:

  Market Structure   20   close vs SMA50 at the mitigation bar
  Session Overlap    15   NY morning / afternoon window (intraday only)
  Order Block        20   recent low/high resting on the zone edge
  FVG Presence       15   always passes once a zone exists
  Liquidity Swept    15   stop-hunt on the bar before formation
  Discount/Premium   10   close on the favourable side of the 40-bar range
  Candlestick         5   rejection wick opposite the trade direction

The weights are fixed design parameters, not learned.
"""

from __future__ import annotations

from typing import Optional

from ictlens.config import ICTConfig
from ictlens.engines.price_series import (
    PriceSeries,
    in_session,
    intraday_epoch,
    range_midpoint,
    sma_at,
    window_max,
    window_min,
)
from ictlens.models import CriterionScore, GapZone, ScoreBreakdown, ZoneDirection

CONFLUENCE_WEIGHTS: dict[str, int] = {
    "market_structure": 20,
    "session_overlap": 15,
    "order_block": 20,
    "fvg_presence": 15,
    "liquidity_swept": 15,
    "discount_premium": 10,
    "candlestick": 5,
}


class ConfluenceScorer:
    """Scores a gap zone at the bar that mitigates it.

    Usage:
        scorer = ConfluenceScorer(ICTConfig())
        breakdown = scorer.score(series, zone, i)
    """

    def __init__(self, config: Optional[ICTConfig] = None):
        self.config = config or ICTConfig()

    def score(self, series: PriceSeries, zone: GapZone, i: int) -> ScoreBreakdown:
        """Evaluate all seven criteria using bars up to and including *i*."""
        checks = {
            "market_structure": self.market_structure(series, zone, i),
            "session_overlap": self.session_overlap(series, i),
            "order_block": self.order_block(series, zone, i),
            "fvg_presence": True,
            "liquidity_swept": self.liquidity_swept(series, zone),
            "discount_premium": self.discount_premium(series, zone, i),
            "candlestick": self.rejection_candle(series, zone, i),
        }
        return ScoreBreakdown(**{
            name: CriterionScore(
                score=CONFLUENCE_WEIGHTS[name] if passed else 0,
                max=CONFLUENCE_WEIGHTS[name],
                passed=passed,
            )
            for name, passed in checks.items()
        })

    # ── Criteria ──────────────────────────────────

    def market_structure(self, series: PriceSeries, zone: GapZone, i: int) -> bool:
        """Close on the trend side of the SMA, re-evaluated at the mitigation bar."""
        sma = sma_at(series.close, i, self.config.sma_period)
        if sma is None:
            return False
        close = float(series.close[i])
        if zone.direction is ZoneDirection.BULLISH:
            return close > sma
        return close < sma

    def session_overlap(self, series: PriceSeries, i: int) -> bool:
        """Mitigation bar inside a New York active window. Daily bars never pass."""
        epoch = intraday_epoch(series.times[i], self.config.intraday_epoch_threshold)
        if epoch is None:
            return False
        return in_session(
            epoch,
            self.config.session_utc_offset_hours,
            (self.config.ny_am_session, self.config.ny_pm_session),
        )

    def order_block(self, series: PriceSeries, zone: GapZone, i: int) -> bool:
        """A recent low (long) or high (short) sits within the band around the zone edge.

        The demand edge of a bullish gap is its bottom, the supply edge of a
        bearish gap its top.
        """
        start = max(0, i - self.config.order_block_lookback)
        if zone.direction is ZoneDirection.BULLISH:
            edge, extremes = zone.bottom, series.low[start:i]
        else:
            edge, extremes = zone.top, series.high[start:i]
        band = abs(edge) * self.config.order_block_tolerance_pct
        return any(abs(float(x) - edge) <= band for x in extremes)

    def liquidity_swept(self, series: PriceSeries, zone: GapZone) -> bool:
        """The bar before formation ran the extreme of the bars before it."""
        sweep_bar = zone.formation_index - 1
        start = sweep_bar - self.config.liquidity_lookback
        if start < 0:
            return False
        tol = self.config.liquidity_sweep_tolerance_pct
        if zone.direction is ZoneDirection.BULLISH:
            swing_low = window_min(series.low, start, sweep_bar)
            if swing_low is None:
                return False
            return float(series.low[sweep_bar]) < swing_low + abs(swing_low) * tol
        swing_high = window_max(series.high, start, sweep_bar)
        if swing_high is None:
            return False
        return float(series.high[sweep_bar]) > swing_high - abs(swing_high) * tol

    def discount_premium(self, series: PriceSeries, zone: GapZone, i: int) -> bool:
        """Longs from discount (below range midpoint), shorts from premium."""
        mid = range_midpoint(series, i - self.config.range_lookback, i)
        if mid is None:
            return False
        close = float(series.close[i])
        if zone.direction is ZoneDirection.BULLISH:
            return close < mid
        return close > mid

    def rejection_candle(self, series: PriceSeries, zone: GapZone, i: int) -> bool:
        """Wick opposite the trade direction longer than ratio × body."""
        o, h, l, c = (float(series.open[i]), float(series.high[i]),
                      float(series.low[i]), float(series.close[i]))
        if h - l <= 0:
            return False
        body = abs(c - o)
        if zone.direction is ZoneDirection.BULLISH:
            wick = min(o, c) - l
        else:
            wick = h - max(o, c)
        return wick > body * self.config.rejection_wick_ratio
