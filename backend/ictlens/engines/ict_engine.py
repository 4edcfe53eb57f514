"""
ICT Lens — Fair Value Gap Engine

Detects ICT Fair Value Gaps on OHLC data, tracks their mitigation, and
scores each first touch with the confluence scorer.

Algorithm (single forward pass, i = 2 .. n-1):
  1. detect_zones_at(i)              – 3-candle gap at [i-2, i-1, i],
                                       gated by trend + displacement in
                                       strict mode
  2. check_mitigation_and_score(i)   – first re-entry of any open zone;
                                       score it, emit a signal if the
                                       score clears the threshold

Markers and signals are returned sorted by time (the chart renderer
requires ascending markers). The engine keeps no state between calls.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog

from ictlens.config import ICTConfig
from ictlens.engines.confluence_scorer import ConfluenceScorer
from ictlens.engines.price_series import (
    PriceSeries,
    average_body,
    sma_at,
    time_sort_key,
)
from ictlens.models import (
    Candle,
    ChartMarker,
    GapZone,
    ICTResult,
    ICTSignal,
    MarkerPosition,
    MarkerShape,
    SignalDirection,
    ZoneDirection,
)

log = structlog.get_logger(__name__)

COLOR_BULLISH_FVG = "#22c55e4d"  # translucent green
COLOR_BEARISH_FVG = "#ef44444d"  # translucent red
COLOR_LONG_ENTRY = "#10b981"     # emerald
COLOR_SHORT_ENTRY = "#e11d48"    # rose


class ICTEngine:
    """FVG detector and mitigation scorer.

    Usage:
        engine = ICTEngine()
        result = engine.find_fvgs(candles)
        result.markers, result.signals
    """

    def __init__(self, config: Optional[ICTConfig] = None):
        self.config = config or ICTConfig()
        self.scorer = ConfluenceScorer(self.config)

    # ──────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────

    def find_fvgs(self, candles: Sequence[Candle]) -> ICTResult:
        """Run detection and mitigation scoring over an ascending candle sequence."""
        if len(candles) < self.config.min_history:
            return ICTResult()

        series = PriceSeries.from_candles(candles)
        markers: list[ChartMarker] = []
        signals: list[ICTSignal] = []
        open_zones: list[GapZone] = []
        zone_count = 0
        mitigated_count = 0

        for i in range(2, len(series)):
            for zone in self.detect_zones_at(series, i):
                open_zones.append(zone)
                markers.append(formation_marker(zone))
                zone_count += 1

            hits = self.check_mitigation_and_score(series, i, open_zones)
            for _zone, signal in hits:
                mitigated_count += 1
                if signal is not None:
                    signals.append(signal)
                    markers.append(entry_marker(signal))

            if hits:
                open_zones = [z for z in open_zones if not z.mitigated]

        markers.sort(key=lambda m: time_sort_key(m.time))
        signals.sort(key=lambda s: time_sort_key(s.time))

        log.debug(
            "ict.scan_complete",
            candles=len(series),
            zones=zone_count,
            mitigated=mitigated_count,
            signals=len(signals),
            strict=self.config.strict_mode,
        )
        return ICTResult(markers=markers, signals=signals)

    def detect_zones_at(self, series: PriceSeries, i: int) -> list[GapZone]:
        """Gap zones formed by the triplet ending at bar *i*.

        Bullish: low[i] > high[i-2]. Bearish: high[i] < low[i-2].
        """
        if i < 2 or i >= len(series):
            return []

        low, high = float(series.low[i]), float(series.high[i])
        prior_low, prior_high = float(series.low[i - 2]), float(series.high[i - 2])

        if low > prior_high:
            zone = GapZone(
                direction=ZoneDirection.BULLISH,
                top=low,
                bottom=prior_high,
                formation_index=i,
                formation_time=series.times[i],
            )
        elif high < prior_low:
            zone = GapZone(
                direction=ZoneDirection.BEARISH,
                top=prior_low,
                bottom=high,
                formation_index=i,
                formation_time=series.times[i],
            )
        else:
            return []

        if self.config.strict_mode and not (
            self._trend_aligned(series, zone.direction, i)
            and self._has_displacement(series, i)
        ):
            return []
        return [zone]

    def check_mitigation_and_score(
        self,
        series: PriceSeries,
        i: int,
        zones: Sequence[GapZone],
    ) -> list[tuple[GapZone, Optional[ICTSignal]]]:
        """Mark every open zone that bar *i* re-enters and score it.

        Each zone mitigates at most once and never on its own formation
        bar. Returns (zone, signal) pairs; signal is None when the score
        is below the threshold.
        """
        if i < 0 or i >= len(series):
            return []

        low, high = float(series.low[i]), float(series.high[i])
        results: list[tuple[GapZone, Optional[ICTSignal]]] = []

        for zone in zones:
            if zone.mitigated or zone.formation_index >= i:
                continue
            probe = low if zone.direction is ZoneDirection.BULLISH else high
            if not zone.bottom <= probe <= zone.top:
                continue

            zone.mitigated = True
            breakdown = self.scorer.score(series, zone, i)
            total = breakdown.total
            signal = None
            if total >= self.config.min_score:
                signal = ICTSignal(
                    time=series.times[i],
                    direction=zone.signal_direction,
                    total_score=total,
                    breakdown=breakdown,
                )
            results.append((zone, signal))

        return results

    # ──────────────────────────────────────────
    # Detection Filters
    # ──────────────────────────────────────────

    def _trend_aligned(self, series: PriceSeries, direction: ZoneDirection, i: int) -> bool:
        sma = sma_at(series.close, i, self.config.sma_period)
        if sma is None:
            return False
        close = float(series.close[i])
        return close > sma if direction is ZoneDirection.BULLISH else close < sma

    def _has_displacement(self, series: PriceSeries, i: int) -> bool:
        avg = average_body(series, i - 1, self.config.displacement_lookback)
        if avg is None:
            return False
        return series.body(i - 1) > avg * self.config.displacement_multiplier


# ──────────────────────────────────────────────
# Marker Builders
# ──────────────────────────────────────────────

def formation_marker(zone: GapZone) -> ChartMarker:
    """Small square at the bar that formed the gap."""
    if zone.direction is ZoneDirection.BULLISH:
        return ChartMarker(
            time=zone.formation_time,
            position=MarkerPosition.BELOW_BAR,
            color=COLOR_BULLISH_FVG,
            shape=MarkerShape.SQUARE,
            text="FVG↑",
            size=1,
        )
    return ChartMarker(
        time=zone.formation_time,
        position=MarkerPosition.ABOVE_BAR,
        color=COLOR_BEARISH_FVG,
        shape=MarkerShape.SQUARE,
        text="FVG↓",
        size=1,
    )


def entry_marker(signal: ICTSignal) -> ChartMarker:
    """Arrow at the mitigation bar of a qualifying signal."""
    if signal.direction is SignalDirection.LONG:
        return ChartMarker(
            time=signal.time,
            position=MarkerPosition.BELOW_BAR,
            color=COLOR_LONG_ENTRY,
            shape=MarkerShape.ARROW_UP,
            text=f"LONG {signal.total_score}",
            size=2,
        )
    return ChartMarker(
        time=signal.time,
        position=MarkerPosition.ABOVE_BAR,
        color=COLOR_SHORT_ENTRY,
        shape=MarkerShape.ARROW_DOWN,
        text=f"SHORT {signal.total_score}",
        size=2,
    )


def latest_signals(signals: Sequence[ICTSignal], limit: int = 10) -> list[ICTSignal]:
    """Most recent signals first, as shown in the signal panel."""
    return list(reversed(signals))[:max(0, limit)]
