"""
ICT Lens — Pydantic Models

All I/O schemas for the application. The ICT engine consumes candles and
returns these, API routes serialize these.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# A bar time is either a calendar-date string ("2024-01-05") for daily and
# above, or seconds-since-epoch for intraday bars.
CandleTime = Union[int, float, str]


# ──────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────

class ZoneDirection(str, Enum):
    """Direction of a Fair Value Gap."""
    BULLISH = "bullish"
    BEARISH = "bearish"


class SignalDirection(str, Enum):
    """Trade direction of an entry signal."""
    LONG = "LONG"
    SHORT = "SHORT"


class MarkerPosition(str, Enum):
    """Where the chart renderer anchors a marker relative to the bar."""
    ABOVE_BAR = "aboveBar"
    BELOW_BAR = "belowBar"
    IN_BAR = "inBar"


class MarkerShape(str, Enum):
    ARROW_UP = "arrowUp"
    ARROW_DOWN = "arrowDown"
    CIRCLE = "circle"
    SQUARE = "square"


# ──────────────────────────────────────────────
# Market Data Models
# ──────────────────────────────────────────────

class Candle(BaseModel):
    """Single OHLC bar. Volume is carried through but never used for detection."""
    time: CandleTime
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


# ──────────────────────────────────────────────
# Gap Zone (internal to one detection pass)
# ──────────────────────────────────────────────

@dataclass
class GapZone:
    """A Fair Value Gap tracked during a single scan.

    ``top > bottom`` always. Bullish: top = low of the forming candle,
    bottom = high two bars earlier. Bearish is mirrored.
    """
    direction: ZoneDirection
    top: float
    bottom: float
    formation_index: int
    formation_time: CandleTime
    mitigated: bool = False

    @property
    def signal_direction(self) -> SignalDirection:
        if self.direction is ZoneDirection.BULLISH:
            return SignalDirection.LONG
        return SignalDirection.SHORT


# ──────────────────────────────────────────────
# Confluence Scoring Models
# ──────────────────────────────────────────────

class CriterionScore(BaseModel):
    """Binary pass/fail result for one confluence criterion."""
    model_config = ConfigDict(frozen=True)

    score: int
    max: int
    passed: bool


class ScoreBreakdown(BaseModel):
    """The seven confluence criteria. ``max`` values always sum to 100."""
    model_config = ConfigDict(frozen=True)

    market_structure: CriterionScore
    session_overlap: CriterionScore
    order_block: CriterionScore
    fvg_presence: CriterionScore
    liquidity_swept: CriterionScore
    discount_premium: CriterionScore
    candlestick: CriterionScore

    @property
    def total(self) -> int:
        return sum(c.score for c in self.criteria().values())

    def criteria(self) -> dict[str, CriterionScore]:
        """Criteria keyed by name, in display order."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    def passed_criteria(self) -> list[str]:
        return [name for name, c in self.criteria().items() if c.passed]


class ICTSignal(BaseModel):
    """A scored entry signal produced when a gap is mitigated."""
    model_config = ConfigDict(frozen=True)

    time: CandleTime
    direction: SignalDirection
    total_score: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown


class SignalCard(ICTSignal):
    """Signal as shown in the panel: grade bucket and formatted bar time."""
    grade: str
    display_time: str


class ChartMarker(BaseModel):
    """Marker for the candlestick series of the chart renderer."""
    time: CandleTime
    position: MarkerPosition
    color: str
    shape: MarkerShape
    text: str
    size: Optional[int] = None


class ICTResult(BaseModel):
    """Output of one detection pass: markers and signals, both time-ascending."""
    markers: list[ChartMarker] = []
    signals: list[ICTSignal] = []


# ──────────────────────────────────────────────
# API Models
# ──────────────────────────────────────────────

class ICTScanRequest(BaseModel):
    """Body of POST /ict/scan."""
    candles: list[Candle]
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    strict_mode: Optional[bool] = None


class ICTScanResponse(BaseModel):
    """Scan result plus the most-recent-first signal panel view."""
    markers: list[ChartMarker]
    signals: list[ICTSignal]
    latest: list[SignalCard]
    signal_count: int
    candle_count: int


class HealthCheck(BaseModel):
    """Service health status."""
    status: str = "ok"
    version: str = "1.0.0"
    uptime_seconds: float = 0.0
