"""
ICT Lens — Shared Formatters

Display helpers for the signal panel: score grades, bar times, and the
signal card that combines them.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ictlens.engines.price_series import intraday_epoch
from ictlens.models import CandleTime, ICTSignal, SignalCard


def score_grade(score: int) -> str:
    """Bucket a confluence score for colouring.

    >>> score_grade(85)
    'strong'
    >>> score_grade(60)
    'moderate'
    >>> score_grade(45)
    'weak'
    """
    if score >= 80:
        return "strong"
    if score >= 60:
        return "moderate"
    return "weak"


def format_signal_time(time: CandleTime) -> str:
    """Format a bar time for the signal card.

    Intraday epochs become ``HH:MM`` (UTC); daily bars are shown as given.

    >>> format_signal_time(1704205800)
    '14:30'
    >>> format_signal_time("2024-01-05")
    '2024-01-05'
    """
    epoch = intraday_epoch(time)
    if epoch is None:
        return str(time)
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%H:%M")


def signal_card(signal: ICTSignal) -> SignalCard:
    """Signal plus its panel grade and display time."""
    return SignalCard(
        time=signal.time,
        direction=signal.direction,
        total_score=signal.total_score,
        breakdown=signal.breakdown,
        grade=score_grade(signal.total_score),
        display_time=format_signal_time(signal.time),
    )
