# Shared utilities — formatters, validators
from ictlens.utils.formatters import format_signal_time, score_grade, signal_card
from ictlens.utils.validators import validate_candles

__all__ = [
    "format_signal_time",
    "score_grade",
    "signal_card",
    "validate_candles",
]
