"""
ICT Lens — API Routes

Thin HTTP layer over the ICT engine. Candle histories arrive already
fetched and normalized by the caller; this layer validates them, runs one
detection pass, and serializes the result.
"""

from __future__ import annotations

import time as _time

import structlog
from fastapi import APIRouter, HTTPException

from ictlens.config import get_settings
from ictlens.engines.confluence_scorer import CONFLUENCE_WEIGHTS
from ictlens.engines.ict_engine import ICTEngine, latest_signals
from ictlens.metrics import record_scan
from ictlens.models import HealthCheck, ICTScanRequest, ICTScanResponse
from ictlens.utils.formatters import signal_card
from ictlens.utils.validators import validate_candles

log = structlog.get_logger(__name__)

# Track server start time for uptime calculations
APP_START_TIME: float = _time.monotonic()


# ──────────────────────────────────────────────
# Health
# ──────────────────────────────────────────────

health_router = APIRouter()


@health_router.get("/health", response_model=HealthCheck)
async def health_check():
    """Liveness check. The engine has no external dependencies to probe."""
    return HealthCheck(
        status="ok",
        uptime_seconds=round(_time.monotonic() - APP_START_TIME, 1),
    )


# ──────────────────────────────────────────────
# ICT: FVG zones + confluence signals
# ──────────────────────────────────────────────

ict_router = APIRouter(prefix="/ict")


@ict_router.post("/scan", response_model=ICTScanResponse)
def scan_candles(body: ICTScanRequest):
    """Detect FVGs on a candle history and return chart markers and scored signals.

    Markers and signals are time-ascending; ``latest`` holds the most recent
    signals first, capped at ``limit``.
    """
    try:
        candles = validate_candles(body.candles)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    settings = get_settings()
    engine = ICTEngine(settings.ict_config(strict_mode=body.strict_mode))
    result = engine.find_fvgs(candles)
    record_scan(result.signals)

    limit = body.limit or settings.ict_signal_limit
    log.info(
        "ict.scan",
        candles=len(candles),
        markers=len(result.markers),
        signals=len(result.signals),
    )
    return ICTScanResponse(
        markers=result.markers,
        signals=result.signals,
        latest=[signal_card(s) for s in latest_signals(result.signals, limit)],
        signal_count=len(result.signals),
        candle_count=len(candles),
    )


@ict_router.get("/weights")
async def get_weights():
    """Criterion weights, signal threshold, and the active engine config."""
    config = get_settings().ict_config()
    return {
        "weights": CONFLUENCE_WEIGHTS,
        "max_score": sum(CONFLUENCE_WEIGHTS.values()),
        "min_score": config.min_score,
        "config": config.model_dump(mode="json"),
    }
