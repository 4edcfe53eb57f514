"""
ICT Lens — FastAPI Application Entry Point

Serves the FVG / confluence engine to the dashboard front end.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ictlens.config import get_settings
from ictlens.error_handlers import register_error_handlers
from ictlens.metrics import MetricsMiddleware, metrics_router
from ictlens.middleware.request_logger import RequestLoggerMiddleware
from ictlens.routes import health_router, ict_router

log = structlog.get_logger("ictlens.startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    settings = get_settings()
    config = settings.ict_config()
    log.info(
        "startup",
        env=settings.app_env,
        strict_mode=config.strict_mode,
        min_score=config.min_score,
        session_utc_offset_hours=config.session_utc_offset_hours,
    )
    yield
    log.info("shutdown")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    app = FastAPI(
        title="ICT Lens",
        description="""# ICT Lens API

Fair Value Gap detection and confluence scoring for OHLC candle histories.

## Features
- **FVG Zones** — 3-candle gap detection with trend and displacement gating
- **Confluence Signals** — seven-criterion 0–100 score on first mitigation
- **Chart Markers** — time-ascending markers ready for the candlestick renderer
""",
        version="1.0.0",
        debug=settings.app_debug,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "Health", "description": "Service health checks"},
            {"name": "ICT", "description": "FVG zones and confluence signals"},
            {"name": "Metrics", "description": "Prometheus-compatible metrics exposition"},
        ],
    )

    # ── Global Error Handlers ──
    register_error_handlers(app)

    # ── CORS (configurable from settings) ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Custom Middleware ──
    app.add_middleware(RequestLoggerMiddleware)

    # ── Metrics Collection (outermost → captures full lifecycle) ──
    app.add_middleware(MetricsMiddleware)

    # ── Routes ──
    app.include_router(health_router, tags=["Health"])
    app.include_router(metrics_router, tags=["Metrics"])

    API_V1 = "/v1/api"
    app.include_router(ict_router, prefix=API_V1, tags=["ICT"])

    # ── API Version Header ──
    @app.middleware("http")
    async def add_api_version_header(request, call_next):
        response = await call_next(request)
        response.headers["X-API-Version"] = "v1"
        return response

    return app


app = create_app()
