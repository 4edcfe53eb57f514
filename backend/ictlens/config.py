"""
ICT Lens — Configuration Management

Pydantic Settings: loads from .env, validates all configuration at startup.
``ICTConfig`` holds the heuristic constants of the FVG / confluence engine.
"""

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ICTConfig(BaseModel):
    """Tunable parameters of the FVG detector and confluence scorer.

    Criterion weights are fixed and live in the scorer, not here.
    """

    model_config = ConfigDict(frozen=True)

    # ── Detection ──
    sma_period: int = Field(default=50, ge=2)
    displacement_lookback: int = Field(default=14, ge=1)
    displacement_multiplier: float = Field(default=1.5, gt=0)
    strict_mode: bool = True

    # ── Scoring ──
    min_score: int = Field(default=60, ge=0, le=100)
    order_block_lookback: int = Field(default=20, ge=1)
    order_block_tolerance_pct: float = Field(default=0.003, ge=0)
    liquidity_lookback: int = Field(default=10, ge=1)
    liquidity_sweep_tolerance_pct: float = Field(default=0.0, ge=0)
    range_lookback: int = Field(default=40, ge=1)
    rejection_wick_ratio: float = Field(default=0.5, ge=0)

    # ── Session (New York, fixed offset, no DST) ──
    session_utc_offset_hours: float = -5.0
    ny_am_session: tuple[str, str] = ("08:30", "11:00")
    ny_pm_session: tuple[str, str] = ("13:30", "16:00")
    intraday_epoch_threshold: float = 1e9

    @property
    def min_history(self) -> int:
        """Bars required before any zone can be detected."""
        return max(3, self.sma_period)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Core ──
    app_env: str = "development"
    app_debug: bool = True

    # ── ICT engine overrides ──
    ict_strict_mode: bool = True
    ict_min_score: int = 60
    ict_order_block_tolerance_pct: float = 0.003
    ict_liquidity_sweep_tolerance_pct: float = 0.0
    ict_session_utc_offset_hours: float = -5.0
    ict_signal_limit: int = 10  # signals shown in the panel, most recent first

    # ── CORS ──
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def ict_config(self, **overrides) -> ICTConfig:
        """Build the engine config from settings, with per-request overrides."""
        values = {
            "strict_mode": self.ict_strict_mode,
            "min_score": self.ict_min_score,
            "order_block_tolerance_pct": self.ict_order_block_tolerance_pct,
            "liquidity_sweep_tolerance_pct": self.ict_liquidity_sweep_tolerance_pct,
            "session_utc_offset_hours": self.ict_session_utc_offset_hours,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ICTConfig(**values)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — created once, reused everywhere."""
    return Settings()
