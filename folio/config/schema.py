"""Pydantic models for config.yaml validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from scipy import stats

from folio.config.defaults import (
    ANALYTICS_DEFAULTS,
    CACHE_DEFAULTS,
    RISK_LEVEL_THRESHOLDS,
    ROLLING_WINDOWS,
    VALUATION_DEFAULTS,
    YFINANCE_DEFAULTS,
)

# Largest gap allowed between an explicit var_z and the normal quantile
VAR_Z_TOLERANCE = 0.01

# ---------------------------------------------------------------------------
# Analytics Config
# ---------------------------------------------------------------------------

class RiskLevelsConfig(BaseModel):
    low: float = RISK_LEVEL_THRESHOLDS["low"]
    medium: float = RISK_LEVEL_THRESHOLDS["medium"]

    @model_validator(mode="after")
    def bands_ordered(self) -> "RiskLevelsConfig":
        if not 0 < self.low < self.medium:
            raise ValueError(
                f"risk level bands must satisfy 0 < low < medium, got {self.low}, {self.medium}"
            )
        return self


class AnalyticsConfig(BaseModel):
    risk_free_rate: float = ANALYTICS_DEFAULTS["risk_free_rate"]
    trading_days: int = ANALYTICS_DEFAULTS["trading_days"]
    var_confidence: float = ANALYTICS_DEFAULTS["var_confidence"]
    var_z: float | None = None
    monthly_horizon_days: int = ANALYTICS_DEFAULTS["monthly_horizon_days"]
    benchmark_enabled: bool = ANALYTICS_DEFAULTS["benchmark_enabled"]
    benchmark_symbol: str = ANALYTICS_DEFAULTS["benchmark_symbol"]
    risk_levels: RiskLevelsConfig = Field(default_factory=RiskLevelsConfig)
    rolling_windows: list[int] = Field(default_factory=lambda: list(ROLLING_WINDOWS))

    @field_validator("var_confidence")
    @classmethod
    def confidence_in_range(cls, v: float) -> float:
        if not 0.5 < v < 1.0:
            raise ValueError(f"var_confidence must be in (0.5, 1.0), got {v}")
        return v

    @field_validator("trading_days", "monthly_horizon_days")
    @classmethod
    def positive_days(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"day counts must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def var_z_matches_confidence(self) -> "AnalyticsConfig":
        """Derive the VaR multiplier from the confidence, or check one given explicitly."""
        if self.var_confidence == ANALYTICS_DEFAULTS["var_confidence"]:
            expected = ANALYTICS_DEFAULTS["var_z"]
        else:
            expected = float(stats.norm.ppf(self.var_confidence))
        if self.var_z is None:
            self.var_z = expected
        elif abs(self.var_z - expected) > VAR_Z_TOLERANCE:
            raise ValueError(
                f"var_z {self.var_z} does not match var_confidence {self.var_confidence} "
                f"(expected about {expected:.3f})"
            )
        return self


# ---------------------------------------------------------------------------
# Price Feed Config
# ---------------------------------------------------------------------------

class YFinanceConfig(BaseModel):
    enabled: bool = True
    history_interval: str = YFINANCE_DEFAULTS["history_interval"]


class PriceFeedConfig(BaseModel):
    yfinance: YFinanceConfig = Field(default_factory=YFinanceConfig)


# ---------------------------------------------------------------------------
# Runtime Configs
# ---------------------------------------------------------------------------

class ValuationConfig(BaseModel):
    max_workers: int = VALUATION_DEFAULTS["max_workers"]


class CacheConfig(BaseModel):
    enabled: bool = CACHE_DEFAULTS["enabled"]
    max_entries: int = CACHE_DEFAULTS["max_entries"]


class DatabaseConfig(BaseModel):
    path: str = "~/.folio/folio.db"


# ---------------------------------------------------------------------------
# Top-Level Config
# ---------------------------------------------------------------------------

class FolioConfig(BaseModel):
    """Root configuration model for Folio."""

    version: int = 1
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    price_feed: PriceFeedConfig = Field(default_factory=PriceFeedConfig)
    valuation: ValuationConfig = Field(default_factory=ValuationConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @model_validator(mode="before")
    @classmethod
    def coerce_none_to_defaults(cls, data: Any) -> Any:
        """YAML parses empty keys as None. Coerce to proper defaults."""
        if isinstance(data, dict):
            for key in ("analytics", "price_feed", "valuation", "cache", "database"):
                if key in data and data[key] is None:
                    data[key] = {}
        return data
