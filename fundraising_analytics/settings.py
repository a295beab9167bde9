"""Analytics configuration with optional YAML overrides."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

GRANULARITIES = ("day", "week", "month")
WEEK_START_DAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass
class AnalyticsConfig:
    """Tunable parameters for the dashboard computations.

    Percentages are expressed on a 0-100 scale, weights as decimals.
    """

    # Period bucketing
    granularity: str = "day"
    week_start: str = "monday"

    # Forecast: 7 future periods with a 95% band
    forecast_horizon: int = 7
    confidence_level: float = 0.95

    # Attribution
    time_decay_half_life_days: float = 7.0
    position_first_weight: float = 0.4
    position_last_weight: float = 0.4

    # Insight rules
    anomaly_z_threshold: float = 2.0
    min_points_for_anomalies: int = 5
    min_points_for_trend: int = 7
    milestone_change_pct: float = 20.0

    # Key metric confidence: high needs both donors and days
    high_confidence_donors: int = 30
    high_confidence_days: int = 14
    medium_confidence_donors: int = 10

    # LTV estimate
    max_donations_per_year: float = 12.0
    base_retention_years: float = 1.5
    recurring_retention_bonus_years: float = 2.5

    def __post_init__(self) -> None:
        """Validate value ranges."""
        if self.granularity not in GRANULARITIES:
            raise ConfigError(
                f"granularity must be one of {GRANULARITIES}, got {self.granularity!r}"
            )
        if self.week_start not in WEEK_START_DAYS:
            raise ConfigError(f"Unknown week_start: {self.week_start!r}")
        if self.forecast_horizon < 0:
            raise ConfigError("forecast_horizon must be >= 0")
        if not 0 < self.confidence_level < 1:
            raise ConfigError("confidence_level must be between 0 and 1")
        if self.time_decay_half_life_days <= 0:
            raise ConfigError("time_decay_half_life_days must be > 0")
        weights = (self.position_first_weight, self.position_last_weight)
        if min(weights) < 0 or sum(weights) > 1:
            raise ConfigError(
                "position weights must be non-negative and sum to at most 1"
            )

    @classmethod
    def from_yaml(cls, path: Path) -> "AnalyticsConfig":
        """Load overrides from the ``analytics`` section of a YAML file."""
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

        overrides: dict[str, Any] = raw.get("analytics", raw)
        if not isinstance(overrides, dict):
            raise ConfigError(f"Expected a mapping in {path}")

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")

        return cls(**overrides)
