"""
Analytics Configuration - Thresholds for trend, anomaly, correlation and goal calculations.

All "magic numbers" are centralized here for easy tuning without code changes.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class TrendConfig:
    """Recent-vs-older trend configuration."""
    min_points: int = 4
    recent_window: int = 3  # values[0:3]
    older_window: int = 4  # values[3:7]
    stable_band_percent: float = 5.0  # |change| below this is "stable"


@dataclass
class AnomalyConfig:
    """Z-score outlier configuration."""
    min_rows: int = 3
    baseline_window: int = 30  # samples used for mean/std
    inspect_window: int = 10  # most recent samples checked
    flag_threshold: float = 2.0
    medium_threshold: float = 2.5
    high_threshold: float = 3.0


@dataclass
class CorrelationConfig:
    """Pearson correlation matrix configuration."""
    window: int = 30


@dataclass
class GoalConfig:
    """Goal progress configuration."""
    maintain_tolerance: float = 0.05  # fraction of target


@dataclass
class CycleConfig:
    """Menstrual cycle defaults."""
    default_cycle_length: int = 28


@dataclass
class AnalyticsConfig:
    """Master configuration for all analytics parameters."""
    trend: TrendConfig = field(default_factory=TrendConfig)
    anomaly: AnomalyConfig = field(default_factory=AnomalyConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    goal: GoalConfig = field(default_factory=GoalConfig)
    cycle: CycleConfig = field(default_factory=CycleConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AnalyticsConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "trend" in data:
            config.trend = TrendConfig(**data["trend"])
        if "anomaly" in data:
            config.anomaly = AnomalyConfig(**data["anomaly"])
        if "correlation" in data:
            config.correlation = CorrelationConfig(**data["correlation"])
        if "goal" in data:
            config.goal = GoalConfig(**data["goal"])
        if "cycle" in data:
            config.cycle = CycleConfig(**data["cycle"])

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            "trend": self.trend.__dict__,
            "anomaly": self.anomaly.__dict__,
            "correlation": self.correlation.__dict__,
            "goal": self.goal.__dict__,
            "cycle": self.cycle.__dict__,
        }


# Global default configuration instance
_default_config: Optional[AnalyticsConfig] = None


def get_analytics_config() -> AnalyticsConfig:
    """Get the current analytics configuration (singleton pattern)."""
    global _default_config
    if _default_config is None:
        _default_config = AnalyticsConfig()
    return _default_config


def set_analytics_config(config: AnalyticsConfig) -> None:
    """Set a custom analytics configuration."""
    global _default_config
    _default_config = config


def load_analytics_config_from_yaml(path: str | Path) -> AnalyticsConfig:
    """Load and set analytics configuration from YAML file."""
    config = AnalyticsConfig.from_yaml(path)
    set_analytics_config(config)
    return config
