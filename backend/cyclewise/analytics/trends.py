"""
Trend Analyzer - Trends, z-score anomalies and Pearson correlations over daily metrics.

Rows are expected most recent first. Each metric series drops missing and
zero values before any statistics are computed.
"""
import math
from dataclasses import dataclass, field
from datetime import date
from statistics import mean, pstdev
from typing import Any, Optional, Sequence

from cyclewise.analytics.cycle_phase import calculate_cycle_phase
from cyclewise.schemas.enums import (
    METRIC_LABELS,
    AnomalySeverity,
    AnomalyType,
    CyclePhase,
    TrendDirection,
)
from cyclewise.services.analytics_config import AnalyticsConfig, get_analytics_config
from cyclewise.utils.datetime_helper import today_utc

ANOMALY_METRICS = ("sleep_score", "hrv", "recovery_score", "avg_glucose")
CORRELATION_METRICS = ("sleep_score", "hrv", "recovery_score", "avg_glucose", "temperature")


@dataclass
class TrendResult:
    direction: TrendDirection
    change: Optional[float] = None


@dataclass
class TrendInsight:
    metric: str
    trend: TrendDirection
    change: Optional[float]
    message: str


@dataclass
class Anomaly:
    date: date
    metric: str
    value: float
    z_score: float
    severity: AnomalySeverity
    type: AnomalyType
    message: str


@dataclass
class MetricsAnalysis:
    rows_analyzed: int
    cycle_phase: Optional[CyclePhase] = None
    trends: list[TrendInsight] = field(default_factory=list)
    anomalies: list[Anomaly] = field(default_factory=list)
    correlations: dict[str, dict[str, float]] = field(default_factory=dict)


def metric_series(rows: Sequence[Any], metric: str, limit: Optional[int] = None) -> list[float]:
    """Non-zero values of `metric` from the first `limit` rows, order preserved."""
    window = rows[:limit] if limit is not None else rows
    values = []
    for row in window:
        value = getattr(row, metric, None)
        if value:
            values.append(float(value))
    return values


# =============================================================================
# Trends
# =============================================================================

def calculate_trend(values: Sequence[float], config: Optional[AnalyticsConfig] = None) -> TrendResult:
    """Compare the mean of the 3 most recent values with the 4 before them."""
    cfg = (config or get_analytics_config()).trend

    if len(values) < cfg.min_points:
        return TrendResult(TrendDirection.INSUFFICIENT_DATA)

    recent = mean(values[:cfg.recent_window])
    older = mean(values[cfg.recent_window:cfg.recent_window + cfg.older_window])
    if older == 0:
        return TrendResult(TrendDirection.STABLE, 0.0)

    change = (recent - older) / older * 100
    if abs(change) < cfg.stable_band_percent:
        return TrendResult(TrendDirection.STABLE, change)
    return TrendResult(TrendDirection.UP if change > 0 else TrendDirection.DOWN, change)


_TREND_MESSAGES: dict[str, tuple[str, dict[TrendDirection, str]]] = {
    "sleep_score": ("Sleep Quality", {
        TrendDirection.UP: "Your sleep quality has improved by {change:.0f}%",
        TrendDirection.DOWN: "Your sleep quality has decreased by {change:.0f}%",
        TrendDirection.STABLE: "Your sleep quality remains consistent",
    }),
    "hrv": ("Heart Rate Variability", {
        TrendDirection.UP: "Your HRV is trending upward by {change:.0f}% - great recovery!",
        TrendDirection.DOWN: "Your HRV has decreased by {change:.0f}% - consider more rest",
        TrendDirection.STABLE: "Your HRV is stable",
    }),
    "recovery_score": ("Recovery", {
        TrendDirection.UP: "Recovery improving by {change:.0f}%",
        TrendDirection.DOWN: "Recovery declining by {change:.0f}%",
        TrendDirection.STABLE: "Recovery levels are stable",
    }),
}


def _cycle_insight(period_start: date, cycle_length: int, today: date) -> Optional[TrendInsight]:
    days_since = (today - period_start).days
    if not 0 <= days_since <= cycle_length:
        return None

    if days_since < 5:
        message = "You may experience lower energy during menstruation"
    elif days_since < 14:
        message = "Your energy levels typically peak during the follicular phase"
    elif days_since < 16:
        message = "Ovulation phase - optimal time for intense workouts"
    else:
        message = "Luteal phase - focus on rest and recovery"

    return TrendInsight("Cycle Phase", TrendDirection.STABLE, 0.0, message)


def build_trend_insights(
    rows: Sequence[Any],
    cycle: Any = None,
    today: Optional[date] = None,
    config: Optional[AnalyticsConfig] = None,
) -> list[TrendInsight]:
    """Human-readable insights for sleep, HRV and recovery, plus the cycle phase when known."""
    config = config or get_analytics_config()
    insights = []

    for metric, (label, messages) in _TREND_MESSAGES.items():
        result = calculate_trend(metric_series(rows, metric), config)
        if result.direction == TrendDirection.INSUFFICIENT_DATA:
            continue
        message = messages[result.direction].format(change=abs(result.change or 0.0))
        insights.append(TrendInsight(label, result.direction, result.change, message))

    if cycle is not None:
        length = cycle.cycle_length or config.cycle.default_cycle_length
        insight = _cycle_insight(cycle.period_start_date, length, today or today_utc())
        if insight:
            insights.append(insight)

    return insights


# =============================================================================
# Anomalies
# =============================================================================

def _severity(z: float, cfg) -> AnomalySeverity:
    if z > cfg.high_threshold:
        return AnomalySeverity.HIGH
    elif z > cfg.medium_threshold:
        return AnomalySeverity.MEDIUM
    return AnomalySeverity.LOW


def detect_anomalies(rows: Sequence[Any], config: Optional[AnalyticsConfig] = None) -> list[Anomaly]:
    """
    Flag recent values more than 2 population standard deviations from the mean.

    The baseline is built from the first 30 rows; only the first 10 rows are
    inspected. Metrics with fewer than 3 values or zero spread are skipped.
    """
    cfg = (config or get_analytics_config()).anomaly

    if len(rows) < cfg.min_rows:
        return []

    anomalies: list[Anomaly] = []
    for metric in ANOMALY_METRICS:
        values = metric_series(rows, metric, cfg.baseline_window)
        if len(values) < cfg.min_rows:
            continue

        avg = mean(values)
        std = pstdev(values)
        if std == 0:
            continue

        label = METRIC_LABELS[metric]
        for row in rows[:cfg.inspect_window]:
            raw = getattr(row, metric, None)
            if not raw:
                continue
            value = float(raw)
            z = abs(value - avg) / std
            if z <= cfg.flag_threshold:
                continue

            is_spike = value > avg
            anomalies.append(Anomaly(
                date=row.date,
                metric=metric,
                value=value,
                z_score=round(z, 2),
                severity=_severity(z, cfg),
                type=AnomalyType.SPIKE if is_spike else AnomalyType.DROP,
                message=f"{label} unusually {'high' if is_spike else 'low'} at {value:.1f}",
            ))

    anomalies.sort(key=lambda a: a.date, reverse=True)
    return anomalies


# =============================================================================
# Correlations
# =============================================================================

def calculate_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation; 0 for empty, mismatched or constant series."""
    n = len(x)
    if n == 0 or n != len(y):
        return 0.0

    mean_x = sum(x) / n
    mean_y = sum(y) / n
    cov = sum((a - mean_x) * (b - mean_y) for a, b in zip(x, y))
    var_x = sum((a - mean_x) ** 2 for a in x)
    var_y = sum((b - mean_y) ** 2 for b in y)

    denominator = math.sqrt(var_x * var_y)
    if denominator == 0:
        return 0.0
    return cov / denominator


def build_correlation_matrix(
    rows: Sequence[Any],
    config: Optional[AnalyticsConfig] = None,
) -> dict[str, dict[str, float]]:
    cfg = (config or get_analytics_config()).correlation
    series = {metric: metric_series(rows, metric, cfg.window) for metric in CORRELATION_METRICS}

    matrix: dict[str, dict[str, float]] = {}
    for m1 in CORRELATION_METRICS:
        matrix[m1] = {}
        for m2 in CORRELATION_METRICS:
            if m1 == m2:
                matrix[m1][m2] = 1.0
                continue
            length = min(len(series[m1]), len(series[m2]))
            if length == 0:
                matrix[m1][m2] = 0.0
                continue
            matrix[m1][m2] = round(
                calculate_correlation(series[m1][:length], series[m2][:length]), 4
            )
    return matrix


def analyze_metrics(
    rows: Sequence[Any],
    cycle: Any = None,
    today: Optional[date] = None,
    config: Optional[AnalyticsConfig] = None,
) -> MetricsAnalysis:
    """Run every analyzer over the same rows."""
    config = config or get_analytics_config()
    today = today or today_utc()

    phase = None
    if cycle is not None:
        phase = calculate_cycle_phase(
            cycle.period_start_date,
            cycle.cycle_length or config.cycle.default_cycle_length,
            today,
        )

    return MetricsAnalysis(
        rows_analyzed=len(rows),
        cycle_phase=phase,
        trends=build_trend_insights(rows, cycle, today, config),
        anomalies=detect_anomalies(rows, config),
        correlations=build_correlation_matrix(rows, config),
    )
