"""Tests for trend, anomaly and correlation analysis."""
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from cyclewise.analytics.trends import (
    analyze_metrics,
    build_correlation_matrix,
    build_trend_insights,
    calculate_correlation,
    calculate_trend,
    detect_anomalies,
    metric_series,
)
from cyclewise.schemas.enums import AnomalySeverity, AnomalyType, CyclePhase, TrendDirection
from cyclewise.services.analytics_config import AnalyticsConfig, TrendConfig

TODAY = date(2026, 3, 20)
FIELDS = ("sleep_score", "hrv", "recovery_score", "avg_glucose", "temperature")


def make_rows(**series: list) -> list[SimpleNamespace]:
    """Rows most recent first; metrics not given are None."""
    length = max(len(values) for values in series.values())
    rows = []
    for idx in range(length):
        values = {name: None for name in FIELDS}
        for name, data in series.items():
            values[name] = data[idx] if idx < len(data) else None
        rows.append(SimpleNamespace(date=TODAY - timedelta(days=idx), **values))
    return rows


def make_cycle(days_ago: int, cycle_length=None) -> SimpleNamespace:
    return SimpleNamespace(period_start_date=TODAY - timedelta(days=days_ago), cycle_length=cycle_length)


class TestMetricSeries:
    def test_drops_missing_and_zero(self):
        rows = make_rows(hrv=[50, None, 0, 60])
        assert metric_series(rows, "hrv") == [50.0, 60.0]

    def test_limit_applies_before_filtering(self):
        rows = make_rows(hrv=[None, 50, 60, 70])
        assert metric_series(rows, "hrv", limit=2) == [50.0]


class TestCalculateTrend:
    def test_insufficient_data(self):
        result = calculate_trend([80, 82, 81])
        assert result.direction == TrendDirection.INSUFFICIENT_DATA
        assert result.change is None

    def test_upward_trend(self):
        result = calculate_trend([90, 88, 92, 70, 70, 70, 70])
        assert result.direction == TrendDirection.UP
        assert result.change == pytest.approx(28.571, rel=1e-3)

    def test_downward_trend(self):
        result = calculate_trend([60, 60, 60, 80, 80, 80, 80])
        assert result.direction == TrendDirection.DOWN
        assert result.change == pytest.approx(-25.0)

    def test_stable_within_band(self):
        result = calculate_trend([82, 80, 81, 80, 79, 80, 81])
        assert result.direction == TrendDirection.STABLE

    def test_four_points_uses_single_older_value(self):
        result = calculate_trend([110, 110, 110, 100])
        assert result.direction == TrendDirection.UP
        assert result.change == pytest.approx(10.0)

    def test_values_beyond_seven_ignored(self):
        result = calculate_trend([80, 80, 80, 80, 80, 80, 80, 10, 10, 10])
        assert result.direction == TrendDirection.STABLE
        assert result.change == pytest.approx(0.0)

    def test_band_from_config(self):
        config = AnalyticsConfig(trend=TrendConfig(stable_band_percent=15.0))
        result = calculate_trend([110, 110, 110, 100], config)
        assert result.direction == TrendDirection.STABLE


class TestTrendInsights:
    def test_messages_for_each_metric(self):
        rows = make_rows(
            sleep_score=[90, 88, 92, 70, 70, 70, 70],
            hrv=[40, 40, 40, 50, 50, 50, 50],
            recovery_score=[80, 80, 80, 80],
        )

        insights = {i.metric: i for i in build_trend_insights(rows, today=TODAY)}

        assert insights["Sleep Quality"].message == "Your sleep quality has improved by 29%"
        assert insights["Heart Rate Variability"].message == "Your HRV has decreased by 20% - consider more rest"
        assert insights["Recovery"].message == "Recovery levels are stable"

    def test_short_series_skipped(self):
        rows = make_rows(sleep_score=[80, 80, 80], hrv=[50, 50, 50, 50])

        metrics = [i.metric for i in build_trend_insights(rows, today=TODAY)]

        assert metrics == ["Heart Rate Variability"]

    @pytest.mark.parametrize(
        "days_ago,message",
        [
            (2, "You may experience lower energy during menstruation"),
            (8, "Your energy levels typically peak during the follicular phase"),
            (14, "Ovulation phase - optimal time for intense workouts"),
            (20, "Luteal phase - focus on rest and recovery"),
        ],
    )
    def test_cycle_insight(self, days_ago, message):
        insights = build_trend_insights([], make_cycle(days_ago), today=TODAY)

        assert len(insights) == 1
        assert insights[0].metric == "Cycle Phase"
        assert insights[0].message == message

    def test_no_cycle_insight_past_cycle_length(self):
        assert build_trend_insights([], make_cycle(30, 28), today=TODAY) == []

    def test_no_cycle_insight_for_future_start(self):
        assert build_trend_insights([], make_cycle(-3), today=TODAY) == []


class TestDetectAnomalies:
    def test_too_few_rows(self):
        assert detect_anomalies(make_rows(hrv=[50, 200])) == []

    def test_spike_flagged(self):
        rows = make_rows(hrv=[150] + [50] * 9)

        anomalies = detect_anomalies(rows)

        assert len(anomalies) == 1
        anomaly = anomalies[0]
        assert anomaly.metric == "hrv"
        assert anomaly.type == AnomalyType.SPIKE
        assert anomaly.severity == AnomalySeverity.MEDIUM
        assert anomaly.z_score == pytest.approx(3.0)
        assert anomaly.message == "HRV unusually high at 150.0"
        assert anomaly.date == TODAY

    def test_drop_flagged(self):
        rows = make_rows(sleep_score=[80, 20] + [80] * 8)

        anomalies = detect_anomalies(rows)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.DROP
        assert anomalies[0].message == "Sleep Score unusually low at 20.0"
        assert anomalies[0].date == TODAY - timedelta(days=1)

    def test_high_severity(self):
        rows = make_rows(avg_glucose=[150] + [50] * 19)

        anomalies = detect_anomalies(rows)

        assert anomalies[0].severity == AnomalySeverity.HIGH
        assert anomalies[0].message == "Glucose unusually high at 150.0"

    def test_only_recent_rows_inspected(self):
        hrv = [50] * 20
        hrv[15] = 150
        assert detect_anomalies(make_rows(hrv=hrv)) == []

    def test_constant_series_skipped(self):
        assert detect_anomalies(make_rows(hrv=[50] * 10)) == []

    def test_zero_values_ignored(self):
        rows = make_rows(recovery_score=[0, 70, 72, 71, 0, 70])
        assert detect_anomalies(rows) == []

    def test_temperature_not_tracked(self):
        rows = make_rows(temperature=[40.0] + [36.5] * 9)
        assert detect_anomalies(rows) == []

    def test_sorted_by_date_desc(self):
        rows = make_rows(
            hrv=[50, 50, 50, 150] + [50] * 6,
            sleep_score=[20] + [80] * 9,
        )

        anomalies = detect_anomalies(rows)

        assert [a.metric for a in anomalies] == ["sleep_score", "hrv"]
        assert anomalies[0].date > anomalies[1].date


class TestCorrelation:
    def test_perfect_positive(self):
        assert calculate_correlation([1, 2, 3, 4], [2, 4, 6, 8]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert calculate_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_unequal_lengths(self):
        assert calculate_correlation([1, 2, 3], [1, 2]) == 0

    def test_empty(self):
        assert calculate_correlation([], []) == 0

    def test_zero_variance_is_zero_not_nan(self):
        assert calculate_correlation([5, 5, 5], [1, 2, 3]) == 0

    def test_matrix_shape_and_diagonal(self):
        rows = make_rows(
            sleep_score=[70, 75, 80, 85, 90],
            hrv=[40, 45, 50, 55, 60],
            recovery_score=[90, 85, 80, 75, 70],
        )

        matrix = build_correlation_matrix(rows)

        assert set(matrix) == set(FIELDS)
        for metric in FIELDS:
            assert matrix[metric][metric] == 1.0
        assert matrix["sleep_score"]["hrv"] == pytest.approx(1.0)
        assert matrix["sleep_score"]["recovery_score"] == pytest.approx(-1.0)
        assert matrix["sleep_score"]["temperature"] == 0.0
        assert matrix["hrv"]["sleep_score"] == matrix["sleep_score"]["hrv"]

    def test_pairs_truncated_to_shorter_series(self):
        rows = make_rows(sleep_score=[70, 80, 90, 10, 5], hrv=[40, 50, 60])

        matrix = build_correlation_matrix(rows)

        assert matrix["sleep_score"]["hrv"] == pytest.approx(1.0)


class TestAnalyzeMetrics:
    def test_combined_analysis(self):
        rows = make_rows(
            sleep_score=[90, 88, 92, 70, 70, 70, 70],
            hrv=[150] + [50] * 9,
        )

        analysis = analyze_metrics(rows, make_cycle(13), today=TODAY)

        assert analysis.rows_analyzed == 10
        assert analysis.cycle_phase == CyclePhase.OVULATION
        assert any(t.metric == "Sleep Quality" for t in analysis.trends)
        assert any(t.metric == "Cycle Phase" for t in analysis.trends)
        assert len(analysis.anomalies) == 1
        assert "sleep_score" in analysis.correlations

    def test_empty_rows(self):
        analysis = analyze_metrics([], None, today=TODAY)

        assert analysis.rows_analyzed == 0
        assert analysis.cycle_phase is None
        assert analysis.trends == []
        assert analysis.anomalies == []
        assert analysis.correlations["hrv"]["hrv"] == 1.0
