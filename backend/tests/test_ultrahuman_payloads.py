"""Tests for Ultrahuman day payload parsing."""
import pytest

from cyclewise.integrations.ultrahuman.payloads import (
    GlucoseMetric,
    HRVMetric,
    RecoveryMetric,
    SleepMetric,
    StepsMetric,
    UnknownMetric,
    extract_daily_metrics,
    parse_metric_entry,
)
from tests.factories import metric_payload


class TestParseMetricEntry:
    @pytest.mark.parametrize(
        "metric_type,variant",
        [
            ("sleep", SleepMetric),
            ("hrv", HRVMetric),
            ("avg_sleep_hrv", HRVMetric),
            ("steps", StepsMetric),
            ("recovery_index", RecoveryMetric),
            ("glucose", GlucoseMetric),
            ("movement_index", UnknownMetric),
        ],
    )
    def test_dispatch_by_type(self, metric_type, variant):
        assert isinstance(parse_metric_entry({"type": metric_type, "object": {}}), variant)

    def test_non_dict_entry_is_unknown(self):
        assert isinstance(parse_metric_entry("sleep"), UnknownMetric)

    def test_malformed_entry_is_unknown(self):
        entry = {"type": "hrv", "object": {"avg": "not-a-number"}}
        assert isinstance(parse_metric_entry(entry), UnknownMetric)

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_entry_is_unknown(self, bad):
        assert isinstance(parse_metric_entry({"type": "hrv", "object": {"avg": bad}}), UnknownMetric)
        samples = {"values": [{"value": 4000, "timestamp": 1}, {"value": bad, "timestamp": 2}]}
        assert isinstance(parse_metric_entry({"type": "steps", "object": samples}), UnknownMetric)

    def test_unknown_contributes_nothing(self):
        assert parse_metric_entry({"type": "spo2", "object": {"value": 97}}).fields() == {}


class TestVariantRules:
    def test_sleep_minutes_to_hours(self):
        entry = {"type": "sleep", "object": {"score": 82, "total_sleep_minutes": 450}}
        assert parse_metric_entry(entry).fields() == {"sleep_score": 82, "sleep_duration": 7.5}

    def test_sleep_duration_hours_fallback(self):
        entry = {"type": "sleep", "object": {"duration_hours": 6.25}}
        assert parse_metric_entry(entry).fields()["sleep_duration"] == 6.25

    def test_hrv_prefers_avg(self):
        entry = {"type": "hrv", "object": {"avg": 48, "values": [{"value": 10}]}}
        assert parse_metric_entry(entry).fields() == {"hrv": 48}

    def test_hrv_mean_of_samples(self):
        entry = {"type": "hrv", "object": {"values": [{"value": 40}, {"value": 50}, {"value": 61}]}}
        assert parse_metric_entry(entry).fields() == {"hrv": 50}

    def test_resting_heart_rate(self):
        entry = {"type": "night_rhr", "object": {"values": [{"value": 55}, {"value": 57}]}}
        assert parse_metric_entry(entry).fields() == {"resting_heart_rate": 56}

    def test_steps_total(self):
        entry = {"type": "steps", "object": {"total": 8450}}
        assert parse_metric_entry(entry).fields() == {"steps": 8450}

    def test_steps_latest_sample_by_timestamp(self):
        entry = {
            "type": "steps",
            "object": {
                "values": [
                    {"value": 9000, "timestamp": 1700003600},
                    {"value": 2000, "timestamp": 1700000000},
                    {"value": 5000, "timestamp": 1700001800},
                ]
            },
        }
        assert parse_metric_entry(entry).fields() == {"steps": 9000}

    def test_recovery_scalar(self):
        entry = {"type": "recovery", "object": {"value": 77}}
        assert parse_metric_entry(entry).fields() == {"recovery_score": 77}

    def test_glucose_mean(self):
        entry = {"type": "glucose", "object": {"values": [{"value": 90}, {"value": 100}, {"value": 110}]}}
        assert parse_metric_entry(entry).fields() == {"avg_glucose": 100.0}

    def test_temperature_alias(self):
        entry = {"type": "temp", "object": {"avg": 36.4}}
        assert parse_metric_entry(entry).fields() == {"temperature": 36.4}

    def test_vo2_max(self):
        entry = {"type": "vo2_max", "object": {"value": 41.5}}
        assert parse_metric_entry(entry).fields() == {"vo2_max": 41.5}


class TestExtractDailyMetrics:
    def test_folds_all_variants(self):
        payload = metric_payload(
            sleep={"score": 85, "total_sleep_minutes": 480},
            avg_sleep_hrv={"value": 52},
            resting_heart_rate={"value": 58},
            steps={"total": 10234},
            recovery_index={"value": 81},
            glucose={"avg": 96.5},
            glucose_variability={"value": 12.3},
            temperature={"values": [{"value": 36.5}, {"value": 36.7}]},
            vo2_max={"value": 40},
        )

        values = extract_daily_metrics(payload)

        assert values.sleep_score == 85
        assert values.sleep_duration == 8.0
        assert values.hrv == 52
        assert values.resting_heart_rate == 58
        assert values.steps == 10234
        assert values.recovery_score == 81
        assert values.avg_glucose == 96.5
        assert values.glucose_variability == 12.3
        assert values.temperature == pytest.approx(36.6)
        assert values.vo2_max == 40

    def test_bare_list_payload(self):
        payload = [{"type": "hrv", "object": {"avg": 44}}, {"type": "unknown", "object": {}}]
        assert extract_daily_metrics(payload).reported() == {"hrv": 44}

    def test_missing_metrics_stay_none(self):
        values = extract_daily_metrics(metric_payload(steps={"total": 500}))

        assert values.reported() == {"steps": 500}
        assert values.sleep_score is None

    def test_non_finite_value_skipped(self):
        payload = metric_payload(hrv={"avg": float("nan")}, steps={"total": 8200}, sleep={"score": float("inf")})
        assert extract_daily_metrics(payload).reported() == {"steps": 8200}

    @pytest.mark.parametrize("payload", [{}, None, {"data": None}, {"data": {"metric_data": None}}, "oops"])
    def test_empty_or_odd_payloads(self, payload):
        assert extract_daily_metrics(payload).is_empty()
