"""
CSV export for metrics, goals and cycles.
"""
import csv
import io
from datetime import date, datetime
from typing import Any, Iterable, Sequence

from cyclewise.analytics.goal_progress import evaluate_goal_progress
from cyclewise.models import CycleTracking, HealthGoal, HealthMetric

METRIC_COLUMNS: list[tuple[str, str]] = [
    ("Date", "date"),
    ("Sleep Score", "sleep_score"),
    ("Sleep Duration (hours)", "sleep_duration"),
    ("HRV (ms)", "hrv"),
    ("Resting Heart Rate (bpm)", "resting_heart_rate"),
    ("Recovery Score", "recovery_score"),
    ("Steps", "steps"),
    ("Avg Glucose (mg/dL)", "avg_glucose"),
    ("Glucose Variability", "glucose_variability"),
    ("Temperature", "temperature"),
    ("VO2 Max", "vo2_max"),
]

GOAL_HEADERS = [
    "Goal Type",
    "Target Metric",
    "Target Value",
    "Baseline Value",
    "Current Value",
    "Progress (%)",
    "Deadline",
    "Status",
    "Description",
    "Created At",
]

CYCLE_HEADERS = [
    "Period Start Date",
    "Period End Date",
    "Cycle Length",
    "Flow Intensity",
    "Symptoms",
    "Notes",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _render(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()


def metrics_to_csv(metrics: Sequence[HealthMetric]) -> str:
    return _render(
        [header for header, _ in METRIC_COLUMNS],
        ([getattr(m, attr) for _, attr in METRIC_COLUMNS] for m in metrics),
    )


def goals_to_csv(goals: Sequence[HealthGoal]) -> str:
    rows = []
    for goal in goals:
        progress = evaluate_goal_progress(
            goal.goal_type, goal.current_value, goal.target_value, goal.baseline_value
        )
        rows.append([
            goal.goal_type,
            goal.target_metric,
            goal.target_value,
            goal.baseline_value,
            goal.current_value,
            f"{progress.progress:.1f}",
            goal.deadline,
            goal.status,
            goal.description,
            goal.created_at,
        ])
    return _render(GOAL_HEADERS, rows)


def cycles_to_csv(cycles: Sequence[CycleTracking]) -> str:
    return _render(
        CYCLE_HEADERS,
        (
            [
                c.period_start_date,
                c.period_end_date,
                c.cycle_length,
                c.flow_intensity,
                "; ".join(c.symptoms or []),
                c.notes,
            ]
            for c in cycles
        ),
    )


def metrics_filename(start: date, end: date) -> str:
    return f"health-metrics-{start.isoformat()}-to-{end.isoformat()}.csv"


def goals_filename(today: date) -> str:
    return f"health-goals-{today.isoformat()}.csv"


def cycles_filename(start: date, end: date) -> str:
    return f"cycle-tracking-{start.isoformat()}-to-{end.isoformat()}.csv"
