"""
Cycle Phase Calculator - Maps a period start date to the current menstrual phase.

Day 1 is the period start date itself:
    days 1-5   menstrual
    days 6-13  follicular
    days 14-16 ovulation
    day 17+    luteal
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from cyclewise.schemas.enums import CyclePhase
from cyclewise.services.analytics_config import get_analytics_config
from cyclewise.utils.datetime_helper import today_utc

MENSTRUAL_LAST_DAY = 5
FOLLICULAR_LAST_DAY = 13
OVULATION_LAST_DAY = 16

PHASE_INFO: dict[CyclePhase, tuple[str, str]] = {
    CyclePhase.MENSTRUAL: (
        "Menstrual",
        "Period phase - energy may be lower, focus on rest and gentle movement",
    ),
    CyclePhase.FOLLICULAR: (
        "Follicular",
        "Energy building phase - great time for new projects and intense workouts",
    ),
    CyclePhase.OVULATION: (
        "Ovulation",
        "Peak energy phase - optimal for high-intensity activities and socializing",
    ),
    CyclePhase.LUTEAL: (
        "Luteal",
        "Energy winding down - time for self-care and lighter activities",
    ),
}


@dataclass
class PhaseInfo:
    name: str
    description: str


@dataclass
class CycleStatus:
    """Computed view of a cycle row relative to today."""
    phase: CyclePhase
    phase_name: str
    phase_description: str
    day_of_cycle: int
    cycle_length: int
    next_period_date: date
    days_until_next_period: int
    start_in_future: bool = False


def day_of_cycle(period_start: date, today: Optional[date] = None) -> int:
    """1-based day within the cycle. Zero or negative when the start is in the future."""
    today = today or today_utc()
    return (today - period_start).days + 1


def calculate_cycle_phase(
    period_start: date,
    cycle_length: int = 28,
    today: Optional[date] = None,
) -> CyclePhase:
    """
    Determine the cycle phase for `today`.

    cycle_length is accepted for API symmetry; the phase boundaries are fixed
    day thresholds and every day past 16 is luteal regardless of length.
    """
    day = day_of_cycle(period_start, today)

    if day <= MENSTRUAL_LAST_DAY:
        return CyclePhase.MENSTRUAL
    elif day <= FOLLICULAR_LAST_DAY:
        return CyclePhase.FOLLICULAR
    elif day <= OVULATION_LAST_DAY:
        return CyclePhase.OVULATION
    return CyclePhase.LUTEAL


def predict_next_period(last_start: date, cycle_length: int = 28) -> date:
    return last_start + timedelta(days=cycle_length)


def get_phase_info(phase: CyclePhase) -> PhaseInfo:
    name, description = PHASE_INFO[phase]
    return PhaseInfo(name=name, description=description)


def build_cycle_status(
    period_start: date,
    cycle_length: Optional[int] = None,
    today: Optional[date] = None,
) -> CycleStatus:
    """Build the phase view for a cycle row; a missing length uses the configured default."""
    today = today or today_utc()
    length = cycle_length or get_analytics_config().cycle.default_cycle_length

    day = day_of_cycle(period_start, today)
    phase = calculate_cycle_phase(period_start, length, today)
    info = get_phase_info(phase)
    next_period = predict_next_period(period_start, length)

    return CycleStatus(
        phase=phase,
        phase_name=info.name,
        phase_description=info.description,
        day_of_cycle=day,
        cycle_length=length,
        next_period_date=next_period,
        days_until_next_period=(next_period - today).days,
        start_in_future=day <= 0,
    )
