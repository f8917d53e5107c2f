"""Capacity check: does the total effort fit before the deadline?"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from teamplanner.core.errors import ValidationError
from teamplanner.services.planning_models import (
    FeasibilityReport,
    SchedulingConstraints,
    SchedulingPolicy,
    Subtask,
)
from teamplanner.services.timeline import ensure_utc, tomorrow_at, utc_now


def count_working_days(start: datetime, due_date: datetime, constraints: SchedulingConstraints) -> int:
    """Allowed weekdays visited stepping one day at a time from ``start`` while before ``due_date``."""
    days = 0
    current = start
    cutoff = ensure_utc(due_date)
    while current < cutoff:
        if constraints.allows_day(current):
            days += 1
        current += timedelta(days=1)
    return days


def calculate_available_hours(
    due_date: datetime,
    constraints: SchedulingConstraints,
    now: Optional[datetime] = None,
) -> float:
    """Working hours one member has between tomorrow's start hour and the due date."""
    first_day = tomorrow_at(now or utc_now(), constraints.start_hour)
    return float(constraints.hours_per_work_day * count_working_days(first_day, due_date, constraints))


def validate_feasibility(
    subtasks: Iterable[Subtask],
    due_date: datetime,
    constraints: SchedulingConstraints,
    member_count: int,
    now: Optional[datetime] = None,
    policy: Optional[SchedulingPolicy] = None,
) -> FeasibilityReport:
    """
    Compare required effort with the team's parallel capacity.

    Feasible when the required hours fit in ``policy.utilization_cap`` of the
    available hours. Advisory only; the scheduler never consults it.
    """
    if member_count < 1:
        raise ValidationError("Member count must be at least 1", field="member_count")
    active_policy = policy or SchedulingPolicy.from_settings()

    required_hours = sum(task.estimated_minutes for task in subtasks) / 60
    available_hours = calculate_available_hours(due_date, constraints, now) * member_count
    return FeasibilityReport(
        feasible=required_hours <= available_hours * active_policy.utilization_cap,
        required_hours=required_hours,
        available_hours=available_hours,
    )
