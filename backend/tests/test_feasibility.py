from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from teamplanner.core.errors import ValidationError
from teamplanner.services.feasibility import calculate_available_hours, validate_feasibility
from teamplanner.services.planning_models import SchedulingConstraints, SchedulingPolicy, Subtask

NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
WEEKDAYS = SchedulingConstraints(work_hours_per_day=8, start_hour=9, end_hour=17, days_of_week={1, 2, 3, 4, 5})
FRIDAY_EVENING = datetime(2026, 10, 23, 17, 0, tzinfo=timezone.utc)
POLICY = SchedulingPolicy()


def _tasks(*minutes: int) -> list[Subtask]:
    return [
        Subtask(part=1, title=f"t{index}", details="", assignee="Alice", estimated_minutes=value)
        for index, value in enumerate(minutes)
    ]


def test_available_hours_counts_weekdays_before_due_date() -> None:
    assert calculate_available_hours(FRIDAY_EVENING, WEEKDAYS, now=NOW) == 32
    next_monday_noon = datetime(2026, 10, 26, 12, 0, tzinfo=timezone.utc)
    assert calculate_available_hours(next_monday_noon, WEEKDAYS, now=NOW) == 40


def test_available_hours_use_window_length_not_work_hours_setting() -> None:
    short_days = SchedulingConstraints(work_hours_per_day=2, start_hour=9, end_hour=17, days_of_week={1, 2, 3, 4, 5})
    assert calculate_available_hours(FRIDAY_EVENING, short_days, now=NOW) == 32


def test_huge_plan_due_tomorrow_is_infeasible() -> None:
    tomorrow = NOW + timedelta(days=1)
    report = validate_feasibility(_tasks(10_000), tomorrow, WEEKDAYS, 1, now=NOW, policy=POLICY)

    assert report.feasible is False
    assert report.required_hours == pytest.approx(10_000 / 60)


def test_capacity_scales_with_members() -> None:
    solo = validate_feasibility(_tasks(800, 800), FRIDAY_EVENING, WEEKDAYS, 1, now=NOW, policy=POLICY)
    pair = validate_feasibility(_tasks(800, 800), FRIDAY_EVENING, WEEKDAYS, 2, now=NOW, policy=POLICY)

    assert solo.available_hours == 32
    assert solo.feasible is False
    assert pair.available_hours == 64
    assert pair.feasible is True


def test_utilization_cap_is_applied() -> None:
    # 25.6h is exactly 80% of 32h.
    at_cap = validate_feasibility(_tasks(1536), FRIDAY_EVENING, WEEKDAYS, 1, now=NOW, policy=POLICY)
    over_cap = validate_feasibility(_tasks(1537), FRIDAY_EVENING, WEEKDAYS, 1, now=NOW, policy=POLICY)
    relaxed = validate_feasibility(
        _tasks(1537), FRIDAY_EVENING, WEEKDAYS, 1, now=NOW, policy=SchedulingPolicy(utilization_cap=1.0)
    )

    assert at_cap.feasible is True
    assert over_cap.feasible is False
    assert relaxed.feasible is True


def test_later_due_dates_never_reduce_capacity() -> None:
    tasks = _tasks(600, 600, 600)
    previous = None
    for offset in range(0, 21):
        due = NOW + timedelta(days=offset, hours=5)
        report = validate_feasibility(tasks, due, WEEKDAYS, 1, now=NOW, policy=POLICY)
        if previous is not None:
            assert report.available_hours >= previous.available_hours
            assert not (previous.feasible and not report.feasible)
        previous = report
    assert previous.feasible is True


def test_member_count_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        validate_feasibility(_tasks(60), FRIDAY_EVENING, WEEKDAYS, 0, now=NOW, policy=POLICY)
