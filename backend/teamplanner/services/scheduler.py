"""Greedy per-member calendar placement for decomposed subtasks."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from teamplanner.observability.metrics import log_metric
from teamplanner.services.planning_models import (
    FeasibilityWarning,
    ScheduledWindow,
    ScheduleResult,
    SchedulingConstraints,
    SchedulingPolicy,
    Subtask,
)
from teamplanner.services.timeline import at_hour, ensure_utc, tomorrow_at, utc_now

logger = logging.getLogger(__name__)


def next_working_slot(slot: datetime, constraints: SchedulingConstraints) -> datetime:
    """Move ``slot`` forward to the first instant inside an allowed working window."""
    if slot.hour < constraints.start_hour:
        slot = at_hour(slot, constraints.start_hour)
    elif slot.hour >= constraints.end_hour:
        slot = at_hour(slot + timedelta(days=1), constraints.start_hour)

    while not constraints.allows_day(slot):
        slot = at_hour(slot + timedelta(days=1), constraints.start_hour)
    return slot


class SchedulingContext:
    """Cursor state for a single scheduling pass: member name -> next free start."""

    def __init__(self, constraints: SchedulingConstraints, now: datetime, policy: SchedulingPolicy):
        self.constraints = constraints
        self.policy = policy
        self._first_slot = tomorrow_at(now, constraints.start_hour)
        self._cursor: Dict[str, datetime] = {}

    def place(self, subtask: Subtask) -> ScheduledWindow:
        slot = self._cursor.get(subtask.assignee, self._first_slot)
        start = next_working_slot(slot, self.constraints)
        end = start + timedelta(minutes=subtask.estimated_minutes)
        self._cursor[subtask.assignee] = end + timedelta(minutes=self.policy.buffer_minutes)
        return ScheduledWindow(start=start, end=end)


def placement_order(subtasks: Iterable[Subtask]) -> List[Subtask]:
    """Part ascending, then longest first within a part."""
    return sorted(subtasks, key=lambda task: (task.part, -task.estimated_minutes))


def schedule_all(
    subtasks: Iterable[Subtask],
    due_date: datetime,
    constraints: SchedulingConstraints,
    now: Optional[datetime] = None,
    policy: Optional[SchedulingPolicy] = None,
) -> ScheduleResult:
    """
    Give every subtask a start/end on its assignee's calendar.

    Tasks are never refused: a placement that starts after
    ``due_date - policy.deadline_margin`` is kept and reported as a
    ``FeasibilityWarning``. Tasks longer than the rest of the working day are
    not split and may run past ``end_hour``. The returned list is in placement
    order, not input order. Input models are not mutated.
    """
    active_policy = policy or SchedulingPolicy.from_settings()
    context = SchedulingContext(constraints, now or utc_now(), active_policy)
    deadline_cutoff = ensure_utc(due_date) - active_policy.deadline_margin

    scheduled: List[Subtask] = []
    warnings: List[FeasibilityWarning] = []
    for subtask in placement_order(subtasks):
        window = context.place(subtask)
        if window.start > deadline_cutoff:
            logger.warning(
                "Task %r for %s starts %s, past the deadline margin",
                subtask.title,
                subtask.assignee,
                window.start.isoformat(),
            )
            warnings.append(
                FeasibilityWarning(
                    subtask_title=subtask.title,
                    assignee=subtask.assignee,
                    start=window.start,
                    message="Scheduled after the due date margin; may need adjustment",
                )
            )
        scheduled.append(subtask.model_copy(update={"scheduled": window}))

    if warnings:
        log_metric("schedule.deadline_warnings", len(warnings), {"subtasks": len(scheduled)})
    return ScheduleResult(subtasks=scheduled, warnings=warnings)
