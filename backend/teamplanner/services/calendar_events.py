"""Project scheduled subtasks onto the calendar event records the store expects."""
from __future__ import annotations

from typing import Iterable, List

from teamplanner.services.planning_models import CalendarEventPayload, Subtask


def build_calendar_events(subtasks: Iterable[Subtask]) -> List[CalendarEventPayload]:
    events = [
        CalendarEventPayload(
            title=f"{task.title} ({task.assignee})",
            description=task.details,
            start=task.scheduled.start,
            end=task.scheduled.end,
            part=task.part,
            assignee=task.assignee,
        )
        for task in subtasks
        if task.scheduled is not None
    ]
    events.sort(key=lambda event: event.start)
    return events
