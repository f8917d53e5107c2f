"""Domain types shared by the decomposition and scheduling services."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from teamplanner.core.config import settings
from teamplanner.core.errors import ValidationError
from teamplanner.services.timeline import ensure_utc, weekday_index

Weekday = Annotated[int, Field(ge=0, le=6)]
Hour = Annotated[int, Field(ge=0, le=23)]

# Longest single subtask the planner accepts: 30 days of wall-clock minutes.
MAX_ESTIMATED_MINUTES = 60 * 24 * 30


class SchedulingConstraints(BaseModel):
    """Working-hours policy for one planning request. Days use Sunday=0."""

    model_config = ConfigDict(frozen=True)

    work_hours_per_day: int = Field(..., gt=0)
    start_hour: Hour
    end_hour: Hour
    days_of_week: FrozenSet[Weekday]

    @model_validator(mode="after")
    def _check_window(self) -> "SchedulingConstraints":
        if self.start_hour >= self.end_hour:
            raise ValueError("start_hour must be earlier than end_hour")
        if not self.days_of_week:
            raise ValueError("days_of_week must contain at least one day")
        return self

    @property
    def hours_per_work_day(self) -> int:
        return self.end_hour - self.start_hour

    def allows_day(self, moment: datetime) -> bool:
        return weekday_index(moment) in self.days_of_week


class Member(BaseModel):
    id: Optional[Any] = None
    name: str
    role: Optional[str] = None


class ScheduledWindow(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class Subtask(BaseModel):
    """One assignable, schedulable unit of an assignment."""

    part: int = Field(..., ge=1)
    title: str
    details: str
    assignee: str
    estimated_minutes: int = Field(..., ge=1, le=MAX_ESTIMATED_MINUTES)
    scheduled: Optional[ScheduledWindow] = None


class PlanningInput(BaseModel):
    """Everything a decomposer needs to know about one assignment."""

    title: str
    description: str = ""
    due_date: datetime
    parts: int
    members: List[Member]
    constraints: SchedulingConstraints

    @field_validator("due_date")
    @classmethod
    def _due_to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


@dataclass(frozen=True)
class SchedulingPolicy:
    """Tunable constants of the scheduling heuristic.

    Changing any of these changes placement and feasibility outcomes.
    """

    buffer_minutes: int = 15
    utilization_cap: float = 0.8
    deadline_margin: timedelta = timedelta(days=1)

    @classmethod
    def from_settings(cls) -> "SchedulingPolicy":
        return cls(
            buffer_minutes=settings.scheduling_buffer_minutes,
            utilization_cap=settings.feasibility_utilization_cap,
            deadline_margin=timedelta(days=settings.deadline_margin_days),
        )


@dataclass
class FeasibilityReport:
    feasible: bool
    required_hours: float
    available_hours: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feasible": self.feasible,
            "required_hours": self.required_hours,
            "available_hours": self.available_hours,
        }


@dataclass
class FeasibilityWarning:
    subtask_title: str
    assignee: str
    start: datetime
    message: str


@dataclass
class ScheduleResult:
    subtasks: List[Subtask]
    warnings: List[FeasibilityWarning] = field(default_factory=list)


@dataclass
class Decomposition:
    subtasks: List[Subtask]
    source: Literal["provider", "fallback"]


class CalendarEventPayload(BaseModel):
    """A scheduled subtask as the calendar layer stores it."""

    title: str
    description: str
    start: datetime
    end: datetime
    all_day: bool = False
    part: int
    assignee: str


@dataclass
class PlanResult:
    subtasks: List[Subtask]
    events: List[CalendarEventPayload]
    feasibility: FeasibilityReport
    warnings: List[FeasibilityWarning] = field(default_factory=list)
    source: Literal["provider", "fallback"] = "fallback"


DEFAULT_CONSTRAINT_VALUES: Dict[str, Any] = {
    "work_hours_per_day": 6,
    "start_hour": 9,
    "end_hour": 18,
    "days_of_week": (1, 2, 3, 4, 5),
}


def resolve_constraints(raw: SchedulingConstraints | Dict[str, Any] | None) -> SchedulingConstraints:
    """Fill omitted constraint fields with the Mon-Fri 09:00-18:00 defaults.

    Raises ``ValidationError`` when the merged values break an invariant.
    """
    if isinstance(raw, SchedulingConstraints):
        return raw
    values = dict(DEFAULT_CONSTRAINT_VALUES)
    for key, value in (raw or {}).items():
        if value is not None:
            values[key] = value
    try:
        return SchedulingConstraints.model_validate(values)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(f"Invalid constraints: {first.get('msg')}", field=location) from exc
