"""Schemas for the planning endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from teamplanner.services.planning_models import CalendarEventPayload, Member, Subtask


class ConstraintsPayload(BaseModel):
    """Working-hours policy; omitted fields default to Mon-Fri 09:00-18:00, 6h/day."""

    work_hours_per_day: Optional[int] = None
    start_hour: Optional[int] = None
    end_hour: Optional[int] = None
    days_of_week: Optional[List[int]] = Field(default=None, description="0-6, Sunday=0")


class PlanRequest(BaseModel):
    title: str
    description: str = ""
    due_date: datetime
    parts: int = 1
    members: List[Member]
    constraints: Optional[ConstraintsPayload] = None
    balance: bool = False


class FeasibilityPayload(BaseModel):
    feasible: bool
    required_hours: float
    available_hours: float


class WarningPayload(BaseModel):
    subtask_title: str
    assignee: str
    start: datetime
    message: str


class PlanResponse(BaseModel):
    source: Literal["provider", "fallback"]
    subtasks: List[Subtask]
    events: List[CalendarEventPayload]
    feasibility: FeasibilityPayload
    warnings: List[WarningPayload]
    request_id: str


class ScheduleRequest(BaseModel):
    subtasks: List[Subtask]
    due_date: datetime
    constraints: Optional[ConstraintsPayload] = None


class ScheduleResponse(BaseModel):
    subtasks: List[Subtask]
    warnings: List[WarningPayload]
    request_id: str


class BalanceRequest(BaseModel):
    subtasks: List[Subtask]


class BalanceResponse(BaseModel):
    subtasks: List[Subtask]
    workload_minutes: Dict[str, int]
    request_id: str


class FeasibilityRequest(BaseModel):
    subtasks: List[Subtask]
    due_date: datetime
    member_count: int = Field(..., ge=1)
    constraints: Optional[ConstraintsPayload] = None


class FeasibilityResponse(FeasibilityPayload):
    request_id: str
