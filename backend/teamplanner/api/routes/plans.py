"""Planning API routes."""
from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, HTTPException, Request, status

from teamplanner.api.schemas.plan import (
    BalanceRequest,
    BalanceResponse,
    ConstraintsPayload,
    FeasibilityRequest,
    FeasibilityResponse,
    PlanRequest,
    PlanResponse,
    ScheduleRequest,
    ScheduleResponse,
    WarningPayload,
)
from teamplanner.core.errors import ValidationError
from teamplanner.observability.tracing import trace
from teamplanner.services.feasibility import validate_feasibility
from teamplanner.services.planning_models import (
    FeasibilityWarning,
    PlanningInput,
    SchedulingConstraints,
    Subtask,
    resolve_constraints,
)
from teamplanner.services.planning_service import plan_assignment
from teamplanner.services.scheduler import schedule_all
from teamplanner.services.workload_balancer import balance_workload

router = APIRouter()


@router.post("/plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED, tags=["plans"])
def create_plan(payload: PlanRequest, http_request: Request) -> PlanResponse:
    """Decompose an assignment, place every subtask and report feasibility."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        planning_input = PlanningInput(
            title=payload.title,
            description=payload.description,
            due_date=payload.due_date,
            parts=payload.parts,
            members=payload.members,
            constraints=_constraints(payload.constraints),
        )
        result = plan_assignment(planning_input, balance=payload.balance)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc

    return PlanResponse(
        source=result.source,
        subtasks=result.subtasks,
        events=result.events,
        feasibility=result.feasibility.to_dict(),
        warnings=_warning_payloads(result.warnings),
        request_id=request_id or "",
    )


@router.post("/plans/schedule", response_model=ScheduleResponse, tags=["plans"])
def schedule_subtasks(payload: ScheduleRequest, http_request: Request) -> ScheduleResponse:
    """Place already-assigned subtasks on each member's calendar."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        constraints = _constraints(payload.constraints)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc

    with trace("plan.schedule", metadata={"route": "/plans/schedule", "subtasks": len(payload.subtasks)}):
        result = schedule_all(payload.subtasks, payload.due_date, constraints)
    return ScheduleResponse(
        subtasks=result.subtasks,
        warnings=_warning_payloads(result.warnings),
        request_id=request_id or "",
    )


@router.post("/plans/balance", response_model=BalanceResponse, tags=["plans"])
def balance_subtasks(payload: BalanceRequest, http_request: Request) -> BalanceResponse:
    """Redistribute assignees so total minutes per member even out."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("plan.balance", metadata={"route": "/plans/balance", "subtasks": len(payload.subtasks)}):
        balanced = balance_workload(payload.subtasks)
    return BalanceResponse(
        subtasks=balanced,
        workload_minutes=_workload_minutes(balanced),
        request_id=request_id or "",
    )


@router.post("/plans/feasibility", response_model=FeasibilityResponse, tags=["plans"])
def check_feasibility(payload: FeasibilityRequest, http_request: Request) -> FeasibilityResponse:
    """Compare required effort with the team's capacity before the due date."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        report = validate_feasibility(
            payload.subtasks,
            payload.due_date,
            _constraints(payload.constraints),
            payload.member_count,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    return FeasibilityResponse(**report.to_dict(), request_id=request_id or "")


def _constraints(payload: ConstraintsPayload | None) -> SchedulingConstraints:
    return resolve_constraints(payload.model_dump(exclude_none=True) if payload else None)


def _warning_payloads(warnings: List[FeasibilityWarning]) -> List[WarningPayload]:
    return [
        WarningPayload(
            subtask_title=warning.subtask_title,
            assignee=warning.assignee,
            start=warning.start,
            message=warning.message,
        )
        for warning in warnings
    ]


def _workload_minutes(subtasks: List[Subtask]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for task in subtasks:
        totals[task.assignee] = totals.get(task.assignee, 0) + task.estimated_minutes
    return totals
