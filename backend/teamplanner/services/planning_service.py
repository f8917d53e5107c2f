"""End-to-end planning pipeline: decompose, balance, schedule, validate."""
from __future__ import annotations

import logging
from datetime import datetime
from time import perf_counter
from typing import Any, Dict, Optional

from teamplanner.core.errors import ValidationError
from teamplanner.observability.metrics import log_metric
from teamplanner.observability.tracing import trace
from teamplanner.services.calendar_events import build_calendar_events
from teamplanner.services.decomposer import Decomposer, build_default_decomposer
from teamplanner.services.feasibility import validate_feasibility
from teamplanner.services.planning_models import PlanningInput, PlanResult, SchedulingPolicy
from teamplanner.services.scheduler import schedule_all
from teamplanner.services.timeline import utc_now
from teamplanner.services.workload_balancer import balance_workload

logger = logging.getLogger(__name__)


def validate_planning_input(planning_input: PlanningInput, now: datetime) -> None:
    """Raise ``ValidationError`` for requests the engine cannot plan."""
    if not planning_input.title.strip():
        raise ValidationError("Title is required", field="title")
    if planning_input.parts < 1:
        raise ValidationError("Parts must be at least 1", field="parts")
    if not planning_input.members:
        raise ValidationError("At least one team member is required", field="members")

    seen = set()
    for member in planning_input.members:
        if not member.name.strip():
            raise ValidationError("Member names must not be blank", field="members")
        if member.name in seen:
            raise ValidationError(f"Duplicate member name: {member.name}", field="members")
        seen.add(member.name)

    if planning_input.due_date <= now:
        raise ValidationError("Due date must be a valid future date", field="due_date")


def plan_assignment(
    planning_input: PlanningInput,
    *,
    balance: bool = False,
    decomposer: Optional[Decomposer] = None,
    now: Optional[datetime] = None,
    policy: Optional[SchedulingPolicy] = None,
) -> PlanResult:
    """
    Run the whole planning pipeline for one assignment.

    Nothing is persisted. The returned subtasks are ordered by part and then
    placement; ``events`` are ordered by start time.
    """
    reference = now or utc_now()
    validate_planning_input(planning_input, reference)
    active_policy = policy or SchedulingPolicy.from_settings()
    active_decomposer = decomposer or build_default_decomposer(now=reference, policy=active_policy)

    metadata: Dict[str, Any] = {
        "parts": planning_input.parts,
        "members": len(planning_input.members),
        "balance": balance,
        "llm_input_text": planning_input.title[:500],
    }
    start_time = perf_counter()
    success = False
    result: Optional[PlanResult] = None
    try:
        with trace("plan.assignment", metadata=metadata) as plan_trace:
            decomposition = active_decomposer.decompose(planning_input)
            subtasks = decomposition.subtasks
            if balance:
                subtasks = balance_workload(subtasks)

            schedule = schedule_all(
                subtasks,
                planning_input.due_date,
                planning_input.constraints,
                now=reference,
                policy=active_policy,
            )
            feasibility = validate_feasibility(
                schedule.subtasks,
                planning_input.due_date,
                planning_input.constraints,
                len(planning_input.members),
                now=reference,
                policy=active_policy,
            )
            result = PlanResult(
                subtasks=schedule.subtasks,
                events=build_calendar_events(schedule.subtasks),
                feasibility=feasibility,
                warnings=schedule.warnings,
                source=decomposition.source,
            )
            if plan_trace:
                plan_trace.update(
                    metadata={
                        "source": result.source,
                        "subtasks": len(result.subtasks),
                        "feasibility": feasibility.to_dict(),
                        "deadline_warnings": len(result.warnings),
                    }
                )
            success = True
    finally:
        latency_ms = (perf_counter() - start_time) * 1000
        metric_metadata = {"parts": planning_input.parts, "members": len(planning_input.members)}
        log_metric("plan.success", 1 if success else 0, metadata=metric_metadata)
        log_metric("plan.latency_ms", latency_ms, metadata=metric_metadata)
        if result is not None:
            log_metric("plan.subtasks", len(result.subtasks), metadata=metric_metadata)
            log_metric("plan.feasible", 1 if result.feasibility.feasible else 0, metadata=metric_metadata)

    if not result.feasibility.feasible:
        logger.warning(
            "Plan for %r needs %.1fh but only %.1fh are available",
            planning_input.title,
            result.feasibility.required_hours,
            result.feasibility.available_hours,
        )
    return result
