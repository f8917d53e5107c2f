"""Sanitize untrusted candidate subtasks into well-formed ``Subtask`` models."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from teamplanner.core.errors import ValidationError
from teamplanner.services.planning_models import (
    MAX_ESTIMATED_MINUTES,
    Member,
    ScheduledWindow,
    SchedulingConstraints,
    Subtask,
)
from teamplanner.services.timeline import parse_timestamp, tomorrow_at, utc_now

logger = logging.getLogger(__name__)

DEFAULT_DETAILS = "No details provided"
DEFAULT_MINUTES = 60
DEFAULT_SLOT_SPACING = timedelta(hours=2)


def repair_subtasks(
    raw_subtasks: Any,
    parts: int,
    members: Sequence[Member],
    constraints: SchedulingConstraints,
    now: Optional[datetime] = None,
) -> List[Subtask]:
    """
    Default every missing or invalid field of each candidate independently.

    Nothing about an individual record is fatal. Only a non-list payload, or an
    empty member list to fall back on, is rejected with ``ValidationError``.
    """
    if isinstance(raw_subtasks, (str, bytes, Mapping)) or not isinstance(raw_subtasks, Sequence):
        raise ValidationError("Candidate subtasks must be a list", field="subtasks")
    if not members:
        raise ValidationError("At least one team member is required", field="members")

    reference = now or utc_now()
    member_names = [member.name for member in members]
    total = len(raw_subtasks)
    repaired: List[Subtask] = []
    for index, raw in enumerate(raw_subtasks):
        record = _as_record(raw)
        minutes = _coerce_positive_int(
            _first_present(record, "estimated_minutes", "estimatedMinutes"),
            maximum=MAX_ESTIMATED_MINUTES,
        )
        if minutes is None:
            minutes = DEFAULT_MINUTES
            logger.debug("Candidate %d: estimated minutes defaulted to %d", index, DEFAULT_MINUTES)

        assignee = record.get("assignee")
        if assignee not in member_names:
            fallback_name = member_names[index % len(member_names)]
            logger.debug("Candidate %d: assignee %r replaced by %r", index, assignee, fallback_name)
            assignee = fallback_name

        part = _coerce_positive_int(record.get("part"))
        if part is None:
            part = _default_part(index, total, parts)

        repaired.append(
            Subtask(
                part=part,
                title=_non_blank(record.get("title")) or f"Task {index + 1}",
                details=_non_blank(record.get("details")) or DEFAULT_DETAILS,
                assignee=assignee,
                estimated_minutes=minutes,
                scheduled=_repair_window(record.get("scheduled"), index, minutes, constraints, reference),
            )
        )
    return repaired


def _repair_window(
    raw: Any,
    index: int,
    minutes: int,
    constraints: SchedulingConstraints,
    now: datetime,
) -> ScheduledWindow:
    if isinstance(raw, ScheduledWindow):
        raw = raw.model_dump()
    window = raw if isinstance(raw, Mapping) else {}
    default_start = tomorrow_at(now, constraints.start_hour) + index * DEFAULT_SLOT_SPACING
    start = parse_timestamp(window.get("start")) or default_start
    end = parse_timestamp(window.get("end")) or default_start + timedelta(minutes=minutes)
    return ScheduledWindow(start=start, end=end)


def _default_part(index: int, total: int, parts: int) -> int:
    if parts < 1 or total == 0:
        return 1
    return int(index // (total / parts)) + 1


def _as_record(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, Subtask):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return dict(raw)
    return {}


def _first_present(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def _non_blank(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _coerce_positive_int(value: Any, maximum: Optional[int] = None) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if num <= 0 or (maximum is not None and num > maximum):
        return None
    return num
