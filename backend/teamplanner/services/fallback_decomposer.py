"""Deterministic, template-based decomposition used when no provider answers."""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from teamplanner.core.errors import ValidationError
from teamplanner.services.planning_models import Member, Subtask

logger = logging.getLogger(__name__)

# (title, description, estimated minutes); parts cycle through these in order.
TASK_ARCHETYPES: Tuple[Tuple[str, str, int], ...] = (
    ("Research and Planning", "Initial research and planning phase", 120),
    ("Analysis and Investigation", "Detailed analysis of requirements", 180),
    ("Development and Creation", "Main development or creation work", 240),
    ("Review and Testing", "Quality review and testing", 90),
    ("Documentation", "Create documentation and reports", 60),
    ("Finalization", "Final review and polish", 60),
)

ROLE_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Research": ("research", "analysis", "investigation"),
        "Writing": ("documentation", "creation", "development"),
        "Review": ("review", "testing", "finalization"),
        "Analysis": ("analysis", "investigation", "research"),
        "Design": ("development", "creation", "planning"),
    }
)

TASK_BUDGET_PER_ASSIGNMENT = 8
MIN_TASKS_PER_PART = 2


def tasks_per_part(parts: int) -> int:
    return max(MIN_TASKS_PER_PART, TASK_BUDGET_PER_ASSIGNMENT // parts)


def generate_fallback_subtasks(
    title: str,
    description: str,
    parts: int,
    members: Sequence[Member],
) -> List[Subtask]:
    """
    Build an unscheduled subtask list from the fixed archetype templates.

    Every part gets ``tasks_per_part(parts)`` subtasks. Assignees follow a
    round-robin over ``members`` unless a member's role keywords appear in the
    subtask text, in which case the first such member takes it.
    """
    if parts < 1:
        raise ValidationError("Parts must be at least 1", field="parts")
    if not members:
        raise ValidationError("At least one team member is required", field="members")

    logger.info("Generating fallback plan for %r (%d parts, %d members)", title, parts, len(members))
    count = tasks_per_part(parts)
    subtasks: List[Subtask] = []
    for part in range(1, parts + 1):
        for offset in range(count):
            archetype, blurb, minutes = TASK_ARCHETYPES[offset % len(TASK_ARCHETYPES)]
            task_title = f"Part {part}: {archetype}"
            details = f"{blurb} for {title}"
            index = len(subtasks)
            assignee = _role_match(task_title, details, members) or members[index % len(members)]
            subtasks.append(
                Subtask(
                    part=part,
                    title=task_title,
                    details=details,
                    assignee=assignee.name,
                    estimated_minutes=minutes,
                )
            )
    return subtasks


def _role_match(title: str, details: str, members: Sequence[Member]) -> Optional[Member]:
    haystack = f"{title} {details}".lower()
    for member in members:
        keywords = ROLE_KEYWORDS.get(member.role or "")
        if keywords and any(keyword in haystack for keyword in keywords):
            return member
    return None
