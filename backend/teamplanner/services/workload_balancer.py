"""Greedy rebalancing of assignee labels by total estimated minutes."""
from __future__ import annotations

from typing import Dict, List, Sequence

from teamplanner.services.planning_models import Subtask


def balance_workload(subtasks: Sequence[Subtask]) -> List[Subtask]:
    """
    Hand each subtask, in input order, to whoever currently carries the least.

    Only names already present in the input take part. The incoming load
    decides the initial ranking (lightest first, first-seen wins ties); the
    running totals then count only what this pass hands out, so the final
    spread between members never exceeds the largest single subtask.
    Role affinity is ignored.
    """
    incoming: Dict[str, int] = {}
    for task in subtasks:
        incoming[task.assignee] = incoming.get(task.assignee, 0) + task.estimated_minutes

    ranking = sorted(incoming, key=incoming.__getitem__)
    running: Dict[str, int] = {name: 0 for name in ranking}
    balanced: List[Subtask] = []
    for task in subtasks:
        lightest = ranking[0]
        running[lightest] += task.estimated_minutes
        balanced.append(task.model_copy(update={"assignee": lightest}))
        ranking.sort(key=running.__getitem__)
    return balanced
