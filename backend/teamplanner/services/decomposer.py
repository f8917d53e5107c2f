"""Decomposition strategy: provider plan when it works, deterministic templates otherwise."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from teamplanner.core.config import settings
from teamplanner.core.errors import ProviderError
from teamplanner.observability.metrics import log_metric
from teamplanner.services.decomposition_provider import DecompositionProvider, OpenAIDecompositionProvider
from teamplanner.services.fallback_decomposer import generate_fallback_subtasks
from teamplanner.services.plan_repair import repair_subtasks
from teamplanner.services.planning_models import Decomposition, PlanningInput, SchedulingPolicy, Subtask
from teamplanner.services.scheduler import schedule_all

logger = logging.getLogger(__name__)


class Decomposer:
    """
    Compose a (possibly absent) provider with the fallback templates.

    A provider failure of any kind is a signal to switch strategy, never an
    error for the caller, and it is not retried.
    """

    def __init__(
        self,
        provider: Optional[DecompositionProvider] = None,
        *,
        now: Optional[datetime] = None,
        policy: Optional[SchedulingPolicy] = None,
    ):
        self.provider = provider
        self.now = now
        self.policy = policy

    def try_generate(self, planning_input: PlanningInput) -> Optional[List[Subtask]]:
        if self.provider is None:
            logger.warning("No decomposition provider configured; using fallback planner")
            return None
        try:
            raw_subtasks = self.provider.generate(planning_input)
        except ProviderError as exc:
            logger.warning("Decomposition provider failed, using fallback: %s", exc)
            return None
        except Exception as exc:
            logger.warning("Decomposition provider raised %s, using fallback: %s", type(exc).__name__, exc)
            return None
        if not isinstance(raw_subtasks, list) or not raw_subtasks:
            logger.warning(
                "Decomposition provider returned %s instead of a non-empty list; using fallback",
                type(raw_subtasks).__name__,
            )
            return None
        return repair_subtasks(
            raw_subtasks,
            planning_input.parts,
            planning_input.members,
            planning_input.constraints,
            now=self.now,
        )

    def fallback_generate(self, planning_input: PlanningInput) -> List[Subtask]:
        drafts = generate_fallback_subtasks(
            planning_input.title,
            planning_input.description,
            planning_input.parts,
            planning_input.members,
        )
        result = schedule_all(
            drafts,
            planning_input.due_date,
            planning_input.constraints,
            now=self.now,
            policy=self.policy,
        )
        return result.subtasks

    def decompose(self, planning_input: PlanningInput) -> Decomposition:
        subtasks = self.try_generate(planning_input)
        if subtasks is not None:
            return Decomposition(subtasks=subtasks, source="provider")

        log_metric("decomposition.fallback.used", 1, {"parts": planning_input.parts})
        return Decomposition(subtasks=self.fallback_generate(planning_input), source="fallback")


def build_default_decomposer(
    *,
    now: Optional[datetime] = None,
    policy: Optional[SchedulingPolicy] = None,
) -> Decomposer:
    """Wire the OpenAI provider when an API key is configured."""
    provider = OpenAIDecompositionProvider() if settings.openai_api_key else None
    return Decomposer(provider, now=now, policy=policy)


def decompose(
    planning_input: PlanningInput,
    *,
    decomposer: Optional[Decomposer] = None,
) -> List[Subtask]:
    """Return repaired provider subtasks, or scheduled fallback subtasks."""
    active = decomposer or build_default_decomposer()
    return active.decompose(planning_input).subtasks
