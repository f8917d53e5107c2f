"""LLM-backed decomposition provider."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Protocol

import openai

from teamplanner.core.config import settings
from teamplanner.core.errors import ProviderError
from teamplanner.observability.tracing import trace
from teamplanner.services.planning_models import PlanningInput

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a meticulous project planner for student team assignments. Given a title, description, "
    "due date, number of parts, team members and constraints (working hours, days of week), you:\n"
    "1) Break the work into coherent subtasks grouped by parts.\n"
    "2) Estimate the duration of each subtask in minutes.\n"
    "3) Allocate subtasks evenly across members, considering roles "
    "(Research -> analysis tasks, Writing -> documentation, Review -> testing).\n"
    "4) Schedule subtasks inside the allowed working windows, avoiding overlaps for the same person, "
    "leaving 15-30 minutes between tasks and finishing at least one day before the due date.\n\n"
    "Days of week are numbered Sunday=0 through Saturday=6. Use 3-8 subtasks per part. "
    "Use member names exactly as provided.\n\n"
    "Respond with a single JSON object and nothing else, shaped like:\n"
    '{"plan":{"subtasks":[{"part":1,"title":"Task title","details":"What needs to be done",'
    '"assignee":"Member name","estimated_minutes":120,'
    '"scheduled":{"start":"2025-09-01T09:00:00Z","end":"2025-09-01T11:00:00Z"}}]}}'
)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class DecompositionProvider(Protocol):
    """Anything that turns a planning request into raw candidate subtask records."""

    def generate(self, planning_input: PlanningInput) -> List[Dict[str, Any]]:
        ...


class OpenAIDecompositionProvider:
    """Ask an OpenAI-compatible chat endpoint for a candidate plan."""

    def __init__(
        self,
        client: Any = None,
        *,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.model = model or settings.decomposition_model
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._client = client

    @property
    def client(self):
        if self._client is None:
            # The fallback planner is the recovery path, so the SDK must not retry.
            self._client = openai.OpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def generate(self, planning_input: PlanningInput) -> List[Dict[str, Any]]:
        user_prompt = planning_input.model_dump_json()
        metadata = {
            "model": self.model,
            "parts": planning_input.parts,
            "members": len(planning_input.members),
            "llm_input_text": planning_input.title[:500],
        }
        with trace("decomposition.provider", metadata=metadata) as provider_trace:
            try:
                completion = self.client.chat.completions.create(
                    model=self.model,
                    response_format={"type": "json_object"},
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": user_prompt},
                    ],
                    timeout=self.timeout,
                )
            except openai.OpenAIError as exc:
                raise ProviderError(f"Decomposition provider request failed: {exc}") from exc

            content = _completion_text(completion)
            subtasks = parse_plan_payload(content)
            if provider_trace:
                provider_trace.update(metadata={"subtasks_returned": len(subtasks)})
        logger.info("Provider returned %d candidate subtasks", len(subtasks))
        return subtasks


def _completion_text(completion: Any) -> str:
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise ProviderError("Invalid response format from decomposition provider") from exc
    if not content or not content.strip():
        raise ProviderError("Empty response from decomposition provider")
    return content


def extract_first_json_object(text: str) -> Optional[str]:
    """Return the first brace-balanced ``{...}`` block, ignoring code fences and braces in strings."""
    cleaned = _FENCE_RE.sub("", text).strip()
    start = cleaned.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for position in range(start, len(cleaned)):
        char = cleaned[position]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return cleaned[start : position + 1]
    return None


def parse_plan_payload(content: str) -> List[Dict[str, Any]]:
    """Pull ``plan.subtasks`` out of raw provider text or raise ``ProviderError``."""
    json_text = extract_first_json_object(content)
    if json_text is None:
        raise ProviderError("No JSON object found in provider response")
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise ProviderError("Provider response is not valid JSON") from exc

    plan = payload.get("plan") if isinstance(payload, dict) else None
    subtasks = plan.get("subtasks") if isinstance(plan, dict) else None
    if not isinstance(subtasks, list):
        raise ProviderError("Provider response is missing plan.subtasks")
    if not subtasks:
        raise ProviderError("Provider returned an empty plan")
    return subtasks
