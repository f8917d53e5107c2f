from __future__ import annotations

from collections import Counter

import pytest

from teamplanner.core.errors import ValidationError
from teamplanner.services.fallback_decomposer import generate_fallback_subtasks, tasks_per_part
from teamplanner.services.planning_models import Member


@pytest.mark.parametrize("parts, expected", [(1, 8), (2, 4), (3, 2), (4, 2), (10, 2)])
def test_tasks_per_part(parts: int, expected: int) -> None:
    assert tasks_per_part(parts) == expected


def test_four_parts_give_part_one_the_first_two_archetypes() -> None:
    subtasks = generate_fallback_subtasks("X", "", 4, [Member(name="Alice")])
    part_one = [task for task in subtasks if task.part == 1]

    assert [task.title for task in part_one] == [
        "Part 1: Research and Planning",
        "Part 1: Analysis and Investigation",
    ]
    assert [task.estimated_minutes for task in part_one] == [120, 180]
    assert part_one[0].details == "Initial research and planning phase for X"
    assert all(task.scheduled is None for task in subtasks)
    assert len(subtasks) == 8


def test_archetypes_cycle_after_six() -> None:
    subtasks = generate_fallback_subtasks("Essay", "", 1, [Member(name="Alice")])

    assert len(subtasks) == 8
    assert subtasks[6].title == "Part 1: Research and Planning"
    assert subtasks[7].title == "Part 1: Analysis and Investigation"
    assert [task.estimated_minutes for task in subtasks[:6]] == [120, 180, 240, 90, 60, 60]


def test_round_robin_without_roles() -> None:
    members = [Member(name="Bob"), Member(name="Carol"), Member(name="Dan")]
    subtasks = generate_fallback_subtasks("Report", "", 2, members)

    assert [task.assignee for task in subtasks] == ["Bob", "Carol", "Dan", "Bob", "Carol", "Dan", "Bob", "Carol"]


def test_role_keyword_overrides_round_robin() -> None:
    members = [Member(name="Bob"), Member(name="Rita", role="Review")]
    subtasks = generate_fallback_subtasks("Report", "", 1, members)
    by_title = {task.title: task.assignee for task in subtasks}

    assert by_title["Part 1: Review and Testing"] == "Rita"
    # "Final review and polish" mentions review as well.
    assert by_title["Part 1: Finalization"] == "Rita"
    assert by_title["Part 1: Research and Planning"] == "Bob"


def test_first_matching_member_wins() -> None:
    members = [
        Member(name="Ann", role="Analysis"),
        Member(name="Rex", role="Research"),
    ]
    subtasks = generate_fallback_subtasks("Study", "", 1, members)

    research = next(task for task in subtasks if task.title.endswith("Research and Planning"))
    assert research.assignee == "Ann"


def test_unknown_roles_fall_back_to_round_robin() -> None:
    members = [Member(name="Bob", role="Chef"), Member(name="Carol", role=None)]
    subtasks = generate_fallback_subtasks("Report", "", 1, members)

    assert Counter(task.assignee for task in subtasks) == {"Bob": 4, "Carol": 4}


def test_requires_members_and_parts() -> None:
    with pytest.raises(ValidationError):
        generate_fallback_subtasks("Report", "", 1, [])
    with pytest.raises(ValidationError):
        generate_fallback_subtasks("Report", "", 0, [Member(name="Bob")])
