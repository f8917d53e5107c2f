from __future__ import annotations

from typing import Dict, List

from teamplanner.services.planning_models import Subtask
from teamplanner.services.workload_balancer import balance_workload


def _task(title: str, assignee: str, minutes: int) -> Subtask:
    return Subtask(part=1, title=title, details=title, assignee=assignee, estimated_minutes=minutes)


def _totals(subtasks: List[Subtask]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for task in subtasks:
        totals[task.assignee] = totals.get(task.assignee, 0) + task.estimated_minutes
    return totals


def test_everything_on_one_member_gets_spread() -> None:
    subtasks = [
        _task("a", "Alice", 120),
        _task("b", "Alice", 120),
        _task("c", "Alice", 120),
        _task("d", "Bob", 60),
    ]
    balanced = balance_workload(subtasks)

    # Bob carried less going in, so he is handed the first task.
    assert [task.assignee for task in balanced] == ["Bob", "Alice", "Alice", "Bob"]
    assert _totals(balanced) == {"Bob": 180, "Alice": 240}


def test_spread_is_bounded_by_largest_task() -> None:
    minutes = [240, 180, 120, 90, 60, 60, 45, 30, 200, 15, 75]
    names = ["A", "A", "A", "A", "B", "C", "C", "A", "A", "A", "B"]
    subtasks = [_task(f"t{index}", name, value) for index, (name, value) in enumerate(zip(names, minutes))]

    totals = _totals(balance_workload(subtasks))

    assert set(totals) == {"A", "B", "C"}
    assert max(totals.values()) - min(totals.values()) <= max(minutes)


def test_order_and_fields_are_preserved() -> None:
    subtasks = [_task("first", "Alice", 30), _task("second", "Bob", 90)]
    balanced = balance_workload(subtasks)

    assert [task.title for task in balanced] == ["first", "second"]
    assert [task.estimated_minutes for task in balanced] == [30, 90]
    assert subtasks[0].assignee == "Alice"


def test_ties_go_to_first_seen_name() -> None:
    subtasks = [_task("a", "Alice", 60), _task("b", "Bob", 60), _task("c", "Carol", 60)]

    assert [task.assignee for task in balance_workload(subtasks)] == ["Alice", "Bob", "Carol"]


def test_members_absent_from_input_are_never_assigned() -> None:
    subtasks = [_task("a", "Alice", 60), _task("b", "Alice", 60)]

    assert {task.assignee for task in balance_workload(subtasks)} == {"Alice"}


def test_empty_input() -> None:
    assert balance_workload([]) == []
