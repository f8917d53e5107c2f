"""Planning engine entry points."""

from teamplanner.services.decomposer import decompose
from teamplanner.services.feasibility import validate_feasibility
from teamplanner.services.planning_service import plan_assignment
from teamplanner.services.scheduler import schedule_all
from teamplanner.services.workload_balancer import balance_workload

__all__ = [
    "balance_workload",
    "decompose",
    "plan_assignment",
    "schedule_all",
    "validate_feasibility",
]
