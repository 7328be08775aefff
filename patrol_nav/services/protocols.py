"""
Service interfaces

Protocols for the collaborators the patrol core talks to. The core
never implements these; the robot stack (or the simulation package)
provides them.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol, runtime_checkable

from ..utils.geometry import Pose
from .models import ActionFeedback, GoalStatus, Plan, PlanResult


@runtime_checkable
class PlanningService(Protocol):
    """Domain/problem snapshots and plan computation"""

    def get_domain(self) -> str:
        ...

    def get_problem(self) -> str:
        ...

    def get_plan(self, domain: str, problem: str) -> Optional[Plan]:
        """Return a plan, or None if the goal is unreachable"""
        ...


@runtime_checkable
class KnowledgeStore(Protocol):
    """Declarative instances, facts and goal"""

    def add_instance(self, name: str, type_name: str) -> bool:
        ...

    def add_predicate(self, fact: str) -> bool:
        ...

    def remove_predicate(self, fact: str) -> bool:
        ...

    def set_goal(self, goal: str) -> bool:
        ...

    def get_goal(self) -> str:
        ...


@runtime_checkable
class ExecutionEngine(Protocol):
    """Runs plans by dispatching their actions to action executors"""

    def start_plan_execution(self, plan: Plan) -> bool:
        """Submit a plan; True if accepted"""
        ...

    def is_executing(self) -> bool:
        ...

    def get_feedback(self) -> List[ActionFeedback]:
        ...

    def get_result(self) -> Optional[PlanResult]:
        """Result of the last plan, None while running or before any plan"""
        ...

    def cancel_plan(self) -> None:
        ...


@runtime_checkable
class NavigationHandle(Protocol):
    """Handle to one in-flight navigation goal"""

    @property
    def status(self) -> GoalStatus:
        ...

    def cancel(self) -> None:
        ...


FeedbackCallback = Callable[[float], None]


@runtime_checkable
class MotionService(Protocol):
    """Asynchronous navigate-to-pose server"""

    def wait_for_server(self, timeout: float) -> bool:
        """Block up to timeout seconds; True once the server answers"""
        ...

    def submit_goal(self, target: Pose, feedback_callback: FeedbackCallback) -> NavigationHandle:
        """
        Send a goal without waiting for it to finish

        feedback_callback receives the remaining distance (meters) on the
        server's own thread.
        """
        ...


@runtime_checkable
class ActionHost(Protocol):
    """Sink for one action executor's reports (the execution engine side)"""

    def report_feedback(self, fraction: float, message: str) -> None:
        ...

    def report_result(self, success: bool, fraction: float, message: str) -> None:
        ...
