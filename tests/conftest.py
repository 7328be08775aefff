"""
Pytest configuration and fixtures
"""

import pytest
import sys
from pathlib import Path
from typing import List, Optional

# Repository root on the path for the simulation package
sys.path.insert(0, str(Path(__file__).parent.parent))

from patrol_nav.services.models import GoalStatus, PlanResult, ServiceUnavailableError


class FakeHost:
    """ActionHost that records every report"""

    def __init__(self):
        self.feedback = []
        self.results = []

    def report_feedback(self, fraction, message):
        self.feedback.append((fraction, message))

    def report_result(self, success, fraction, message):
        self.results.append((success, fraction, message))


class FakeHandle:
    """NavigationHandle with a settable status"""

    def __init__(self, target, callback):
        self.target = target
        self.callback = callback
        self._status = GoalStatus.ACCEPTED
        self.canceled = False

    @property
    def status(self):
        return self._status

    def set_status(self, status):
        self._status = status

    def cancel(self):
        self.canceled = True
        self._status = GoalStatus.CANCELED


class FakeMotion:
    """MotionService answering readiness from a script"""

    def __init__(self, ready=True):
        self.ready = ready
        self.ready_script: List[bool] = []
        self.wait_calls = 0
        self.handles: List[FakeHandle] = []
        self.fail_submit = False

    def wait_for_server(self, timeout):
        self.wait_calls += 1
        if self.ready_script:
            return self.ready_script.pop(0)
        return self.ready

    def submit_goal(self, target, feedback_callback):
        if self.fail_submit:
            raise ServiceUnavailableError("goal channel down")
        handle = FakeHandle(target, feedback_callback)
        self.handles.append(handle)
        return handle

    @property
    def last_handle(self) -> Optional[FakeHandle]:
        return self.handles[-1] if self.handles else None


class FakePlanner:
    """PlanningService returning a fixed plan (or None) and recording requests"""

    def __init__(self, knowledge, plan=None):
        self.knowledge = knowledge
        self.plan = plan
        self.available = True
        self.domain_calls = 0
        self.problem_calls = 0
        self.plan_goals: List[str] = []

    def get_domain(self):
        if not self.available:
            raise ServiceUnavailableError("planner down")
        self.domain_calls += 1
        return "(define (domain patrol))"

    def get_problem(self):
        if not self.available:
            raise ServiceUnavailableError("planner down")
        self.problem_calls += 1
        return self.knowledge.render_problem()

    def get_plan(self, domain, problem):
        self.plan_goals.append(self.knowledge.get_goal())
        return self.plan


class FakeEngine:
    """ExecutionEngine driven by the test"""

    def __init__(self):
        self.executing = False
        self.feedback = []
        self.result: Optional[PlanResult] = None
        self.started = []
        self.submitted_while_executing = 0
        self.cancel_calls = 0
        self.accept = True
        self.available = True

    def start_plan_execution(self, plan):
        if self.executing:
            self.submitted_while_executing += 1
            return False
        if not self.accept:
            return False
        self.started.append(plan)
        self.executing = True
        self.result = None
        self.feedback = []
        return True

    def _check(self):
        if not self.available:
            raise ServiceUnavailableError("engine down")

    def is_executing(self):
        self._check()
        return self.executing

    def get_feedback(self):
        self._check()
        return list(self.feedback)

    def get_result(self):
        return self.result

    def cancel_plan(self):
        self.cancel_calls += 1

    def finish(self, success=True, feedback=None, message=""):
        self.executing = False
        self.feedback = feedback or []
        self.result = PlanResult(success, message)


@pytest.fixture
def waypoint_table():
    """Built-in patrol waypoint table"""
    from patrol_nav.navigation.waypoints import WaypointTable
    return WaypointTable.default()


@pytest.fixture
def action_config():
    """Action parameters with short waits"""
    from patrol_nav.config import ActionConfig
    return ActionConfig(
        server_wait_timeout_s=0.01,
        server_max_attempts=3,
        pose_timeout_s=30.0,
    )


@pytest.fixture
def pose_feed():
    from patrol_nav.navigation.feeds import PoseFeed
    return PoseFeed()


@pytest.fixture
def selector_feed():
    from patrol_nav.navigation.feeds import SelectorFeed
    return SelectorFeed()


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def fake_motion():
    return FakeMotion()


@pytest.fixture
def knowledge():
    """Empty in-memory knowledge store"""
    from simulation.adapters.sim_knowledge import InMemoryKnowledgeStore
    return InMemoryKnowledgeStore()


@pytest.fixture
def sample_plan():
    """Four-move patrol plan"""
    from patrol_nav.services.models import Plan
    return Plan.from_actions([
        "(move r2d2 wp_control wp1)",
        "(move r2d2 wp1 wp2)",
        "(move r2d2 wp2 wp3)",
        "(move r2d2 wp3 wp4)",
    ])


@pytest.fixture
def fast_config():
    """Configuration for step-driven simulation runs"""
    from patrol_nav.config import Config
    config = Config()
    config.simulation.robot_speed_ms = 5.0
    config.action.server_wait_timeout_s = 0.01
    config.action.server_max_attempts = 2
    return config


@pytest.fixture
def world(fast_config):
    """Simulated world, not started"""
    from simulation.world import build_world
    w = build_world(fast_config)
    yield w
    w.stop()


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def fake_planner(knowledge, sample_plan):
    """Planner that always returns the sample plan"""
    return FakePlanner(knowledge, plan=sample_plan)
