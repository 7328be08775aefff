"""
Scripted Planner

Returns canned plans from a YAML scenario instead of searching. A plan
entry matches when its goal equals the problem goal and, if it names a
start waypoint, the robot is there.

Scenario format:
    domain: |
      (define (domain patrol) ...)
    plans:
      - goal: "(and (robot_at r2d2 wp2))"
        robot: r2d2
        at: wp4
        actions:
          - (move r2d2 wp4 wp3)
          - (move r2d2 wp3 wp2)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from patrol_nav.services.models import Plan, ServiceUnavailableError, parse_action
from .sim_knowledge import InMemoryKnowledgeStore, normalize, problem_facts, problem_goal

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO = Path(__file__).parent.parent / "scenarios" / "patrol.yaml"


class ScenarioEntry:
    """One canned plan"""

    def __init__(self, goal: str, actions: List[str], robot: str = "", at: str = ""):
        self.goal = normalize(goal)
        self.actions = [normalize(a) for a in actions]
        self.robot = robot
        self.at = at

        for action in self.actions:
            parse_action(action)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ScenarioEntry':
        return cls(
            goal=d['goal'],
            actions=list(d.get('actions') or []),
            robot=d.get('robot', ''),
            at=d.get('at', ''),
        )

    def matches(self, goal: str, facts: List[str]) -> bool:
        if goal != self.goal:
            return False
        if not self.at:
            return True

        if self.robot:
            return f"(robot_at {self.robot} {self.at})" in facts
        return any(f.startswith("(robot_at ") and f.endswith(f" {self.at})") for f in facts)


class ScriptedPlanner:
    """
    Planning service backed by a scenario file

    Set `available = False` to simulate the planner being down.
    """

    def __init__(self, knowledge: InMemoryKnowledgeStore,
                 entries: List[ScenarioEntry],
                 domain: str = "",
                 action_duration: float = 1.0):
        self.knowledge = knowledge
        self.entries = entries
        self.domain = domain
        self.action_duration = action_duration
        self.available = True
        self.requests = 0

    @classmethod
    def from_yaml(cls, knowledge: InMemoryKnowledgeStore,
                  path: Optional[str] = None) -> 'ScriptedPlanner':
        """
        Load a scenario file (built-in patrol scenario if path is None)

        Raises:
            ValueError: If the scenario has no plans or a malformed action
        """
        path = Path(path).expanduser() if path else DEFAULT_SCENARIO
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        raw_entries = data.get('plans') or []
        if not raw_entries:
            raise ValueError(f"No plans defined in {path}")

        try:
            entries = [ScenarioEntry.from_dict(d) for d in raw_entries]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid plan entry in {path}: {e}")

        logger.info(f"Loaded {len(entries)} scripted plans from {path}")
        return cls(knowledge, entries, domain=data.get('domain', ''))

    def _check(self):
        if not self.available:
            raise ServiceUnavailableError("Planner not available")

    def get_domain(self) -> str:
        self._check()
        return self.domain

    def get_problem(self) -> str:
        self._check()
        return self.knowledge.render_problem()

    def get_plan(self, domain: str, problem: str) -> Optional[Plan]:
        """Canned plan for the problem goal, or None if no entry matches"""
        self._check()
        self.requests += 1

        goal = problem_goal(problem)
        facts = problem_facts(problem)

        for entry in self.entries:
            if entry.matches(goal, facts):
                logger.debug(f"Plan for {goal}: {entry.actions}")
                return Plan.from_actions(entry.actions, self.action_duration)

        logger.debug(f"No scripted plan for {goal}")
        return None
