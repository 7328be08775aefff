"""
Simulated Knowledge Store

In-memory instances, facts and goal. Renders the current state as a
PDDL-style problem for the scripted planner.
"""

import logging
import re
import threading
from typing import Dict, List, Optional

from patrol_nav.services.models import ServiceUnavailableError

logger = logging.getLogger(__name__)

_GOAL_PATTERN = re.compile(r'\(:goal\s+(.*)\)\s*\)\s*$', re.DOTALL)
_INIT_PATTERN = re.compile(r'\(:init\s+(.*?)\n\)', re.DOTALL)
_FACT_PATTERN = re.compile(r'\([^()]+\)')


def normalize(expression: str) -> str:
    """Collapse whitespace so expressions compare by content"""
    text = " ".join(expression.split())
    return text.replace("( ", "(").replace(" )", ")")


def problem_goal(problem: str) -> str:
    """Goal expression of a rendered problem ("" if none)"""
    match = _GOAL_PATTERN.search(problem)
    return normalize(match.group(1)) if match else ""


def problem_facts(problem: str) -> List[str]:
    """Facts of the :init section of a rendered problem"""
    match = _INIT_PATTERN.search(problem)
    if not match:
        return []
    return [normalize(f) for f in _FACT_PATTERN.findall(match.group(1))]


class InMemoryKnowledgeStore:
    """
    Thread-safe fact store

    Set `available = False` to simulate the knowledge service being down.
    """

    def __init__(self, problem_name: str = "patrol_problem", domain_name: str = "patrol"):
        self.problem_name = problem_name
        self.domain_name = domain_name
        self.available = True

        self._lock = threading.Lock()
        self._instances: Dict[str, str] = {}
        self._facts: List[str] = []
        self._goal = ""

    def _check(self):
        if not self.available:
            raise ServiceUnavailableError("Knowledge store not available")

    def add_instance(self, name: str, type_name: str) -> bool:
        self._check()
        with self._lock:
            if self._instances.get(name) == type_name:
                return False
            self._instances[name] = type_name
            return True

    def add_predicate(self, fact: str) -> bool:
        self._check()
        fact = normalize(fact)
        with self._lock:
            if fact in self._facts:
                return False
            self._facts.append(fact)
        logger.debug(f"+ {fact}")
        return True

    def remove_predicate(self, fact: str) -> bool:
        self._check()
        fact = normalize(fact)
        with self._lock:
            if fact not in self._facts:
                return False
            self._facts.remove(fact)
        logger.debug(f"- {fact}")
        return True

    def set_goal(self, goal: str) -> bool:
        self._check()
        with self._lock:
            self._goal = normalize(goal)
        logger.debug(f"Goal: {self._goal}")
        return True

    def get_goal(self) -> str:
        self._check()
        with self._lock:
            return self._goal

    def has_fact(self, fact: str) -> bool:
        with self._lock:
            return normalize(fact) in self._facts

    @property
    def facts(self) -> List[str]:
        with self._lock:
            return list(self._facts)

    def instances(self, type_name: Optional[str] = None) -> List[str]:
        with self._lock:
            return [n for n, t in self._instances.items() if type_name is None or t == type_name]

    def render_problem(self) -> str:
        """Current state as a PDDL-style problem"""
        self._check()
        with self._lock:
            by_type: Dict[str, List[str]] = {}
            for name, type_name in self._instances.items():
                by_type.setdefault(type_name, []).append(name)

            lines = [f"(define (problem {self.problem_name})",
                     f"(:domain {self.domain_name})",
                     "(:objects"]
            for type_name, names in by_type.items():
                lines.append(f"  {' '.join(names)} - {type_name}")
            lines.append(")")
            lines.append("(:init")
            lines.extend(f"  {fact}" for fact in self._facts)
            lines.append(")")
            lines.append(f"(:goal {self._goal or '(and)'})")
            lines.append(")")
        return "\n".join(lines)
