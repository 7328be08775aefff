"""
Service value types

Plans, execution feedback and navigation goal handles exchanged with
the external planning, execution and motion services.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional


class ServiceUnavailableError(Exception):
    """Raised when a collaborating service does not answer"""
    pass


class ActionStatus(Enum):
    """Execution status of one plan action"""
    NOT_EXECUTED = auto()
    EXECUTING = auto()
    FAILED = auto()
    SUCCEEDED = auto()
    CANCELLED = auto()


class GoalStatus(Enum):
    """Lifecycle of a navigation goal"""
    PENDING = auto()    # Sent, not yet accepted
    ACCEPTED = auto()   # Running on the motion server
    REJECTED = auto()   # Refused by the motion server
    SUCCEEDED = auto()
    ABORTED = auto()    # Server gave up
    CANCELED = auto()

    @property
    def is_failure(self) -> bool:
        return self in (GoalStatus.REJECTED, GoalStatus.ABORTED)


_ACTION_PATTERN = re.compile(r'^\(?\s*([^\s()]+)((?:\s+[^\s()]+)*)\s*\)?$')


def parse_action(text: str) -> List[str]:
    """
    Split an action expression into tokens

    "(move r2d2 wp1 wp2)" -> ["move", "r2d2", "wp1", "wp2"]

    Raises:
        ValueError: If text is not a single flat expression
    """
    match = _ACTION_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"Malformed action expression: {text!r}")
    return [match.group(1)] + match.group(2).split()


@dataclass(frozen=True)
class PlanItem:
    """One symbolic action of a plan"""
    action: str             # e.g. "(move r2d2 wp1 wp2)"
    time: float = 0.0       # start time within the plan
    duration: float = 0.0

    @property
    def name(self) -> str:
        return parse_action(self.action)[0]

    @property
    def arguments(self) -> List[str]:
        """Positional arguments, without the action name"""
        return parse_action(self.action)[1:]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlanItem':
        item = cls(
            action=data['action'],
            time=float(data.get('time', 0.0)),
            duration=float(data.get('duration', 0.0)),
        )
        parse_action(item.action)
        return item

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "time": self.time, "duration": self.duration}


@dataclass(frozen=True)
class Plan:
    """Ordered set of symbolic actions"""
    items: List[PlanItem] = field(default_factory=list)

    @classmethod
    def from_actions(cls, actions: List[str], duration: float = 1.0) -> 'Plan':
        """Sequential plan from action expressions"""
        return cls([
            PlanItem(action=a, time=i * duration, duration=duration)
            for i, a in enumerate(actions)
        ])

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {"items": [item.to_dict() for item in self.items]}


@dataclass
class ActionFeedback:
    """Progress of one plan action as reported by the execution engine"""
    action: str
    completion: float = 0.0
    status: ActionStatus = ActionStatus.NOT_EXECUTED
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "completion": self.completion,
            "status": self.status.name,
            "message": self.message,
        }


@dataclass(frozen=True)
class PlanResult:
    """Terminal outcome of a plan execution"""
    success: bool
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message}


def failed_actions(feedback: List[ActionFeedback]) -> List[ActionFeedback]:
    """Feedback entries with FAILED status"""
    return [fb for fb in feedback if fb.status == ActionStatus.FAILED]


def format_progress(feedback: List[ActionFeedback]) -> Optional[str]:
    """One-line progress summary: "[move r2d2 wp1 wp2 45.0%][...]" """
    if not feedback:
        return None
    return "".join(
        f"[{fb.action} {fb.completion * 100.0:.1f}%]" for fb in feedback
    )
