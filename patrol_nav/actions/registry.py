"""
Action executor dispatch table

Maps plan action names to executor factories. An executor only needs
the capability interface below; no common base class is required.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..config import ActionConfig
from ..navigation.feeds import PoseFeed
from ..navigation.waypoints import WaypointTable
from ..services.protocols import ActionHost, MotionService
from ..utils.geometry import Pose
from .move import MoveAction


class ActionExecutor(Protocol):
    """Capability interface of an action executor"""

    name: str

    def tick(self, arguments: List[str]) -> None:
        ...

    def on_pose_update(self, pose: Pose) -> None:
        ...

    def cancel(self) -> None:
        ...

    def close(self) -> None:
        ...

    def get_status(self) -> Dict[str, Any]:
        ...


@dataclass
class ActionContext:
    """Shared resources handed to every executor factory"""
    motion: MotionService
    waypoints: WaypointTable
    pose_feed: Optional[PoseFeed] = None
    config: ActionConfig = field(default_factory=ActionConfig)


ExecutorFactory = Callable[[ActionHost, ActionContext], ActionExecutor]


def _make_move(host: ActionHost, context: ActionContext) -> MoveAction:
    return MoveAction(
        host=host,
        motion=context.motion,
        waypoints=context.waypoints,
        pose_feed=context.pose_feed,
        config=context.config,
    )


# Action name -> factory
ACTION_EXECUTORS: Dict[str, ExecutorFactory] = {
    "move": _make_move,
}


def create_executor(action_name: str, host: ActionHost, context: ActionContext) -> ActionExecutor:
    """
    Build the executor registered for an action name

    Raises:
        KeyError: If no executor handles the action
    """
    try:
        factory = ACTION_EXECUTORS[action_name]
    except KeyError:
        raise KeyError(f"No executor registered for action '{action_name}'") from None
    return factory(host, context)


def register_executor(action_name: str, factory: ExecutorFactory):
    """Add or replace the executor for an action name"""
    ACTION_EXECUTORS[action_name] = factory
