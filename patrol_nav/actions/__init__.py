"""
Action executors

Per-action state machines invoked by the plan execution engine.
"""

from .move import MoveAction, MoveGoal, MoveState, VALID_TRANSITIONS
from .registry import (
    ACTION_EXECUTORS,
    ActionContext,
    ActionExecutor,
    create_executor,
    register_executor,
)

__all__ = [
    'MoveAction',
    'MoveGoal',
    'MoveState',
    'VALID_TRANSITIONS',
    'ACTION_EXECUTORS',
    'ActionContext',
    'ActionExecutor',
    'create_executor',
    'register_executor',
]
