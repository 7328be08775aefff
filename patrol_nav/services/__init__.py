"""
External service interfaces and value types
"""

from .models import (
    ActionFeedback,
    ActionStatus,
    GoalStatus,
    Plan,
    PlanItem,
    PlanResult,
    ServiceUnavailableError,
    failed_actions,
    format_progress,
    parse_action,
)
from .protocols import (
    ActionHost,
    ExecutionEngine,
    KnowledgeStore,
    MotionService,
    NavigationHandle,
    PlanningService,
)

__all__ = [
    # Values
    'ActionFeedback',
    'ActionStatus',
    'GoalStatus',
    'Plan',
    'PlanItem',
    'PlanResult',
    'ServiceUnavailableError',
    'failed_actions',
    'format_progress',
    'parse_action',
    # Protocols
    'ActionHost',
    'ExecutionEngine',
    'KnowledgeStore',
    'MotionService',
    'NavigationHandle',
    'PlanningService',
]
