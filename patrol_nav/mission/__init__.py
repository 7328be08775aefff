"""
Patrol mission

Knowledge seeding and the plan/execute/replan controller.
"""

from .controller import MissionController, MissionState
from .knowledge import (
    connected,
    destination_goal,
    patrol_goal,
    patrolled,
    robot_at,
    seed_knowledge,
)

__all__ = [
    'MissionController',
    'MissionState',
    'connected',
    'destination_goal',
    'patrol_goal',
    'patrolled',
    'robot_at',
    'seed_knowledge',
]
