"""Simulated services for patrol_nav"""
from .sim_executor import SimulatedExecutionEngine
from .sim_knowledge import InMemoryKnowledgeStore
from .sim_motion import SimulatedGoal, SimulatedMotionService
from .sim_planner import ScriptedPlanner

__all__ = [
    "InMemoryKnowledgeStore",
    "ScriptedPlanner",
    "SimulatedExecutionEngine",
    "SimulatedGoal",
    "SimulatedMotionService",
]
