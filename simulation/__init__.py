"""
Patrol Nav - Simulation Module

In-process stand-ins for the knowledge store, planner, execution engine
and navigation server, plus build_world() to wire them to the mission
controller.
"""

from .world import SimulatedWorld, build_world

__version__ = "1.0.0"

__all__ = ["SimulatedWorld", "build_world"]
