"""
Patrol Nav

Symbolic-plan driven patrol mission: a mission controller that plans,
executes and replans over a knowledge store, and a move action executor
that turns plan actions into navigation goals.
"""

__version__ = "0.1.0"
