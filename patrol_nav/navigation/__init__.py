"""
Navigation data for Patrol Nav

Waypoint table and latest-wins pose/selector feeds.
"""

from .waypoints import Waypoint, WaypointTable, MissingWaypointError
from .feeds import LatestValue, PoseFeed, SelectorFeed, SELECTOR_UNSET

__all__ = [
    'Waypoint',
    'WaypointTable',
    'MissingWaypointError',
    'LatestValue',
    'PoseFeed',
    'SelectorFeed',
    'SELECTOR_UNSET',
]
