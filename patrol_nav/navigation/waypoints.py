"""
Waypoint Table

Named navigation poses, loaded once at startup.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import yaml

from ..utils.geometry import Pose

logger = logging.getLogger(__name__)


class MissingWaypointError(KeyError):
    """Raised when a waypoint id is not in the table"""

    def __init__(self, waypoint_id: str):
        super().__init__(waypoint_id)
        self.waypoint_id = waypoint_id

    def __str__(self) -> str:
        return f"Unknown waypoint '{self.waypoint_id}'"


@dataclass(frozen=True)
class Waypoint:
    """Single named pose"""
    id: str
    pose: Pose

    @classmethod
    def from_dict(cls, d: dict) -> 'Waypoint':
        """Create waypoint from dictionary ({'id': ..., 'x': ..., 'y': ..., ...})"""
        return cls(id=str(d['id']), pose=Pose.from_dict(d))

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        d = {'id': self.id}
        d.update(self.pose.to_dict())
        return d


# Patrol area layout (map frame, identity orientation)
DEFAULT_WAYPOINTS: List[dict] = [
    {'id': 'wp_control', 'x': 2.0, 'y': 2.0},
    {'id': 'wp1', 'x': 6.0, 'y': 2.0},
    {'id': 'wp2', 'x': 7.0, 'y': -5.0},
    {'id': 'wp3', 'x': -3.0, 'y': -8.0},
    {'id': 'wp4', 'x': -7.0, 'y': 1.5},
]


class WaypointTable:
    """
    Immutable lookup of waypoints by id

    Lookups of an absent id raise MissingWaypointError instead of
    falling back to an origin pose.
    """

    def __init__(self, waypoints: List[Waypoint], frame_id: str = "map"):
        self.frame_id = frame_id
        self._waypoints: Dict[str, Waypoint] = {}

        for wp in waypoints:
            if wp.id in self._waypoints:
                raise ValueError(f"Duplicate waypoint id '{wp.id}'")
            self._waypoints[wp.id] = wp

    @classmethod
    def default(cls) -> 'WaypointTable':
        """Built-in patrol area table"""
        return cls([Waypoint.from_dict(d) for d in DEFAULT_WAYPOINTS])

    @classmethod
    def from_yaml(cls, path: str) -> 'WaypointTable':
        """
        Load table from a YAML file

        Expected format:
            frame_id: map
            waypoints:
              - {id: wp1, x: 6.0, y: 2.0}
              - {id: wp2, x: 7.0, y: -5.0, yaw: 1.57}

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file has no waypoints or a malformed entry
        """
        with open(Path(path).expanduser(), 'r') as f:
            data = yaml.safe_load(f) or {}

        entries = data.get('waypoints', [])
        if not entries:
            raise ValueError(f"No waypoints defined in {path}")

        try:
            waypoints = [Waypoint.from_dict(entry) for entry in entries]
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid waypoint entry in {path}: {e}")

        table = cls(waypoints, frame_id=data.get('frame_id', 'map'))
        logger.info(f"Loaded {len(table)} waypoints from {path}")
        return table

    @classmethod
    def load(cls, path: Optional[str] = None, frame_id: str = "map") -> 'WaypointTable':
        """Load from file if given, else the built-in table"""
        if path:
            return cls.from_yaml(path)

        table = cls.default()
        table.frame_id = frame_id
        return table

    def get(self, waypoint_id: str) -> Waypoint:
        """
        Look up a waypoint

        Raises:
            MissingWaypointError: If the id is not in the table
        """
        try:
            return self._waypoints[waypoint_id]
        except KeyError:
            raise MissingWaypointError(waypoint_id) from None

    def pose_of(self, waypoint_id: str) -> Pose:
        """Pose of a waypoint (raises MissingWaypointError)"""
        return self.get(waypoint_id).pose

    def require(self, waypoint_ids) -> None:
        """
        Check that every id is present

        Raises:
            MissingWaypointError: For the first absent id
        """
        for waypoint_id in waypoint_ids:
            self.get(waypoint_id)

    @property
    def ids(self) -> List[str]:
        return list(self._waypoints)

    def __contains__(self, waypoint_id: object) -> bool:
        return waypoint_id in self._waypoints

    def __len__(self) -> int:
        return len(self._waypoints)

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(self._waypoints.values())

    def to_dict(self) -> dict:
        return {
            'frame_id': self.frame_id,
            'waypoints': [wp.to_dict() for wp in self]
        }
