"""
Planar geometry utilities

Pose types and distance calculations in the map frame.
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Position:
    """Cartesian position in meters"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class Orientation:
    """Unit quaternion orientation"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


@dataclass(frozen=True)
class Pose:
    """Position + orientation"""
    position: Position = Position()
    orientation: Orientation = Orientation()

    @classmethod
    def from_xy(cls, x: float, y: float, yaw: float = 0.0) -> 'Pose':
        """Create a ground pose from planar coordinates and heading (radians)"""
        return cls(Position(x, y, 0.0), yaw_to_quaternion(yaw))

    @classmethod
    def from_dict(cls, d: dict) -> 'Pose':
        """
        Create pose from dictionary

        Accepts either a quaternion (qx, qy, qz, qw) or a planar yaw in radians.
        Missing fields default to the origin / identity rotation.
        """
        position = Position(
            x=float(d.get('x', 0.0)),
            y=float(d.get('y', 0.0)),
            z=float(d.get('z', 0.0))
        )

        if 'yaw' in d:
            orientation = yaw_to_quaternion(float(d['yaw']))
        else:
            orientation = Orientation(
                x=float(d.get('qx', 0.0)),
                y=float(d.get('qy', 0.0)),
                z=float(d.get('qz', 0.0)),
                w=float(d.get('qw', 1.0))
            )

        return cls(position, orientation)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'x': self.position.x,
            'y': self.position.y,
            'z': self.position.z,
            'qx': self.orientation.x,
            'qy': self.orientation.y,
            'qz': self.orientation.z,
            'qw': self.orientation.w
        }


def planar_distance(a: Pose, b: Pose) -> float:
    """
    Euclidean distance between two poses, ignoring z

    Args:
        a, b: Poses to compare

    Returns:
        Distance in meters
    """
    dx = a.position.x - b.position.x
    dy = a.position.y - b.position.y
    return math.sqrt(dx * dx + dy * dy)


def progress_fraction(remaining: float, initial: float) -> float:
    """
    Fraction of a move already covered, clamped to [0, 1]

    Args:
        remaining: Distance still to travel
        initial: Distance at the start of the move

    Returns:
        1 - remaining / initial, clamped. A zero-length move counts as done.
    """
    if initial <= 0.0:
        return 1.0
    return min(1.0, max(0.0, 1.0 - remaining / initial))


def yaw_to_quaternion(yaw: float) -> Orientation:
    """Rotation about +Z by yaw radians"""
    half = yaw / 2.0
    return Orientation(0.0, 0.0, math.sin(half), math.cos(half))


def quaternion_to_yaw(q: Orientation) -> float:
    """Heading (radians) of a quaternion, projected on the ground plane"""
    siny_cosp = 2.0 * (q.w * q.z + q.x * q.y)
    cosy_cosp = 1.0 - 2.0 * (q.y * q.y + q.z * q.z)
    return math.atan2(siny_cosp, cosy_cosp)


def step_towards(current: Pose, target: Pose, max_step: float) -> Tuple[Pose, float]:
    """
    Move current pose up to max_step meters towards target on the ground plane

    The target orientation is adopted once the target is reached.

    Returns:
        Tuple of (new pose, remaining planar distance)
    """
    distance = planar_distance(current, target)
    if distance <= max_step:
        arrived = Pose(
            Position(target.position.x, target.position.y, current.position.z),
            target.orientation
        )
        return arrived, 0.0

    ratio = max_step / distance
    dx = (target.position.x - current.position.x) * ratio
    dy = (target.position.y - current.position.y) * ratio
    heading = math.atan2(dy, dx)

    moved = Pose(
        Position(current.position.x + dx, current.position.y + dy, current.position.z),
        yaw_to_quaternion(heading)
    )
    return moved, distance - max_step

