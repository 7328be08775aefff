"""
Utility modules
"""

from .geometry import Pose, Position, Orientation, planar_distance, progress_fraction
from .logger import setup_logging, FeedbackRecorder

__all__ = [
    'Pose', 'Position', 'Orientation', 'planar_distance', 'progress_fraction',
    'setup_logging', 'FeedbackRecorder',
]
