"""
Latest-wins data feeds

Pose and selector updates arrive on transport threads and are read
from the tick loops. Each feed keeps only the newest sample.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

from ..utils.geometry import Pose

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Selector value before any message arrived
SELECTOR_UNSET = -1


@dataclass(frozen=True)
class Sample(Generic[T]):
    """Value with its receive time (time.monotonic())"""
    value: T
    stamp: float


class LatestValue(Generic[T]):
    """
    Thread-safe single-slot holder

    Writers overwrite, readers get a consistent (value, stamp) snapshot.
    Subscribers are called on the writer's thread after the slot is updated.
    """

    def __init__(self, initial: Optional[T] = None):
        self._lock = threading.Lock()
        self._sample: Optional[Sample[T]] = None
        if initial is not None:
            self._sample = Sample(initial, time.monotonic())
        self._subscribers: List[Callable[[T], None]] = []

    def publish(self, value: T):
        """Overwrite the held value and notify subscribers"""
        with self._lock:
            self._sample = Sample(value, time.monotonic())
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(value)
            except Exception as e:
                logger.error(f"Error in feed subscriber: {e}")

    def latest(self) -> Optional[T]:
        """Newest value, or None if nothing was published"""
        with self._lock:
            return self._sample.value if self._sample else None

    def snapshot(self) -> Optional[Sample[T]]:
        """Newest value with its receive time"""
        with self._lock:
            return self._sample

    def age(self) -> Optional[float]:
        """Seconds since the last publish, or None if never published"""
        with self._lock:
            if self._sample is None:
                return None
            return time.monotonic() - self._sample.stamp

    def subscribe(self, callback: Callable[[T], None]):
        """Register callback for every new value"""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[T], None]):
        """Remove a previously registered callback"""
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)


class PoseFeed(LatestValue[Pose]):
    """Robot pose stream (odometry / localization)"""
    pass


class SelectorFeed(LatestValue[int]):
    """Integer selector stream (e.g. detected marker id)"""

    def __init__(self):
        super().__init__(SELECTOR_UNSET)

    def publish(self, value: int):
        logger.info(f"Received selector value: {value}")
        super().publish(int(value))

    def current(self) -> int:
        """Latest selector value (SELECTOR_UNSET before the first message)"""
        value = self.latest()
        return SELECTOR_UNSET if value is None else value
