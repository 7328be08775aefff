"""
Simulated Motion Service

Navigate-to-pose server for a point robot: moves the pose toward the
active goal at a fixed speed, publishes it on the pose feed and streams
the remaining distance to the goal's feedback callback.
"""

import logging
import threading
import time
from typing import Optional

from patrol_nav.navigation.feeds import PoseFeed
from patrol_nav.services.models import GoalStatus, ServiceUnavailableError
from patrol_nav.services.protocols import FeedbackCallback
from patrol_nav.utils.geometry import Pose, planar_distance, step_towards

logger = logging.getLogger(__name__)


class SimulatedGoal:
    """Handle to one navigation goal"""

    def __init__(self, target: Pose, feedback_callback: Optional[FeedbackCallback],
                 status: GoalStatus = GoalStatus.ACCEPTED):
        self.target = target
        self.feedback_callback = feedback_callback
        self._status = status

    @property
    def status(self) -> GoalStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status in (GoalStatus.PENDING, GoalStatus.ACCEPTED)

    def cancel(self):
        if self.is_active:
            self._status = GoalStatus.CANCELED
            logger.info("Navigation goal canceled")


class SimulatedMotionService:
    """
    Point-robot navigation server

    Failure injection:
        set_server_available(False): wait_for_server() times out and
            submit_goal() raises ServiceUnavailableError
        reject_goals = True: new goals come back REJECTED
        abort_active_goal(): active goal ends ABORTED
        publish_pose = False: pose stops updating on the feed
    """

    def __init__(self, pose_feed: PoseFeed,
                 start_pose: Optional[Pose] = None,
                 speed: float = 0.5):
        """
        Args:
            pose_feed: Feed the robot pose is published on
            start_pose: Initial pose (origin if None)
            speed: Robot speed in m/s
        """
        self.pose_feed = pose_feed
        self.speed = speed

        self.reject_goals = False
        self.publish_pose = True

        self._pose = start_pose or Pose()
        self._goal: Optional[SimulatedGoal] = None
        self._lock = threading.Lock()

        self._server_ready = threading.Event()
        self._server_ready.set()

        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._update_period = 0.05

        self.goals_received = 0

        self.pose_feed.publish(self._pose)

    @property
    def pose(self) -> Pose:
        with self._lock:
            return self._pose

    @property
    def active_goal(self) -> Optional[SimulatedGoal]:
        with self._lock:
            goal = self._goal
        return goal if goal is not None and goal.is_active else None

    # ==================== Server interface ====================

    def wait_for_server(self, timeout: float) -> bool:
        return self._server_ready.wait(timeout)

    def submit_goal(self, target: Pose, feedback_callback: FeedbackCallback) -> SimulatedGoal:
        if not self._server_ready.is_set():
            raise ServiceUnavailableError("Navigation server not available")

        self.goals_received += 1

        if self.reject_goals:
            logger.warning("Navigation goal rejected")
            return SimulatedGoal(target, feedback_callback, GoalStatus.REJECTED)

        goal = SimulatedGoal(target, feedback_callback)
        with self._lock:
            previous = self._goal
            self._goal = goal

        if previous is not None:
            previous.cancel()

        logger.info(f"Navigation goal accepted: ({target.position.x:.2f}, {target.position.y:.2f})")
        return goal

    # ==================== Failure injection ====================

    def set_server_available(self, available: bool):
        if available:
            self._server_ready.set()
        else:
            self._server_ready.clear()

    def abort_active_goal(self):
        goal = self.active_goal
        if goal is not None:
            goal._status = GoalStatus.ABORTED
            logger.warning("Navigation goal aborted")

    def teleport(self, pose: Pose):
        """Set the robot pose directly"""
        with self._lock:
            self._pose = pose
        if self.publish_pose:
            self.pose_feed.publish(pose)

    # ==================== Simulation ====================

    def step(self, dt: float):
        """Advance the robot by dt seconds"""
        feedback = None

        with self._lock:
            goal = self._goal
            if goal is not None and goal.is_active:
                self._pose, remaining = step_towards(self._pose, goal.target, self.speed * dt)
                feedback = (goal.feedback_callback, remaining)
                if remaining <= 0.0:
                    goal._status = GoalStatus.SUCCEEDED
            pose = self._pose

        # Callbacks run outside the lock
        if self.publish_pose:
            self.pose_feed.publish(pose)

        if feedback is not None:
            callback, remaining = feedback
            if callback is not None:
                callback(remaining)

    def start(self, update_rate: float = 20.0):
        """
        Start the motion loop

        Args:
            update_rate: Update frequency in Hz
        """
        if self._running:
            return

        self._running = True
        self._update_period = 1.0 / update_rate
        self._thread = threading.Thread(target=self._update_loop, daemon=True)
        self._thread.start()
        logger.info(f"SimulatedMotionService started at {update_rate} Hz")

    def stop(self):
        """Stop the motion loop"""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

    def _update_loop(self):
        last = time.monotonic()
        while self._running:
            start = time.monotonic()
            self.step(start - last)
            last = start

            elapsed = time.monotonic() - start
            if elapsed < self._update_period:
                time.sleep(self._update_period - elapsed)

    def distance_to(self, target: Pose) -> float:
        return planar_distance(self.pose, target)
