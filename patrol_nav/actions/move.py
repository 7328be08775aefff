"""
Move Action Executor

Drives one symbolic "move" action: resolves the destination waypoint,
sends an asynchronous navigation goal and declares arrival by polling
the robot pose.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, List, Optional, Set, Any

from ..config import ActionConfig
from ..navigation.feeds import LatestValue, PoseFeed
from ..navigation.waypoints import MissingWaypointError, WaypointTable
from ..services.models import ServiceUnavailableError
from ..services.protocols import ActionHost, MotionService, NavigationHandle
from ..utils.geometry import Pose, planar_distance, progress_fraction

logger = logging.getLogger(__name__)

# Index of the destination in [agent, source_waypoint, destination_waypoint]
DESTINATION_ARG = 2


class MoveState(Enum):
    """Move action states"""
    IDLE = auto()               # Waiting for the first tick
    AWAITING_SERVER = auto()    # Motion server readiness check, goal setup
    NAVIGATING = auto()         # Goal sent, polling distance
    REACHED = auto()            # Inside reach threshold, report on next tick


# Valid state transitions
VALID_TRANSITIONS: Dict[MoveState, Set[MoveState]] = {
    MoveState.IDLE: {MoveState.AWAITING_SERVER},
    MoveState.AWAITING_SERVER: {MoveState.NAVIGATING, MoveState.IDLE},
    MoveState.NAVIGATING: {MoveState.REACHED, MoveState.IDLE},
    MoveState.REACHED: {MoveState.IDLE},
}


@dataclass(frozen=True)
class MoveGoal:
    """Resolved target of the current move"""
    waypoint_id: str
    target: Pose
    initial_distance: float     # Progress normalization, captured once


class MoveAction:
    """
    Executor for the "move" action

    The host calls tick() periodically (ActionConfig.tick_period_s). Feedback
    from the motion server arrives on the server's thread and only updates
    the reported progress; state transitions happen on the tick path only.
    """

    name = "move"

    def __init__(self,
                 host: ActionHost,
                 motion: MotionService,
                 waypoints: WaypointTable,
                 pose_feed: Optional[PoseFeed] = None,
                 config: Optional[ActionConfig] = None):
        """
        Initialize move executor

        Args:
            host: Receives feedback and the terminal result
            motion: Navigation server
            waypoints: Table used to resolve destination ids
            pose_feed: Optional shared pose stream to follow
            config: Action parameters (defaults if None)
        """
        self.host = host
        self.motion = motion
        self.waypoints = waypoints
        self.config = config or ActionConfig()

        self._state = MoveState.IDLE
        self._arguments: List[str] = []
        self._goal: Optional[MoveGoal] = None
        self._handle: Optional[NavigationHandle] = None
        self._submitted_at = 0.0
        self._distance: Optional[float] = None
        self._last_fraction = 0.0

        # Own pose slot, fed by on_pose_update()
        self._pose: LatestValue[Pose] = LatestValue()

        self._on_transition: Optional[Callable[[MoveState, MoveState], None]] = None

        self._pose_feed = pose_feed
        if pose_feed is not None:
            current = pose_feed.latest()
            if current is not None:
                self._pose.publish(current)
            pose_feed.subscribe(self.on_pose_update)

    @property
    def state(self) -> MoveState:
        """Current state"""
        return self._state

    @property
    def goal(self) -> Optional[MoveGoal]:
        return self._goal

    @property
    def is_active(self) -> bool:
        return self._state != MoveState.IDLE

    # ==================== Capability interface ====================

    def tick(self, arguments: List[str]):
        """
        Advance the state machine by one step

        Args:
            arguments: [agent, source_waypoint, destination_waypoint]
        """
        if self._state == MoveState.IDLE:
            self._start(arguments)

        elif self._state == MoveState.AWAITING_SERVER:
            self._submit()

        elif self._state == MoveState.NAVIGATING:
            self._monitor()

        elif self._state == MoveState.REACHED:
            self._finish()

    def on_pose_update(self, pose: Pose):
        """Store the latest robot pose (any thread)"""
        self._pose.publish(pose)

    def cancel(self):
        """Abort the running move and report it as failed"""
        if self._state == MoveState.IDLE:
            return

        logger.info(f"Canceling move to [{self._target_id()}]")
        self._fail("Move canceled", cancel_goal=True)

    def close(self):
        """Detach from the shared pose feed"""
        if self._pose_feed is not None:
            self._pose_feed.unsubscribe(self.on_pose_update)
            self._pose_feed = None

    # ==================== State handlers ====================

    def _start(self, arguments: List[str]):
        """IDLE: announce, then wait for the server and send the goal"""
        self.host.report_feedback(0.0, "Move starting")
        self._arguments = list(arguments)
        self._last_fraction = 0.0
        self._transition_to(MoveState.AWAITING_SERVER)
        self._submit()

    def _submit(self):
        """AWAITING_SERVER: bounded readiness wait, resolve target, send goal"""
        if not self._wait_for_server():
            self._fail(
                f"Navigation server unavailable after "
                f"{self.config.server_max_attempts} attempts"
            )
            return

        if len(self._arguments) <= DESTINATION_ARG:
            self._fail(f"Move expects [agent, from, to], got {self._arguments}")
            return

        waypoint_id = self._arguments[DESTINATION_ARG]
        logger.info(f"Start navigation to [{waypoint_id}]")

        try:
            target = self.waypoints.pose_of(waypoint_id)
        except MissingWaypointError as e:
            self._fail(str(e))
            return

        current = self._current_pose()
        self._goal = MoveGoal(
            waypoint_id=waypoint_id,
            target=target,
            initial_distance=planar_distance(target, current)
        )

        try:
            self._handle = self.motion.submit_goal(target, self._on_navigation_feedback)
        except ServiceUnavailableError as e:
            self._fail(f"Navigation goal not sent: {e}")
            return

        self._submitted_at = time.monotonic()
        logger.info("Goal sent to navigation action server")
        self._transition_to(MoveState.NAVIGATING)

    def _monitor(self):
        """NAVIGATING: poll distance, detect arrival or failure"""
        goal = self._goal
        if goal is None:
            self._fail("Navigating without a goal")
            return

        if self._handle is not None and self._handle.status.is_failure:
            self._fail(f"Navigation goal {self._handle.status.name.lower()}")
            return

        sample = self._pose.snapshot()
        last_update = self._submitted_at
        if sample is not None:
            last_update = max(last_update, sample.stamp)

        silence = time.monotonic() - last_update
        if self.config.pose_timeout_s > 0 and silence > self.config.pose_timeout_s:
            self._fail(f"No pose update for {silence:.1f}s", cancel_goal=True)
            return

        if sample is None:
            logger.debug("No pose received yet")
            return

        distance = planar_distance(goal.target, sample.value)
        self._distance = distance
        logger.debug(f"Reaching goal, distance: {distance:.3f}")

        self._last_fraction = progress_fraction(distance, goal.initial_distance)
        self.host.report_feedback(self._last_fraction, "Move running")

        if distance < self.config.reach_threshold_m:
            self._transition_to(MoveState.REACHED)

    def _finish(self):
        """REACHED: report success and get ready for the next invocation"""
        logger.info("Goal reached!")
        self._transition_to(MoveState.IDLE)
        self._reset()
        self.host.report_result(True, 1.0, "Move completed")

    def _fail(self, message: str, cancel_goal: bool = False):
        """Report failure from any active state and reset"""
        if cancel_goal and self._handle is not None:
            try:
                self._handle.cancel()
            except Exception as e:
                logger.error(f"Failed to cancel navigation goal: {e}")

        logger.error(f"Move to [{self._target_id()}] failed: {message}")
        fraction = self._last_fraction
        self._transition_to(MoveState.IDLE)
        self._reset()
        self.host.report_result(False, fraction, message)

    # ==================== Helpers ====================

    def _on_navigation_feedback(self, remaining: float):
        """Motion server feedback (server thread)"""
        goal = self._goal
        if goal is None or self._state != MoveState.NAVIGATING:
            return

        self._last_fraction = progress_fraction(remaining, goal.initial_distance)
        self.host.report_feedback(self._last_fraction, "Move running")

    def _wait_for_server(self) -> bool:
        """Retry readiness with a fixed timeout, at most server_max_attempts times"""
        for attempt in range(1, self.config.server_max_attempts + 1):
            logger.info("Waiting for navigation action server...")
            try:
                if self.motion.wait_for_server(self.config.server_wait_timeout_s):
                    logger.info("Navigation action server ready")
                    return True
            except ServiceUnavailableError as e:
                logger.warning(f"Navigation server check {attempt} failed: {e}")
        return False

    def _current_pose(self) -> Pose:
        pose = self._pose.latest()
        if pose is None:
            logger.warning("No pose received yet, measuring from origin")
            return Pose()
        return pose

    def _target_id(self) -> str:
        if self._goal is not None:
            return self._goal.waypoint_id
        if len(self._arguments) > DESTINATION_ARG:
            return self._arguments[DESTINATION_ARG]
        return "?"

    def _transition_to(self, new_state: MoveState) -> bool:
        if new_state not in VALID_TRANSITIONS[self._state]:
            logger.warning(f"Invalid transition: {self._state.name} -> {new_state.name}")
            return False

        old_state = self._state
        self._state = new_state
        logger.debug(f"Move state: {old_state.name} -> {new_state.name}")

        if self._on_transition:
            try:
                self._on_transition(old_state, new_state)
            except Exception as e:
                logger.error(f"Error in transition callback: {e}")

        return True

    def _reset(self):
        self._arguments = []
        self._goal = None
        self._handle = None
        self._submitted_at = 0.0
        self._distance = None
        self._last_fraction = 0.0

    def on_transition(self, callback: Callable[[MoveState, MoveState], None]):
        """Register callback for any state transition"""
        self._on_transition = callback

    def get_status(self) -> Dict[str, Any]:
        """Snapshot for the status API"""
        goal = self._goal
        return {
            'action': self.name,
            'state': self._state.name,
            'target': goal.waypoint_id if goal else None,
            'initial_distance': goal.initial_distance if goal else None,
            'distance': self._distance,
            'progress': self._last_fraction,
        }
