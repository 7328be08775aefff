"""
Mission Controller

Plan -> execute -> monitor -> replan cycle for the patrol mission:
patrol every waypoint, pick a follow-up destination from the selector
feed, go there.
"""

import logging
import time
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import MissionConfig
from ..navigation.feeds import LatestValue, SelectorFeed, SELECTOR_UNSET
from ..navigation.waypoints import WaypointTable
from ..services.models import (
    ActionFeedback,
    Plan,
    PlanResult,
    ServiceUnavailableError,
    failed_actions,
    format_progress,
)
from ..services.protocols import ExecutionEngine, KnowledgeStore, PlanningService
from ..utils.logger import FeedbackRecorder
from .knowledge import destination_goal, patrol_goal, patrolled, robot_at, seed_knowledge

logger = logging.getLogger(__name__)


class MissionState(Enum):
    """Mission controller states"""
    STARTING = auto()           # Request and submit the patrol plan
    PATROL_FINISHED = auto()    # Patrol running; on success pick destination
    GO_BACK = auto()            # Destination plan running


class MissionController:
    """
    Patrol mission state machine

    Call step() at MissionConfig.rate_hz. Only this class writes to the
    knowledge store, and at most one plan is in flight at a time.
    """

    # Every MissionState must have a handler (checked at import)
    _HANDLERS: Dict[MissionState, str] = {
        MissionState.STARTING: '_step_starting',
        MissionState.PATROL_FINISHED: '_step_patrol_finished',
        MissionState.GO_BACK: '_step_go_back',
    }

    def __init__(self,
                 planner: PlanningService,
                 knowledge: KnowledgeStore,
                 executor: ExecutionEngine,
                 selector_feed: SelectorFeed,
                 config: Optional[MissionConfig] = None,
                 waypoints: Optional[WaypointTable] = None,
                 recorder: Optional[FeedbackRecorder] = None):
        """
        Initialize controller

        Args:
            planner: Domain/problem snapshots and plan computation
            knowledge: Fact and goal store
            executor: Plan execution engine
            selector_feed: Source of the follow-up destination choice
            config: Mission parameters (defaults if None)
            waypoints: If given, every referenced waypoint must be in it
            recorder: Optional CSV recorder for plan feedback

        Raises:
            MissingWaypointError: If a mission waypoint is absent from the table
        """
        self.planner = planner
        self.knowledge = knowledge
        self.executor = executor
        self.selector_feed = selector_feed
        self.config = config or MissionConfig()
        self.recorder = recorder

        if waypoints is not None:
            waypoints.require([self.config.home, self.config.final_waypoint])
            waypoints.require(self.config.patrol_waypoints)
            waypoints.require(self.config.selector_targets.values())

        self._state = MissionState.STARTING
        self._state_enter_time = time.time()
        self._selector: LatestValue[int] = LatestValue(SELECTOR_UNSET)
        self._initialized = False

        # Set when leaving PATROL_FINISHED, used by GO_BACK cleanup
        self._destination: Optional[str] = None
        self._patrol_cleaned = False
        self._return_cleaned = False

        self._last_feedback: List[ActionFeedback] = []
        self._last_result: Optional[PlanResult] = None

        # Counters
        self._ticks = 0
        self._plans_requested = 0
        self._plans_not_found = 0
        self._submissions = 0
        self._replans = 0

        self._on_transition: Optional[Callable[[MissionState, MissionState], None]] = None

    @property
    def state(self) -> MissionState:
        """Current state"""
        return self._state

    @property
    def destination(self) -> Optional[str]:
        """Follow-up destination chosen after the patrol"""
        return self._destination

    @property
    def selector_value(self) -> int:
        value = self._selector.latest()
        return SELECTOR_UNSET if value is None else value

    @property
    def cycle_complete(self) -> bool:
        """True once the return leg succeeded and was cleaned up"""
        return self._return_cleaned

    def init_knowledge(self):
        """Seed the knowledge store and start following the selector feed"""
        if self._initialized:
            return

        seed_knowledge(self.knowledge, self.config)
        current = self.selector_feed.latest()
        if current is not None:
            self._selector.publish(current)
        self.selector_feed.subscribe(self._selector.publish)
        self._initialized = True

    def step(self):
        """Run one controller tick"""
        if not self._initialized:
            self.init_knowledge()

        handler = getattr(self, self._HANDLERS[self._state])
        handler()
        self._ticks += 1

    def cancel(self):
        """Cancel the running plan"""
        logger.warning("Canceling running plan")
        self.executor.cancel_plan()

    # ==================== State handlers ====================

    def _step_starting(self):
        goal = patrol_goal(self.config)
        self.knowledge.set_goal(goal)

        plan = self._compute_plan()
        if plan is None:
            logger.warning(f"Could not find plan to reach goal {self._current_goal()}")
            return

        if self._submit(plan):
            self._transition_to(MissionState.PATROL_FINISHED)

    def _step_patrol_finished(self):
        feedback, result = self._poll()
        if result is None:
            return

        if result.success:
            logger.info("Successful finished")

            # Facts and goal are mutated once, then kept for plan retries
            if not self._patrol_cleaned:
                for wp in self.config.patrol_waypoints:
                    self.knowledge.remove_predicate(patrolled(wp))
                self._destination = self._choose_destination()
                self._patrol_cleaned = True

            plan = self._compute_plan()
            if plan is None:
                logger.warning(f"Could not find plan to reach goal {self._current_goal()}")
                return

            if self._submit(plan):
                self._transition_to(MissionState.GO_BACK)
        else:
            self._report_failures(feedback)
            self._replan()

    def _step_go_back(self):
        feedback, result = self._poll()
        if result is None:
            return

        if result.success:
            if self._return_cleaned:
                logger.debug("Patrol cycle complete, idling")
                return

            logger.info("Successful finished")
            if self._destination is not None:
                self.knowledge.remove_predicate(robot_at(self.config.robot, self._destination))
            else:
                logger.warning("Invalid state: no valid destination was selected, nothing to clean up")
            self._return_cleaned = True
            logger.info("Patrol cycle complete")
        else:
            self._report_failures(feedback)
            self._replan()

    # ==================== Helpers ====================

    def _poll(self) -> Tuple[List[ActionFeedback], Optional[PlanResult]]:
        """
        Read feedback and, once execution stopped, the terminal result

        Returns:
            (feedback, result) - result is None while the plan is running
        """
        try:
            feedback = self.executor.get_feedback()
            executing = self.executor.is_executing()
            result = None if executing else self.executor.get_result()
        except ServiceUnavailableError as e:
            logger.error(f"Execution engine unavailable: {e}")
            return [], None

        self._last_feedback = feedback

        progress = format_progress(feedback)
        if progress:
            logger.info(progress)

        if self.recorder is not None:
            self.recorder.record(self._state.name, feedback)

        if executing:
            return feedback, None

        self._last_result = result
        return feedback, result

    def _choose_destination(self) -> Optional[str]:
        """Map the selector to a destination and set the single-destination goal"""
        value = self.selector_value
        waypoint = self.config.selector_targets.get(value)

        if waypoint is None:
            logger.warning(f"Invalid selector value {value}, goal unchanged")
            return None

        logger.info(f"Selector {value} -> destination {waypoint}")
        self.knowledge.set_goal(destination_goal(self.config, waypoint))
        return waypoint

    def _compute_plan(self) -> Optional[Plan]:
        """Plan from a fresh domain/problem snapshot"""
        self._plans_requested += 1
        try:
            domain = self.planner.get_domain()
            problem = self.planner.get_problem()
            plan = self.planner.get_plan(domain, problem)
        except ServiceUnavailableError as e:
            logger.error(f"Planning service unavailable: {e}")
            plan = None

        if plan is None:
            self._plans_not_found += 1
        return plan

    def _submit(self, plan: Plan) -> bool:
        """Start plan execution unless a plan is already in flight"""
        try:
            if self.executor.is_executing():
                logger.warning("Previous plan still executing, not submitting")
                return False

            started = self.executor.start_plan_execution(plan)
        except ServiceUnavailableError as e:
            logger.error(f"Execution engine unavailable: {e}")
            return False

        if started:
            self._submissions += 1
            logger.info(f"Plan with {len(plan)} actions submitted")
        else:
            logger.warning("Execution engine refused the plan")
        return started

    def _replan(self):
        """New plan for the unchanged goal"""
        self._replans += 1

        plan = self._compute_plan()
        if plan is None:
            logger.warning(f"Unsuccessful replan attempt to reach goal {self._current_goal()}")
            return

        self._submit(plan)

    def _report_failures(self, feedback: List[ActionFeedback]):
        for fb in failed_actions(feedback):
            logger.error(f"[{fb.action}] finished with error: {fb.message}")

    def _current_goal(self) -> str:
        try:
            return self.knowledge.get_goal()
        except ServiceUnavailableError:
            return "<unavailable>"

    def _transition_to(self, new_state: MissionState):
        old_state = self._state

        if old_state == MissionState.PATROL_FINISHED:
            self._patrol_cleaned = False

        self._state = new_state
        self._state_enter_time = time.time()
        logger.info(f"Mission state: {old_state.name} -> {new_state.name}")

        if self._on_transition:
            try:
                self._on_transition(old_state, new_state)
            except Exception as e:
                logger.error(f"Error in transition callback: {e}")

    def on_transition(self, callback: Callable[[MissionState, MissionState], None]):
        """Register callback for any state transition"""
        self._on_transition = callback

    def get_status(self) -> Dict[str, Any]:
        """Snapshot for the status API"""
        return {
            'state': self._state.name,
            'time_in_state': time.time() - self._state_enter_time,
            'selector': self.selector_value,
            'destination': self._destination,
            'goal': self._current_goal() if self._initialized else None,
            'cycle_complete': self._return_cleaned,
            'feedback': [fb.to_dict() for fb in self._last_feedback],
            'result': self._last_result.to_dict() if self._last_result else None,
            'counters': {
                'ticks': self._ticks,
                'plans_requested': self._plans_requested,
                'plans_not_found': self._plans_not_found,
                'submissions': self._submissions,
                'replans': self._replans,
            },
        }


def _check_handlers():
    missing = [s.name for s in MissionState if s not in MissionController._HANDLERS]
    if missing:
        raise RuntimeError(f"MissionController has no handler for: {', '.join(missing)}")
    for name in MissionController._HANDLERS.values():
        if not callable(getattr(MissionController, name, None)):
            raise RuntimeError(f"MissionController handler '{name}' is not defined")


_check_handlers()
