"""
Simulated Execution Engine

Runs plan items in order, ticking the executor registered for each
action name. Successful actions have their effects applied to the
knowledge store.
"""

import logging
import threading
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from patrol_nav.actions.registry import ACTION_EXECUTORS, ActionContext, ActionExecutor, create_executor
from patrol_nav.mission.knowledge import patrolled, robot_at
from patrol_nav.services.models import (
    ActionFeedback,
    ActionStatus,
    Plan,
    PlanItem,
    PlanResult,
    ServiceUnavailableError,
)
from .sim_knowledge import InMemoryKnowledgeStore

logger = logging.getLogger(__name__)


def apply_move(knowledge: InMemoryKnowledgeStore, arguments: List[str]):
    """(move ?r ?from ?to): robot leaves from, is at to, to is patrolled"""
    robot, source, destination = arguments[:3]
    knowledge.remove_predicate(robot_at(robot, source))
    knowledge.add_predicate(robot_at(robot, destination))
    knowledge.add_predicate(patrolled(destination))


# Action name -> effect on success
ACTION_EFFECTS: Dict[str, Callable[[InMemoryKnowledgeStore, List[str]], None]] = {
    "move": apply_move,
}


class _ActionSlot:
    """Host side of one plan item: collects its executor's reports"""

    def __init__(self, engine: 'SimulatedExecutionEngine', item: PlanItem):
        self.engine = engine
        self.item = item
        self.feedback = ActionFeedback(action=item.action)

    def report_feedback(self, fraction: float, message: str):
        with self.engine._lock:
            if self.feedback.status in (ActionStatus.NOT_EXECUTED, ActionStatus.EXECUTING):
                self.feedback.status = ActionStatus.EXECUTING
                self.feedback.completion = fraction
                self.feedback.message = message

    def report_result(self, success: bool, fraction: float, message: str):
        with self.engine._lock:
            self.feedback.status = ActionStatus.SUCCEEDED if success else ActionStatus.FAILED
            self.feedback.completion = fraction
            self.feedback.message = message


class SimulatedExecutionEngine:
    """
    Sequential plan executor

    Executors are created once per action name and reused across plan
    items, the way long-lived action servers are. Set `available = False`
    to simulate the engine being down.
    """

    def __init__(self, knowledge: InMemoryKnowledgeStore, context: ActionContext):
        self.knowledge = knowledge
        self.context = context
        self.available = True

        self._lock = threading.RLock()
        self._executors: Dict[str, ActionExecutor] = {}
        self._slots: List[_ActionSlot] = []
        self._index = 0
        self._executing = False
        self._result: Optional[PlanResult] = None

        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._update_period = 0.1

        self.plans_started = 0

    def _check(self):
        if not self.available:
            raise ServiceUnavailableError("Execution engine not available")

    # ==================== Engine interface ====================

    def start_plan_execution(self, plan: Plan) -> bool:
        self._check()

        unknown = sorted({item.name for item in plan if item.name not in ACTION_EXECUTORS})
        if unknown:
            logger.error(f"No executor for actions: {', '.join(unknown)}")
            return False

        with self._lock:
            if self._executing:
                logger.warning("Plan already executing")
                return False

            self._slots = [_ActionSlot(self, item) for item in plan]
            self._index = 0
            self._result = None
            self.plans_started += 1

            if not self._slots:
                self._result = PlanResult(True, "Empty plan")
                logger.info("Empty plan, nothing to execute")
                return True

            self._executing = True

        logger.info(f"Executing plan with {len(plan)} actions")
        return True

    def is_executing(self) -> bool:
        self._check()
        with self._lock:
            return self._executing

    def get_feedback(self) -> List[ActionFeedback]:
        self._check()
        with self._lock:
            return [replace(slot.feedback) for slot in self._slots]

    def get_result(self) -> Optional[PlanResult]:
        self._check()
        with self._lock:
            return self._result

    def cancel_plan(self):
        self._check()
        with self._lock:
            if not self._executing:
                return

            slot = self._slots[self._index]
            executor = self._executors.get(slot.item.name)
            if executor is not None:
                executor.cancel()
            slot.feedback.status = ActionStatus.CANCELLED

            self._executing = False
            self._result = PlanResult(False, "Plan canceled")
        logger.warning("Plan canceled")

    # ==================== Simulation ====================

    def step(self):
        """
        Tick the current action once

        The executor runs outside the engine lock; a blocked server wait
        must not hold up status or cancel calls.
        """
        with self._lock:
            if not self._executing:
                return

            slots = self._slots
            index = self._index
            slot = slots[index]
            if slot.feedback.status == ActionStatus.NOT_EXECUTED:
                slot.feedback.status = ActionStatus.EXECUTING

            executor = self._executor_for(slot.item.name)

        executor.tick(slot.item.arguments)

        with self._lock:
            # Canceled or replaced while ticking
            if not self._executing or self._slots is not slots or self._index != index:
                return

            if slot.feedback.status == ActionStatus.SUCCEEDED:
                self._apply_effects(slot.item)
                self._index += 1
                if self._index >= len(self._slots):
                    self._executing = False
                    self._result = PlanResult(True, "Plan completed")
                    logger.info("Plan completed")

            elif slot.feedback.status == ActionStatus.FAILED:
                self._executing = False
                self._result = PlanResult(
                    False, f"Action {slot.item.action} failed: {slot.feedback.message}")
                logger.warning(self._result.message)

    def _executor_for(self, name: str) -> ActionExecutor:
        executor = self._executors.get(name)
        if executor is None:
            executor = create_executor(name, host=_SlotRouter(self), context=self.context)
            self._executors[name] = executor
        return executor

    def _apply_effects(self, item: PlanItem):
        effect = ACTION_EFFECTS.get(item.name)
        if effect is not None:
            effect(self.knowledge, item.arguments)

    def current_slot(self) -> Optional[_ActionSlot]:
        with self._lock:
            if self._executing:
                return self._slots[self._index]
            return None

    def start(self, update_rate: float = 10.0):
        """
        Start the execution loop

        Args:
            update_rate: Tick frequency in Hz
        """
        if self._running:
            return

        self._running = True
        self._update_period = 1.0 / update_rate
        self._thread = threading.Thread(target=self._update_loop, daemon=True)
        self._thread.start()
        logger.info(f"SimulatedExecutionEngine started at {update_rate} Hz")

    def stop(self):
        """Stop the execution loop and release executors"""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

        with self._lock:
            for executor in self._executors.values():
                executor.close()
            self._executors.clear()

    def _update_loop(self):
        while self._running:
            start = time.monotonic()
            try:
                self.step()
            except Exception as e:
                logger.error(f"Execution step error: {e}")

            elapsed = time.monotonic() - start
            if elapsed < self._update_period:
                time.sleep(self._update_period - elapsed)

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'executing': self._executing,
                'current_action': self._slots[self._index].item.action if self._executing else None,
                'executors': [e.get_status() for e in self._executors.values()],
            }


class _SlotRouter:
    """ActionHost handed to an executor; forwards to the current plan item"""

    def __init__(self, engine: SimulatedExecutionEngine):
        self.engine = engine

    def report_feedback(self, fraction: float, message: str):
        slot = self.engine.current_slot()
        if slot is not None:
            slot.report_feedback(fraction, message)

    def report_result(self, success: bool, fraction: float, message: str):
        slot = self.engine.current_slot()
        if slot is not None:
            slot.report_result(success, fraction, message)
