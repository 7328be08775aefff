"""
Simulated patrol world

Wires the in-process services, the action context and the mission
controller together. Either drive it step by step (tests) or start the
background loops (server).
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from patrol_nav.actions.registry import ActionContext
from patrol_nav.config import Config
from patrol_nav.mission.controller import MissionController
from patrol_nav.navigation.feeds import PoseFeed, SelectorFeed
from patrol_nav.navigation.waypoints import WaypointTable
from patrol_nav.utils.geometry import Pose
from patrol_nav.utils.logger import FeedbackRecorder

from .adapters.sim_executor import SimulatedExecutionEngine
from .adapters.sim_knowledge import InMemoryKnowledgeStore
from .adapters.sim_motion import SimulatedMotionService
from .adapters.sim_planner import ScriptedPlanner

logger = logging.getLogger(__name__)


@dataclass
class SimulatedWorld:
    """Everything the patrol needs, simulated"""
    config: Config
    waypoints: WaypointTable
    pose_feed: PoseFeed
    selector_feed: SelectorFeed
    knowledge: InMemoryKnowledgeStore
    planner: ScriptedPlanner
    motion: SimulatedMotionService
    engine: SimulatedExecutionEngine
    controller: MissionController
    recorder: Optional[FeedbackRecorder] = None

    _running: bool = field(default=False, repr=False)
    _thread: Optional[threading.Thread] = field(default=None, repr=False)

    def step(self, dt: Optional[float] = None):
        """
        Advance motion, execution and the controller by one tick each

        Args:
            dt: Simulated seconds of robot motion (action tick period if None)
        """
        if dt is None:
            dt = self.config.action.tick_period_s
        self.motion.step(dt)
        self.engine.step()
        self.controller.step()

    def run_until(self, predicate, max_steps: int = 10000, dt: Optional[float] = None) -> bool:
        """Step until predicate() is true; False if max_steps ran out"""
        for _ in range(max_steps):
            if predicate():
                return True
            self.step(dt)
        return predicate()

    def start(self):
        """Start motion, execution and controller loops"""
        if self._running:
            return

        sim = self.config.simulation
        if self.recorder is not None:
            self.recorder.start()

        self.motion.start(sim.update_rate_hz)
        self.engine.start(sim.engine_rate_hz)

        self._running = True
        self._thread = threading.Thread(target=self._controller_loop, daemon=True)
        self._thread.start()
        logger.info(f"Mission controller running at {self.config.mission.rate_hz} Hz")

    def stop(self):
        """Stop all loops"""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

        self.engine.stop()
        self.motion.stop()

        if self.recorder is not None:
            self.recorder.stop()

    @property
    def is_running(self) -> bool:
        return self._running

    def _controller_loop(self):
        period = 1.0 / self.config.mission.rate_hz
        while self._running:
            start = time.monotonic()
            try:
                self.controller.step()
            except Exception as e:
                logger.error(f"Controller step error: {e}")

            elapsed = time.monotonic() - start
            if elapsed < period:
                time.sleep(period - elapsed)

    def get_status(self) -> dict:
        pose = self.pose_feed.latest()
        return {
            'mission': self.controller.get_status(),
            'execution': self.engine.get_status(),
            'pose': pose.to_dict() if pose else None,
            'selector': self.selector_feed.current(),
            'facts': self.knowledge.facts,
        }


def build_world(config: Optional[Config] = None,
                recorder: Optional[FeedbackRecorder] = None) -> SimulatedWorld:
    """
    Build a simulated world from configuration

    Args:
        config: Configuration (defaults if None)
        recorder: Optional feedback recorder handed to the controller

    Returns:
        SimulatedWorld, not yet started
    """
    config = config or Config()

    waypoints = WaypointTable.load(config.waypoints.file or None, config.waypoints.frame_id)

    pose_feed = PoseFeed()
    selector_feed = SelectorFeed()

    knowledge = InMemoryKnowledgeStore()
    planner = ScriptedPlanner.from_yaml(knowledge, config.simulation.scenario or None)

    sim = config.simulation
    motion = SimulatedMotionService(
        pose_feed,
        start_pose=Pose.from_xy(sim.start_x, sim.start_y),
        speed=sim.robot_speed_ms,
    )

    context = ActionContext(
        motion=motion,
        waypoints=waypoints,
        pose_feed=pose_feed,
        config=config.action,
    )
    engine = SimulatedExecutionEngine(knowledge, context)

    controller = MissionController(
        planner=planner,
        knowledge=knowledge,
        executor=engine,
        selector_feed=selector_feed,
        config=config.mission,
        waypoints=waypoints,
        recorder=recorder,
    )
    controller.init_knowledge()

    return SimulatedWorld(
        config=config,
        waypoints=waypoints,
        pose_feed=pose_feed,
        selector_feed=selector_feed,
        knowledge=knowledge,
        planner=planner,
        motion=motion,
        engine=engine,
        controller=controller,
        recorder=recorder,
    )
