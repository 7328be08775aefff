"""
Tests for the simulated services and end-to-end patrol runs
"""

import threading
import time
import pytest

from patrol_nav.actions.registry import ActionContext
from patrol_nav.mission import MissionState
from patrol_nav.navigation import PoseFeed, WaypointTable
from patrol_nav.services.models import ActionStatus, GoalStatus, Plan, ServiceUnavailableError
from patrol_nav.utils.geometry import Pose, planar_distance

from simulation.adapters import (
    InMemoryKnowledgeStore,
    ScriptedPlanner,
    SimulatedExecutionEngine,
    SimulatedMotionService,
)
from simulation.adapters.sim_knowledge import problem_facts, problem_goal
from simulation.adapters.sim_planner import ScenarioEntry
from simulation.world import build_world


class TestKnowledgeStore:
    """Test in-memory knowledge store"""

    def test_add_remove(self, knowledge):
        assert knowledge.add_predicate("(robot_at r2d2 wp1)")
        assert not knowledge.add_predicate("(robot_at  r2d2 wp1)")
        assert knowledge.remove_predicate("(robot_at r2d2 wp1)")
        assert not knowledge.remove_predicate("(robot_at r2d2 wp1)")

    def test_render_problem(self, knowledge):
        knowledge.add_instance("r2d2", "robot")
        knowledge.add_instance("wp1", "waypoint")
        knowledge.add_instance("wp2", "waypoint")
        knowledge.add_predicate("(robot_at r2d2 wp1)")
        knowledge.add_predicate("(connected wp1 wp2)")
        knowledge.set_goal("(and (robot_at r2d2 wp2))")

        problem = knowledge.render_problem()

        assert "wp1 wp2 - waypoint" in problem
        assert problem_goal(problem) == "(and (robot_at r2d2 wp2))"
        assert problem_facts(problem) == ["(robot_at r2d2 wp1)", "(connected wp1 wp2)"]

    def test_unavailable(self, knowledge):
        knowledge.available = False
        with pytest.raises(ServiceUnavailableError):
            knowledge.get_goal()


class TestScriptedPlanner:
    """Test canned plan lookup"""

    def test_default_scenario_patrol(self, world):
        world.knowledge.set_goal(
            "(and (robot_at r2d2 wp4) (patrolled wp1) (patrolled wp2) (patrolled wp3) (patrolled wp4))")

        plan = world.planner.get_plan(world.planner.get_domain(), world.planner.get_problem())

        assert [item.action for item in plan] == [
            "(move r2d2 wp_control wp1)",
            "(move r2d2 wp1 wp2)",
            "(move r2d2 wp2 wp3)",
            "(move r2d2 wp3 wp4)",
        ]
        assert "(define (domain patrol)" in world.planner.get_domain()

    def test_start_waypoint_must_match(self, knowledge):
        knowledge.add_predicate("(robot_at r2d2 wp1)")
        knowledge.set_goal("(and (robot_at r2d2 wp2))")
        planner = ScriptedPlanner(knowledge, [
            ScenarioEntry("(and (robot_at r2d2 wp2))", ["(move r2d2 wp4 wp3)"], robot="r2d2", at="wp4"),
        ])

        assert planner.get_plan("", planner.get_problem()) is None

        knowledge.remove_predicate("(robot_at r2d2 wp1)")
        knowledge.add_predicate("(robot_at r2d2 wp4)")
        assert len(planner.get_plan("", planner.get_problem())) == 1

    def test_empty_scenario_rejected(self, knowledge, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("plans: []\n")

        with pytest.raises(ValueError):
            ScriptedPlanner.from_yaml(knowledge, str(path))

    def test_unavailable(self, knowledge):
        planner = ScriptedPlanner(knowledge, [])
        planner.available = False

        with pytest.raises(ServiceUnavailableError):
            planner.get_problem()


class TestMotionService:
    """Test point-robot navigation server"""

    def test_moves_and_succeeds(self):
        feed = PoseFeed()
        motion = SimulatedMotionService(feed, start_pose=Pose.from_xy(0, 0), speed=1.0)
        remaining = []

        goal = motion.submit_goal(Pose.from_xy(2.0, 0.0), remaining.append)
        motion.step(1.0)
        motion.step(1.0)

        assert remaining == [1.0, 0.0]
        assert goal.status == GoalStatus.SUCCEEDED
        assert feed.latest().position.x == 2.0

    def test_new_goal_cancels_previous(self):
        motion = SimulatedMotionService(PoseFeed())
        first = motion.submit_goal(Pose.from_xy(5, 0), None)
        motion.submit_goal(Pose.from_xy(0, 5), None)

        assert first.status == GoalStatus.CANCELED

    def test_reject(self):
        motion = SimulatedMotionService(PoseFeed())
        motion.reject_goals = True

        assert motion.submit_goal(Pose.from_xy(1, 1), None).status == GoalStatus.REJECTED

    def test_server_down(self):
        motion = SimulatedMotionService(PoseFeed())
        motion.set_server_available(False)

        assert motion.wait_for_server(0.01) is False
        with pytest.raises(ServiceUnavailableError):
            motion.submit_goal(Pose.from_xy(1, 1), None)

        motion.set_server_available(True)
        assert motion.wait_for_server(0.01) is True

    def test_abort(self):
        motion = SimulatedMotionService(PoseFeed())
        goal = motion.submit_goal(Pose.from_xy(5, 0), None)

        motion.abort_active_goal()

        assert goal.status == GoalStatus.ABORTED
        assert motion.active_goal is None


class TestExecutionEngine:
    """Test sequential plan execution"""

    @pytest.fixture
    def engine(self, knowledge, action_config):
        motion = SimulatedMotionService(PoseFeed(), start_pose=Pose.from_xy(2.0, 2.0), speed=10.0)
        knowledge.add_predicate("(robot_at r2d2 wp_control)")
        context = ActionContext(motion=motion, waypoints=WaypointTable.default(),
                                pose_feed=motion.pose_feed, config=action_config)
        engine = SimulatedExecutionEngine(knowledge, context)
        engine.motion = motion
        yield engine
        engine.stop()

    def run(self, engine, steps=50):
        for _ in range(steps):
            if not engine.is_executing():
                break
            engine.motion.step(0.1)
            engine.step()

    def test_runs_plan_and_applies_effects(self, engine, knowledge):
        plan = Plan.from_actions(["(move r2d2 wp_control wp1)", "(move r2d2 wp1 wp2)"])

        assert engine.start_plan_execution(plan)
        self.run(engine)

        assert engine.get_result().success
        assert [fb.status for fb in engine.get_feedback()] == [ActionStatus.SUCCEEDED] * 2
        assert knowledge.has_fact("(robot_at r2d2 wp2)")
        assert knowledge.has_fact("(patrolled wp1)")
        assert not knowledge.has_fact("(robot_at r2d2 wp_control)")

    def test_refuses_second_plan(self, engine):
        plan = Plan.from_actions(["(move r2d2 wp_control wp1)"])
        assert engine.start_plan_execution(plan)
        assert not engine.start_plan_execution(plan)

    def test_unknown_action_refused(self, engine):
        assert not engine.start_plan_execution(Plan.from_actions(["(dock r2d2)"]))

    def test_empty_plan_succeeds(self, engine):
        assert engine.start_plan_execution(Plan())
        assert not engine.is_executing()
        assert engine.get_result().success

    def test_failure_stops_plan(self, engine, knowledge):
        plan = Plan.from_actions(["(move r2d2 wp_control wp9)", "(move r2d2 wp9 wp2)"])

        engine.start_plan_execution(plan)
        self.run(engine)

        result = engine.get_result()
        feedback = engine.get_feedback()
        assert not result.success
        assert "Unknown waypoint 'wp9'" in result.message
        assert feedback[0].status == ActionStatus.FAILED
        assert feedback[1].status == ActionStatus.NOT_EXECUTED
        assert knowledge.has_fact("(robot_at r2d2 wp_control)")

    def test_cancel(self, engine):
        engine.start_plan_execution(Plan.from_actions(["(move r2d2 wp_control wp1)"]))
        engine.step()

        engine.cancel_plan()

        assert not engine.is_executing()
        assert not engine.get_result().success
        assert engine.get_feedback()[0].status == ActionStatus.CANCELLED


class TestPatrolWorld:
    """End-to-end patrol against the simulated robot"""

    def test_selector_one_cycle(self, world):
        world.selector_feed.publish(1)

        assert world.run_until(lambda: world.controller.cycle_complete, max_steps=2000)

        wp2 = world.waypoints.pose_of("wp2")
        assert planar_distance(world.motion.pose, wp2) < 0.3
        assert not world.knowledge.has_fact("(robot_at r2d2 wp2)")
        assert world.knowledge.get_goal() == "(and (robot_at r2d2 wp2))"
        assert world.controller.state == MissionState.GO_BACK

    def test_stay_at_wp4(self, world):
        """Selector 3 needs an empty plan from the patrol's end"""
        world.selector_feed.publish(3)

        assert world.run_until(lambda: world.controller.cycle_complete, max_steps=2000)
        assert not world.knowledge.has_fact("(robot_at r2d2 wp4)")

    def test_rejected_move_is_replanned(self, world):
        world.selector_feed.publish(0)
        world.motion.reject_goals = True

        assert world.run_until(lambda: world.controller.get_status()['counters']['replans'] >= 1,
                               max_steps=200)
        world.motion.reject_goals = False

        assert world.run_until(lambda: world.controller.cycle_complete, max_steps=2000)

    def test_server_down_fails_move(self, world):
        world.motion.set_server_available(False)

        assert world.run_until(lambda: world.controller.get_status()['result'] is not None,
                               max_steps=50)

        result = world.controller.get_status()['result']
        assert not result['success']
        assert "Navigation server unavailable after 2 attempts" in result['message']
        assert world.controller.state == MissionState.PATROL_FINISHED

    def test_server_wait_does_not_block_controller(self, fast_config):
        fast_config.action.server_wait_timeout_s = 0.5
        fast_config.action.server_max_attempts = 4
        world = build_world(fast_config)
        world.controller.step()
        assert world.engine.is_executing()

        world.motion.set_server_available(False)
        ticking = threading.Thread(target=world.engine.step, daemon=True)
        ticking.start()
        time.sleep(0.1)

        start = time.monotonic()
        world.controller.step()
        status = world.engine.get_status()
        elapsed = time.monotonic() - start

        assert ticking.is_alive()
        assert elapsed < 0.5
        assert status['executing']

        ticking.join(timeout=5.0)
        assert not ticking.is_alive()
        result = world.engine.get_result()
        assert not result.success
        assert "unavailable after 4 attempts" in result.message

    def test_threaded_run(self, fast_config):
        fast_config.simulation.robot_speed_ms = 20.0
        fast_config.simulation.engine_rate_hz = 50.0
        fast_config.mission.rate_hz = 20.0
        world = build_world(fast_config)
        world.selector_feed.publish(2)

        world.start()
        try:
            deadline = time.time() + 20.0
            while time.time() < deadline and not world.controller.cycle_complete:
                time.sleep(0.05)
        finally:
            world.stop()

        assert world.controller.cycle_complete
        assert planar_distance(world.motion.pose, world.waypoints.pose_of("wp3")) < 0.3
