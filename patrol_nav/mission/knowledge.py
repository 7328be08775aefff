"""
Patrol knowledge

Fact and goal expressions for the patrol domain, and the initial
knowledge seed.
"""

import logging
from typing import Iterable, List

from ..config import MissionConfig
from ..services.protocols import KnowledgeStore

logger = logging.getLogger(__name__)

ROBOT_TYPE = "robot"
WAYPOINT_TYPE = "waypoint"


def robot_at(robot: str, waypoint: str) -> str:
    return f"(robot_at {robot} {waypoint})"


def patrolled(waypoint: str) -> str:
    return f"(patrolled {waypoint})"


def connected(source: str, destination: str) -> str:
    return f"(connected {source} {destination})"


def conjunction(facts: Iterable[str]) -> str:
    """ "(and (a) (b) ...)" """
    return "(and " + " ".join(facts) + ")"


def patrol_goal(config: MissionConfig) -> str:
    """Robot ends at the final waypoint and every patrol waypoint is patrolled"""
    facts = [robot_at(config.robot, config.final_waypoint)]
    facts.extend(patrolled(wp) for wp in config.patrol_waypoints)
    return conjunction(facts)


def destination_goal(config: MissionConfig, waypoint: str) -> str:
    """Robot at a single destination"""
    return conjunction([robot_at(config.robot, waypoint)])


def mission_waypoints(config: MissionConfig) -> List[str]:
    """Home plus patrol waypoints, without duplicates, in declaration order"""
    waypoints: List[str] = []
    for wp in [config.home] + list(config.patrol_waypoints):
        if wp not in waypoints:
            waypoints.append(wp)
    return waypoints


def seed_knowledge(store: KnowledgeStore, config: MissionConfig):
    """
    Populate the store with the patrol problem

    Adds the robot, the waypoints, the initial robot position and the
    directed connectivity between waypoints.
    """
    store.add_instance(config.robot, ROBOT_TYPE)
    for wp in mission_waypoints(config):
        store.add_instance(wp, WAYPOINT_TYPE)

    store.add_predicate(robot_at(config.robot, config.home))
    for source, destination in config.connections:
        store.add_predicate(connected(source, destination))

    logger.info(
        f"Knowledge seeded: robot {config.robot} at {config.home}, "
        f"{len(config.connections)} connections"
    )
