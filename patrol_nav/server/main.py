#!/usr/bin/env python3
"""
Patrol Nav Server - Entry Point

Daemon service that runs the patrol mission against the simulated
robot and exposes the REST API.
"""

import argparse
import signal
import sys
import time
import logging

from ..config import Config, set_config
from ..utils.logger import FeedbackRecorder, setup_logging

# Global world instance for signal handling
_world = None


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully"""
    global _world

    logging.info(f"Received signal {signum}, shutting down...")

    if _world:
        if _world.engine.is_executing():
            logging.warning("Canceling running plan...")
            _world.controller.cancel()
        _world.stop()

    sys.exit(0)


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Patrol Nav Server",
        prog="patrol-nav-server"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file (YAML)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="REST API port (default: from config, 8080)"
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="REST API host (default: from config, 0.0.0.0)"
    )

    parser.add_argument(
        "--waypoints",
        type=str,
        default=None,
        help="Waypoint table file (YAML)"
    )

    parser.add_argument(
        "--scenario",
        type=str,
        default=None,
        help="Scripted plans file for the simulated planner (YAML)"
    )

    parser.add_argument(
        "--record",
        type=str,
        default=None,
        help="Write plan feedback to this CSV file"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path"
    )

    parser.add_argument(
        "--no-api",
        action="store_true",
        help="Run the mission without the REST API"
    )

    return parser.parse_args(argv)


def apply_args(config: Config, args) -> Config:
    """Command line overrides on top of file and environment"""
    if args.port is not None:
        config.interface.rest_port = args.port
    if args.host is not None:
        config.interface.rest_host = args.host
    if args.waypoints:
        config.waypoints.file = args.waypoints
    if args.scenario:
        config.simulation.scenario = args.scenario
    if args.record:
        config.interface.record_file = args.record
    if args.log_file:
        config.interface.log_file = args.log_file
    if args.verbose:
        config.interface.log_level = "DEBUG"
    if args.no_api:
        config.interface.rest_enabled = False
    return config


def main(argv=None):
    """Main entry point for patrol-nav-server"""
    global _world

    args = parse_args(argv)

    # Load configuration
    try:
        config = apply_args(Config.load(args.config), args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    # Setup logging
    log_level = getattr(logging, config.interface.log_level.upper(), logging.INFO)
    setup_logging(level=log_level, log_file=config.interface.log_file or None)

    logger = logging.getLogger(__name__)
    logger.info("Patrol Nav Server starting...")

    set_config(config)

    # Setup signal handlers
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    recorder = None
    if config.interface.record_file:
        recorder = FeedbackRecorder(config.interface.record_file)

    from simulation.world import build_world
    try:
        _world = build_world(config, recorder=recorder)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to build world: {e}")
        sys.exit(1)

    # Start REST API
    if config.interface.rest_enabled:
        from .api import create_api_server
        create_api_server(
            _world,
            port=config.interface.rest_port,
            host=config.interface.rest_host
        )
        logger.info(f"REST API listening on http://{config.interface.rest_host}:{config.interface.rest_port}")

    # Start mission
    _world.start()

    logger.info("Server running. Press Ctrl+C to stop.")

    # Main loop - keep alive
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down...")
        _world.stop()


if __name__ == "__main__":
    main()
