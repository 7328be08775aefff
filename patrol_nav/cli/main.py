#!/usr/bin/env python3
"""
Patrol Nav CLI

Command-line client for patrol-nav-server.
"""

import argparse
import sys

from .client import PatrolClient, ServerError, ConnectionError


# ANSI colors
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'


def color(text: str, c: str) -> str:
    """Apply color to text"""
    return f"{c}{text}{Colors.RESET}"


def print_error(msg: str):
    """Print error message"""
    print(color(f"Error: {msg}", Colors.RED))


def print_success(msg: str):
    """Print success message"""
    print(color(msg, Colors.GREEN))


STATUS_COLORS = {
    'SUCCEEDED': Colors.GREEN,
    'EXECUTING': Colors.YELLOW,
    'FAILED': Colors.RED,
    'CANCELLED': Colors.RED,
}


# ==================== Commands ====================

def cmd_status(client: PatrolClient, args) -> int:
    """Show mission status"""
    try:
        status = client.get_status()
    except (ServerError, ConnectionError) as e:
        print_error(str(e))
        return 1

    mission = status.get('mission', {})

    print()
    print(color("=== Patrol Status ===", Colors.BOLD))
    print(f"State: {color(mission.get('state', 'UNKNOWN'), Colors.YELLOW)}")
    print(f"Goal: {mission.get('goal') or '-'}")
    print(f"Selector: {status.get('selector')}")
    print(f"Destination: {mission.get('destination') or '-'}")
    if mission.get('cycle_complete'):
        print_success("Patrol cycle complete")

    pose = status.get('pose')
    if pose:
        print()
        print(color("--- Pose ---", Colors.CYAN))
        print(f"  X: {pose['x']:.2f} m")
        print(f"  Y: {pose['y']:.2f} m")

    feedback = mission.get('feedback') or []
    if feedback:
        print()
        print(color("--- Plan ---", Colors.CYAN))
        for fb in feedback:
            state = fb['status']
            print(f"  {fb['action']:<32} {fb['completion'] * 100:5.1f}%  "
                  f"{color(state, STATUS_COLORS.get(state, Colors.RESET))}  {fb['message']}")

    counters = mission.get('counters', {})
    if counters:
        print()
        print(color("--- Counters ---", Colors.CYAN))
        for name, value in counters.items():
            print(f"  {name}: {value}")

    print()
    return 0


def cmd_selector(client: PatrolClient, args) -> int:
    """Publish a selector value"""
    try:
        result = client.set_selector(args.value)
        print_success(f"Selector set to {result['selector']}")
        return 0
    except (ServerError, ConnectionError) as e:
        print_error(str(e))
        return 1


def cmd_pose(client: PatrolClient, args) -> int:
    """Move the simulated robot"""
    try:
        if args.waypoint:
            result = client.set_pose_at(args.waypoint)
        else:
            if args.x is None or args.y is None:
                print_error("Give X and Y, or --waypoint")
                return 1
            result = client.set_pose(args.x, args.y, args.yaw)
        pose = result['pose']
        print_success(f"Pose set to ({pose['x']:.2f}, {pose['y']:.2f})")
        return 0
    except (ServerError, ConnectionError) as e:
        print_error(str(e))
        return 1


def cmd_cancel(client: PatrolClient, args) -> int:
    """Cancel the running plan"""
    try:
        result = client.cancel_plan()
        print_success(result.get('message', 'Plan canceled'))
        return 0
    except (ServerError, ConnectionError) as e:
        print_error(str(e))
        return 1


def cmd_serve(client: PatrolClient, args) -> int:
    """Start server in foreground"""
    print("Starting server...")
    server_argv = []
    if args.config:
        server_argv += ['--config', args.config]
    if args.verbose:
        server_argv.append('--verbose')

    try:
        from ..server.main import main as server_main
        server_main(server_argv)
    except KeyboardInterrupt:
        print("\nServer stopped")
    return 0


# ==================== Main ====================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='patrol-nav',
        description='Patrol Nav CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  patrol-nav status              Show mission status
  patrol-nav selector 1          Choose wp2 as follow-up destination
  patrol-nav pose 6.0 2.0        Move the simulated robot
  patrol-nav pose --waypoint wp1 Move the simulated robot onto wp1
  patrol-nav cancel              Cancel the running plan
  patrol-nav serve               Start server (dev mode)
"""
    )

    parser.add_argument(
        '--url',
        default='http://localhost:8080',
        help='Server URL (default: http://localhost:8080)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    # status
    subparsers.add_parser('status', help='Show mission status')

    # selector
    p = subparsers.add_parser('selector', help='Publish a selector value')
    p.add_argument('value', type=int, help='Selector value (0-3 by default)')

    # pose
    p = subparsers.add_parser('pose', help='Set the simulated robot pose')
    p.add_argument('x', type=float, nargs='?', help='X (m)')
    p.add_argument('y', type=float, nargs='?', help='Y (m)')
    p.add_argument('--yaw', type=float, default=0.0, help='Heading (rad)')
    p.add_argument('--waypoint', help='Place the robot on this waypoint')

    # cancel
    subparsers.add_parser('cancel', help='Cancel the running plan')

    # serve
    p = subparsers.add_parser('serve', help='Start server in foreground (dev mode)')
    p.add_argument('-c', '--config', default=None, help='Configuration file (YAML)')
    p.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(argv=None):
    """Main entry point for patrol-nav CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # No command - show help
    if not args.command:
        parser.print_help()
        return 0

    client = PatrolClient(args.url)

    # Commands that don't need server
    if args.command == 'serve':
        return cmd_serve(client, args)

    if not client.is_server_running():
        print_error(f"Server is not running at {args.url}. Try 'patrol-nav serve'.")
        return 1

    commands = {
        'status': cmd_status,
        'selector': cmd_selector,
        'pose': cmd_pose,
        'cancel': cmd_cancel,
    }

    return commands[args.command](client, args)


if __name__ == '__main__':
    sys.exit(main())
