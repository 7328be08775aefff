"""
REST API for Patrol Nav Server

Provides HTTP endpoints for mission monitoring, selector and pose input.
"""

import threading
import logging
from typing import TYPE_CHECKING, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from ..navigation.waypoints import MissingWaypointError
from ..services.models import ServiceUnavailableError
from ..utils.geometry import Pose

if TYPE_CHECKING:
    from simulation.world import SimulatedWorld

logger = logging.getLogger(__name__)


def create_api_server(world: 'SimulatedWorld',
                      port: int = 8080,
                      host: str = '0.0.0.0') -> 'APIServer':
    """
    Create and start REST API server

    Args:
        world: Running patrol world (controller, feeds, services)
        port: HTTP port
        host: Host address

    Returns:
        Started APIServer
    """
    server = APIServer(world, port, host)
    server.start()
    return server


class APIServer:
    """REST API Server"""

    def __init__(self, world: 'SimulatedWorld', port: int = 8080, host: str = '0.0.0.0'):
        self.world = world
        self.port = port
        self.host = host

        self.app = Flask(__name__)
        CORS(self.app)

        self._thread: Optional[threading.Thread] = None
        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes"""

        # ==================== Health ====================

        @self.app.route('/api/health', methods=['GET'])
        def health():
            """Health check endpoint"""
            return jsonify({
                'status': 'ok',
                'state': self.world.controller.state.name,
                'running': self.world.is_running,
            })

        # ==================== Status ====================

        @self.app.route('/api/status', methods=['GET'])
        def get_status():
            """Mission, execution, pose and selector snapshot"""
            try:
                return jsonify(self.world.get_status())
            except ServiceUnavailableError as e:
                return jsonify({'error': str(e)}), 503

        # ==================== Inputs ====================

        @self.app.route('/api/selector', methods=['POST'])
        def post_selector():
            """
            Publish a selector value

            Request body: {"value": int}
            """
            data = request.get_json(silent=True)
            if not data or 'value' not in data:
                return jsonify({'error': 'Missing selector value'}), 400

            try:
                value = int(data['value'])
            except (TypeError, ValueError):
                return jsonify({'error': f"Invalid selector value: {data['value']!r}"}), 400

            self.world.selector_feed.publish(value)
            return jsonify({'success': True, 'selector': value})

        @self.app.route('/api/pose', methods=['POST'])
        def post_pose():
            """
            Set the robot pose

            Request body: {"x", "y", "z"?, "qx"?, "qy"?, "qz"?, "qw"?} or
            {"waypoint": id}
            """
            data = request.get_json(silent=True)
            if not data:
                return jsonify({'error': 'No data provided'}), 400

            try:
                if 'waypoint' in data:
                    pose = self.world.waypoints.pose_of(str(data['waypoint']))
                elif 'x' in data and 'y' in data:
                    pose = Pose.from_dict(data)
                else:
                    return jsonify({'error': 'Pose needs x and y'}), 400
            except MissingWaypointError as e:
                return jsonify({'error': str(e)}), 404
            except (KeyError, TypeError, ValueError) as e:
                return jsonify({'error': f'Invalid pose: {e}'}), 400

            self.world.motion.teleport(pose)
            return jsonify({'success': True, 'pose': pose.to_dict()})

        # ==================== Mission ====================

        @self.app.route('/api/mission/cancel', methods=['POST'])
        def cancel_mission():
            """Cancel the running plan (the controller replans)"""
            if not self.world.engine.is_executing():
                return jsonify({'error': 'No plan executing'}), 409

            self.world.controller.cancel()
            return jsonify({'success': True, 'message': 'Plan canceled'})

        @self.app.route('/api/waypoints', methods=['GET'])
        def get_waypoints():
            """Waypoint table"""
            return jsonify(self.world.waypoints.to_dict())

    def start(self):
        """Start API server in background thread"""
        self._thread = threading.Thread(
            target=lambda: self.app.run(
                host=self.host,
                port=self.port,
                debug=False,
                use_reloader=False
            ),
            daemon=True
        )
        self._thread.start()
        logger.info(f"REST API started on http://{self.host}:{self.port}")
