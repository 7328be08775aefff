"""
HTTP Client for Patrol Nav CLI

Communicates with patrol-nav-server via REST API.
"""

from typing import Any, Dict, Optional

import requests


class ServerError(Exception):
    """Error from server response"""
    pass


class ConnectionError(Exception):
    """Server connection error"""
    pass


class PatrolClient:
    """HTTP client for patrol-nav-server"""

    def __init__(self, base_url: str = "http://localhost:8080", timeout: float = 10.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def is_server_running(self) -> bool:
        """Check if server is accessible"""
        try:
            r = requests.get(f"{self.base_url}/api/health", timeout=2)
            return r.status_code == 200
        except requests.exceptions.RequestException:
            return False

    def _request(self, method: str, endpoint: str, json_data: Optional[Dict] = None) -> Dict[str, Any]:
        try:
            r = requests.request(
                method,
                f"{self.base_url}{endpoint}",
                json=json_data,
                timeout=self.timeout
            )
        except requests.exceptions.ConnectionError:
            raise ConnectionError("Cannot connect to server")
        except requests.exceptions.Timeout:
            raise ConnectionError("Request timeout")

        try:
            data = r.json()
        except ValueError:
            raise ServerError(f"HTTP {r.status_code}: invalid response")

        if r.status_code >= 400:
            raise ServerError(data.get('error', f'HTTP {r.status_code}'))
        return data

    def _get(self, endpoint: str) -> Dict[str, Any]:
        """Make GET request"""
        return self._request('GET', endpoint)

    def _post(self, endpoint: str, json_data: Optional[Dict] = None) -> Dict[str, Any]:
        """Make POST request"""
        return self._request('POST', endpoint, json_data)

    # ==================== Status ====================

    def get_status(self) -> Dict[str, Any]:
        """Get mission, execution and pose status"""
        return self._get("/api/status")

    def get_health(self) -> Dict[str, Any]:
        """Get health check"""
        return self._get("/api/health")

    def get_waypoints(self) -> Dict[str, Any]:
        """Get waypoint table"""
        return self._get("/api/waypoints")

    # ==================== Inputs ====================

    def set_selector(self, value: int) -> Dict[str, Any]:
        """Publish a selector value"""
        return self._post("/api/selector", json_data={'value': value})

    def set_pose(self, x: float, y: float, yaw: float = 0.0) -> Dict[str, Any]:
        """Move the simulated robot"""
        return self._post("/api/pose", json_data={'x': x, 'y': y, 'yaw': yaw})

    def set_pose_at(self, waypoint_id: str) -> Dict[str, Any]:
        """Move the simulated robot onto a waypoint"""
        return self._post("/api/pose", json_data={'waypoint': waypoint_id})

    # ==================== Mission ====================

    def cancel_plan(self) -> Dict[str, Any]:
        """Cancel the running plan"""
        return self._post("/api/mission/cancel")
