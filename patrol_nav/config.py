"""
Configuration management for Patrol Nav

All parameters are configurable and can be overridden via:
1. config/default.yaml
2. Environment variables (prefixed with PATROLNAV_)
3. Command line arguments
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from pathlib import Path


@dataclass
class ActionConfig:
    """Move action executor parameters"""

    tick_period_s: float = 0.1          # Host tick period (100ms)
    reach_threshold_m: float = 0.3      # Planar distance counted as arrived

    # Motion server readiness
    server_wait_timeout_s: float = 5.0  # Per attempt
    server_max_attempts: int = 12       # Then fail with ServiceUnavailable

    # Fail the move if no pose arrives for this long (0 = never)
    pose_timeout_s: float = 30.0


@dataclass
class MissionConfig:
    """Patrol mission parameters"""

    rate_hz: float = 5.0                # Controller tick rate

    robot: str = "r2d2"
    home: str = "wp_control"
    patrol_waypoints: List[str] = field(
        default_factory=lambda: ["wp1", "wp2", "wp3", "wp4"])
    final_waypoint: str = "wp4"         # Where the patrol must end

    # Selector value -> follow-up destination
    selector_targets: Dict[int, str] = field(
        default_factory=lambda: {0: "wp1", 1: "wp2", 2: "wp3", 3: "wp4"})

    # Directed connectivity (from, to)
    connections: List[List[str]] = field(default_factory=lambda: [
        ["wp_control", "wp1"],
        ["wp1", "wp2"],
        ["wp2", "wp3"],
        ["wp3", "wp4"],
        ["wp4", "wp1"],
        ["wp4", "wp3"],
        ["wp3", "wp2"],
    ])


@dataclass
class WaypointConfig:
    """Waypoint table source"""

    file: str = ""                      # YAML table, empty = built-in
    frame_id: str = "map"


@dataclass
class InterfaceConfig:
    """Interface configuration"""

    # REST API
    rest_enabled: bool = True
    rest_host: str = "0.0.0.0"
    rest_port: int = 8080

    # Logging
    log_file: str = ""
    log_level: str = "INFO"
    record_file: str = ""               # Plan feedback CSV, empty = off


@dataclass
class SimulationConfig:
    """In-process simulated robot"""

    enabled: bool = True
    scenario: str = ""                  # Scripted plans YAML, empty = built-in
    update_rate_hz: float = 20.0
    robot_speed_ms: float = 0.5
    engine_rate_hz: float = 10.0        # Execution engine tick rate

    # Robot start pose (defaults to the home waypoint)
    start_x: float = 2.0
    start_y: float = 2.0


@dataclass
class Config:
    """Main configuration container"""

    action: ActionConfig = field(default_factory=ActionConfig)
    mission: MissionConfig = field(default_factory=MissionConfig)
    waypoints: WaypointConfig = field(default_factory=WaypointConfig)
    interface: InterfaceConfig = field(default_factory=InterfaceConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    SECTIONS = ('action', 'mission', 'waypoints', 'interface', 'simulation')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from YAML file and environment"""
        config = cls()

        # Load from file if exists
        if config_path is None:
            config_path = Path(__file__).parent.parent / "config" / "default.yaml"

        if Path(config_path).exists():
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config._update_from_dict(yaml_config)

        # Override from environment variables
        config._update_from_env()

        config.validate()
        return config

    def _update_from_dict(self, d: dict):
        """Update config from dictionary (e.g., YAML)"""
        for section_name, section_data in d.items():
            if section_name in self.SECTIONS and isinstance(section_data, dict):
                section = getattr(self, section_name)
                for key, value in section_data.items():
                    if hasattr(section, key):
                        setattr(section, key, value)

        # YAML keys may come back as strings
        self.mission.selector_targets = {
            int(k): str(v) for k, v in self.mission.selector_targets.items()
        }

    def _update_from_env(self):
        """Override config from environment variables"""
        prefix = "PATROLNAV_"
        for key, value in os.environ.items():
            if key.startswith(prefix):
                # Parse PATROLNAV_SECTION_KEY format
                parts = key[len(prefix):].lower().split("_", 1)
                if len(parts) == 2:
                    section_name, param_name = parts
                    if section_name in self.SECTIONS:
                        section = getattr(self, section_name)
                        if hasattr(section, param_name):
                            # Type conversion
                            current_value = getattr(section, param_name)
                            if isinstance(current_value, bool):
                                setattr(section, param_name, value.lower() in ('true', '1', 'yes'))
                            elif isinstance(current_value, int):
                                setattr(section, param_name, int(value))
                            elif isinstance(current_value, float):
                                setattr(section, param_name, float(value))
                            elif isinstance(current_value, list):
                                setattr(section, param_name,
                                        [v.strip() for v in value.split(",") if v.strip()])
                            elif isinstance(current_value, str):
                                setattr(section, param_name, value)

    def validate(self):
        """
        Check value ranges

        Raises:
            ValueError: On the first invalid parameter
        """
        if self.action.tick_period_s <= 0:
            raise ValueError("action.tick_period_s must be positive")
        if self.action.reach_threshold_m <= 0:
            raise ValueError("action.reach_threshold_m must be positive")
        if self.action.server_wait_timeout_s <= 0:
            raise ValueError("action.server_wait_timeout_s must be positive")
        if self.action.server_max_attempts < 1:
            raise ValueError("action.server_max_attempts must be at least 1")
        if self.action.pose_timeout_s < 0:
            raise ValueError("action.pose_timeout_s cannot be negative")
        if self.mission.rate_hz <= 0:
            raise ValueError("mission.rate_hz must be positive")
        if not self.mission.patrol_waypoints:
            raise ValueError("mission.patrol_waypoints cannot be empty")
        for connection in self.mission.connections:
            if len(connection) != 2:
                raise ValueError(f"mission.connections entry must be [from, to]: {connection}")

    def save(self, config_path: str):
        """Save current configuration to YAML file"""
        data = {}
        for section_name in self.SECTIONS:
            section = getattr(self, section_name)
            data[section_name] = {k: v for k, v in section.__dict__.items()}

        with open(config_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config):
    """Set the global configuration instance"""
    global _config
    _config = config
