"""
Logging configuration
"""

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..services.models import ActionFeedback


def setup_logging(level: int = logging.INFO,
                  log_file: Optional[str] = None,
                  log_format: Optional[str] = None):
    """
    Setup logging configuration

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file
        log_format: Optional custom format string
    """
    if log_format is None:
        log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # Create formatter
    formatter = logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S")

    # Get root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (if specified)
    if log_file:
        # Create log directory if needed
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Reduce verbosity of some libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


class FeedbackRecorder:
    """
    Plan feedback recorder for post-run analysis.

    Writes one CSV row per action per controller tick:
    mission state, action expression, completion, status and message.
    """

    COLUMNS = [
        "time_s", "tick", "mission_state",
        "action", "completion", "status", "message",
    ]

    def __init__(self, path: str):
        """
        Initialize recorder.

        Args:
            path: CSV file to write (parent directories are created)
        """
        self.path = Path(path).expanduser()
        self._file = None
        self._start_time: float = 0.0
        self._tick_count: int = 0
        self._row_count: int = 0

    @property
    def is_recording(self) -> bool:
        """Check if currently recording."""
        return self._file is not None

    def start(self) -> Path:
        """
        Open the CSV file and write the header.

        Returns:
            Path to the CSV file
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, 'w', buffering=1)  # Line buffering
        self._start_time = time.time()
        self._tick_count = 0
        self._row_count = 0

        self._file.write("# Patrol Nav Feedback Log\n")
        self._file.write(f"# Started: {datetime.now().isoformat()}\n")
        self._file.write(",".join(self.COLUMNS) + "\n")

        logging.getLogger(__name__).info(f"Feedback log started: {self.path}")
        return self.path

    def record(self, mission_state: str, feedback: List['ActionFeedback']):
        """Log the feedback of one controller tick."""
        if self._file is None:
            return

        elapsed = time.time() - self._start_time
        self._tick_count += 1

        for fb in feedback:
            values = [
                f"{elapsed:.3f}",
                str(self._tick_count),
                mission_state,
                _csv_field(fb.action),
                f"{fb.completion:.4f}",
                fb.status.name,
                _csv_field(fb.message),
            ]
            self._file.write(",".join(values) + "\n")
            self._row_count += 1

    def stop(self):
        """Stop recording and close file."""
        if self._file:
            self._file.write(f"# Ended: {datetime.now().isoformat()}\n")
            self._file.write(f"# Ticks: {self._tick_count}, rows: {self._row_count}\n")
            self._file.close()
            self._file = None
            logging.getLogger(__name__).info(f"Feedback log stopped: {self._row_count} rows")


def _csv_field(text: str) -> str:
    """Quote a free-text field"""
    return '"' + text.replace('"', '""') + '"'
