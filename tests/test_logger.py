"""
Tests for logging setup and the feedback recorder
"""

import logging

from patrol_nav.mission import MissionController
from patrol_nav.services.models import ActionFeedback, ActionStatus
from patrol_nav.utils.logger import FeedbackRecorder, setup_logging


def data_rows(path):
    return [line for line in path.read_text().splitlines() if line and not line.startswith('#')]


class TestFeedbackRecorder:
    """Test CSV feedback log"""

    def test_records_rows(self, tmp_path):
        path = tmp_path / "logs" / "feedback.csv"
        recorder = FeedbackRecorder(str(path))

        recorder.start()
        recorder.record("PATROL_FINISHED", [
            ActionFeedback("(move r2d2 wp_control wp1)", 1.0, ActionStatus.SUCCEEDED, "Move completed"),
            ActionFeedback("(move r2d2 wp1 wp2)", 0.25, ActionStatus.EXECUTING, 'say "hi"'),
        ])
        recorder.stop()

        rows = data_rows(path)
        assert rows[0] == ",".join(FeedbackRecorder.COLUMNS)
        assert len(rows) == 3
        assert rows[1].split(",")[1:4] == ["1", "PATROL_FINISHED", '"(move r2d2 wp_control wp1)"']
        assert rows[2].endswith('"say ""hi"""')
        assert not recorder.is_recording

    def test_record_before_start_is_ignored(self, tmp_path):
        recorder = FeedbackRecorder(str(tmp_path / "fb.csv"))
        recorder.record("STARTING", [ActionFeedback("(move r2d2 wp1 wp2)")])
        assert not (tmp_path / "fb.csv").exists()

    def test_controller_feeds_recorder(self, tmp_path, fake_planner, knowledge, fake_engine, selector_feed):
        recorder = FeedbackRecorder(str(tmp_path / "fb.csv"))
        recorder.start()
        controller = MissionController(fake_planner, knowledge, fake_engine, selector_feed,
                                       recorder=recorder)

        controller.step()
        fake_engine.feedback = [ActionFeedback("(move r2d2 wp_control wp1)", 0.5, ActionStatus.EXECUTING)]
        controller.step()
        recorder.stop()

        rows = data_rows(tmp_path / "fb.csv")
        assert len(rows) == 2
        assert "PATROL_FINISHED" in rows[1]


def test_setup_logging_file(tmp_path):
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    log_file = tmp_path / "logs" / "patrol.log"

    try:
        setup_logging(level=logging.DEBUG, log_file=str(log_file))
        logging.getLogger("patrol_nav.test").info("hello patrol")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert "hello patrol" in log_file.read_text()
    finally:
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
