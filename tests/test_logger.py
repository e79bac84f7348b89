# tests/test_logger.py
import logging
from app.utils.logger import ComponentAdapter, get_logger


class TestComponentLogger:
    def test_plain_logger_without_component(self):
        assert isinstance(get_logger("tests.plain"), logging.Logger)

    def test_component_prefix_and_field(self, caplog):
        logger = get_logger("tests.component", "schedule")
        assert isinstance(logger, ComponentAdapter)
        with caplog.at_level(logging.INFO):
            logger.info("12 started (zone=3)")
        record = caplog.records[-1]
        assert record.getMessage() == "[SCHEDULE] 12 started (zone=3)"
        assert record.component == "SCHEDULE"
