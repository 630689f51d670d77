"""Tests for structured logging helpers."""

import json
import logging
from contextlib import contextmanager

from impulse_analysis.utils.config import get_default_config
from impulse_analysis.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    create_logger_with_context,
    setup_logging,
    setup_logging_from_config,
)


@contextmanager
def isolated_root_logger():
    """Let setup_logging replace root handlers, then put the originals back."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    try:
        yield root
    finally:
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers = handlers
        root.setLevel(level)


def _record(msg="hello", level=logging.INFO, **attrs):
    record = logging.LogRecord("analyzer.test", level, __file__, 10, msg, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "analyzer.test"
        assert payload["message"] == "hello"
        assert "extra" not in payload

    def test_structured_extra(self):
        record = _record(extra={"density": 2.5, "type": "Delay"})
        payload = json.loads(JSONFormatter().format(record))
        assert payload["extra"] == {"density": 2.5, "type": "Delay"}


class TestColoredFormatter:
    def test_level_name_restored(self):
        record = _record(level=logging.WARNING)
        output = ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert "\033[33m" in output
        assert record.levelname == "WARNING"


class TestSetupLogging:
    def test_json_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "ir.log"
        with isolated_root_logger() as root:
            setup_logging(level="DEBUG", log_file=str(log_file), console_enabled=False)
            logging.getLogger("engine").info(
                "written", extra={"extra": {"source": "a.wav"}}
            )
            for handler in root.handlers:
                handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "written"
        assert payload["extra"] == {"source": "a.wav"}

    def test_text_format_uses_colors(self):
        with isolated_root_logger() as root:
            setup_logging(level="WARNING", log_format="text")
            assert root.level == logging.WARNING
            assert isinstance(root.handlers[0].formatter, ColoredFormatter)

    def test_from_config(self):
        config = get_default_config()
        config["logging"]["level"] = "ERROR"

        with isolated_root_logger() as root:
            setup_logging_from_config(config)
            assert root.level == logging.ERROR
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)


class TestContextLogger:
    def test_context_merged_with_call_extra(self, caplog):
        caplog.set_level(logging.INFO, logger="engine")
        logger = create_logger_with_context("engine", {"source": "hall.wav"})

        logger.info("Analyzing", extra={"extra": {"frames": 169}})

        record = caplog.records[-1]
        assert record.getMessage() == "Analyzing"
        assert record.extra == {"source": "hall.wav", "frames": 169}
