import io
import logging

from chatrelay.logging import bind_request_id, get_logger, resolve_level, setup_logging


class TestResolveLevel:

    def test_configured_level(self):
        assert resolve_level("warning") == logging.WARNING
        assert resolve_level("bogus") == logging.INFO

    def test_flags(self):
        assert resolve_level("ERROR", verbose=1) == logging.INFO
        assert resolve_level("ERROR", verbose=2) == logging.DEBUG
        assert resolve_level("ERROR", verbose=5) == logging.DEBUG
        assert resolve_level("DEBUG", quiet=True) == logging.ERROR


class TestSetupLogging:

    def test_single_handler(self):
        setup_logging("INFO")
        logger = setup_logging("INFO")
        assert len(logger.handlers) == 1

    def test_records_carry_request_id(self):
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)
        bind_request_id("abc-123")
        get_logger("handler").info("relayed")
        get_logger("handler").debug("hidden")
        bind_request_id(None)
        get_logger("handler").info("idle")
        assert stream.getvalue() == "INFO abc-123 relayed\nINFO - idle\n"

    def test_debug_format_includes_logger_name(self):
        stream = io.StringIO()
        setup_logging("DEBUG", stream=stream)
        bind_request_id("r1")
        get_logger("adapters.gemini").debug("body built")
        bind_request_id(None)
        assert "DEBUG r1 chatrelay.adapters.gemini: body built" in stream.getvalue()

    def test_names(self):
        assert get_logger().name == "chatrelay"
        assert get_logger("adapters.gemini").name == "chatrelay.adapters.gemini"
