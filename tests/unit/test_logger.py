"""
Unit Tests for the Backend Structured Logger
"""

import logging
import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "backend"))

from lib.logger import ColoredFormatter, StructuredLogger, get_logger


class TestStructuredLogger:
    """Test suite for StructuredLogger."""

    @pytest.fixture
    def structured(self, caplog):
        caplog.set_level(logging.DEBUG, logger="test.structured")
        return StructuredLogger("test.structured")

    def test_section_banner(self, structured, caplog):
        structured.section("server shutdown", {"reason": "signal received"})

        message = caplog.records[-1].getMessage()
        assert "📋 SERVER SHUTDOWN" in message
        assert "reason" in message
        assert "signal received" in message

    def test_request_and_response(self, structured, caplog):
        structured.request("POST", "/api/chat", session_id="s1", data={"message_length": 5})
        structured.response(200, "/api/chat", duration=0.25)

        request_message, response_message = [r.getMessage() for r in caplog.records[-2:]]
        assert "📥 REQUEST: POST /api/chat" in request_message
        assert "s1" in request_message
        assert "📤 RESPONSE: 200 /api/chat" in response_message
        assert "250.00" in response_message

    def test_success_and_error_levels(self, structured, caplog):
        structured.success("Tutor ready")
        structured.error("Cannot start", error=ValueError("missing key"))

        success_record, error_record = caplog.records[-2:]
        assert success_record.levelno == logging.INFO
        assert success_record.getMessage().startswith("✅ Tutor ready")
        assert error_record.levelno == logging.ERROR
        assert "ValueError: missing key" in error_record.getMessage()

    def test_exposes_only_used_helpers(self):
        assert not hasattr(StructuredLogger, "subsection")
        assert not hasattr(StructuredLogger, "end_section")

    def test_get_logger_returns_structured(self):
        logger = get_logger("backend.chat")
        assert isinstance(logger, StructuredLogger)
        assert logger.name == "backend.chat"

    def test_plain_formatter_has_no_color_codes(self):
        formatter = ColoredFormatter(use_colors=False)
        record = logging.LogRecord("backend.chat", logging.INFO, __file__, 1, "hello", None, None)
        assert "\033[" not in formatter.format(record)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
