"""
Tests for configuration and structured logging
"""

import io
import json
import logging
import pytest

from gesture_transfer import config as config_module
from gesture_transfer.config import GestureTransferConfig, get_config, reload_config
from gesture_transfer.logging_config import JSONFormatter, setup_logging, log_action


class TestConfig:
    """Test environment-driven settings"""

    def test_defaults(self):
        """Test default values"""
        settings = GestureTransferConfig()
        assert settings.session_ttl_hours == 24
        assert settings.login_delay_seconds == 1.0
        assert settings.allowed_email_domain == "@gmail.com"
        assert settings.rates_timeout == 10.0
        assert settings.face_model == "short"
        assert settings.hands_max_num_hands == 2
        assert settings.camera_width == 640 and settings.camera_height == 480
        assert settings.camera_device == "0"

    def test_environment_override(self, monkeypatch):
        """Test GESTURE_TRANSFER_* variables override defaults"""
        monkeypatch.setenv("GESTURE_TRANSFER_SESSION_TTL_HOURS", "12")
        monkeypatch.setenv("GESTURE_TRANSFER_STORAGE_BACKEND", "sqlite")
        settings = GestureTransferConfig()
        assert settings.session_ttl_hours == 12
        assert settings.storage_backend == "sqlite"

    def test_reload_config(self, monkeypatch):
        """Test reload picks up the environment and replaces the global"""
        original = get_config()
        monkeypatch.setenv("GESTURE_TRANSFER_DEFAULT_LANGUAGE", "id")
        try:
            reloaded = reload_config()
            assert reloaded.default_language == "id"
            assert get_config() is reloaded
        finally:
            config_module.config = original


class TestLogging:
    """Test JSON log output"""

    def setup_method(self):
        """Set up test fixtures"""
        self.stream = io.StringIO()
        self.logger = logging.getLogger("gesture_transfer.tests")
        self.logger.handlers = []
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(JSONFormatter())
        self.logger.addHandler(handler)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

    def _entries(self):
        return [json.loads(line) for line in self.stream.getvalue().splitlines()]

    def test_log_action_fields(self):
        """Test structured fields appear in the JSON entry"""
        log_action(self.logger, "info", "User logged in",
                   user_id="user@gmail.com", action="login", resource="session",
                   extra={"attempt": 1})

        entry = self._entries()[0]
        assert entry["level"] == "INFO"
        assert entry["message"] == "User logged in"
        assert entry["user_id"] == "user@gmail.com"
        assert entry["action"] == "login"
        assert entry["resource"] == "session"
        assert entry["extra"] == {"attempt": 1}
        assert "timestamp" in entry

    def test_log_action_respects_level(self):
        """Test disabled levels produce nothing"""
        log_action(self.logger, "debug", "noise")
        assert self.stream.getvalue() == ""

    def test_exception_info(self):
        """Test exceptions are serialized"""
        try:
            raise ValueError("bad rate")
        except ValueError:
            self.logger.error("Conversion failed", exc_info=True)

        entry = self._entries()[0]
        assert "ValueError: bad rate" in entry["exception"]

    def test_setup_logging_text_format(self, tmp_path):
        """Test plain text output to a file"""
        log_file = tmp_path / "app.log"
        logger = setup_logging("DEBUG", logger_name="gesture_transfer.textlog",
                               log_format="text", log_file=str(log_file))
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert "INFO [gesture_transfer.textlog] hello" in log_file.read_text()
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
