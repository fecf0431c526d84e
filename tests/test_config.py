"""
Tests for Configuration and Logging Utilities
==============================================
"""

import logging

from fingerspell.modules.utils.config import Config, validate_config
from fingerspell.modules.utils.logger import LetterLogger, log_timing, setup_logging


class TestConfig:
    """Test suite for the Config singleton."""

    def test_singleton(self):
        assert Config() is Config()

    def test_loads_default_file(self):
        """Test the bundled config.yaml carries the recognition defaults."""
        config = Config().load()

        assert config.get("recognition.stable_required") == 5
        assert config.get("recognition.nn_threshold") == 0.45
        assert config.rules["fist_a"] == 0.08
        assert config.templates["default_user"] == "guest"

    def test_missing_file_uses_defaults(self, tmp_path):
        config = Config().load(config_path=str(tmp_path / "missing.yaml"))

        assert config.get("recognition.stable_required", 5) == 5
        assert config.recognition == {}

    def test_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("recognition:\n  stable_required: 5\n  nn_threshold: 0.45\n")

        config = Config().load(config_path=str(path),
                               overrides={"recognition": {"stable_required": 2}})

        assert config.get("recognition.stable_required") == 2
        assert config.get("recognition.nn_threshold") == 0.45

    def test_get_missing_key(self):
        config = Config().load()

        assert config.get("recognition.nope") is None
        assert config.get("nope.nothing", "x") == "x"

    def test_validation_warnings(self, tmp_path):
        """Test type mismatches are reported, never fatal."""
        path = tmp_path / "config.yaml"
        path.write_text("recognition:\n  stable_required: five\n")

        config = Config().load(config_path=str(path))
        warnings = config._validate()

        assert any("recognition.stable_required" in w for w in warnings)
        assert any("Missing config section: 'model'" in w for w in warnings)

    def test_int_accepted_for_float(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("recognition:\n  nn_threshold: 1\n")

        warnings = Config().load(config_path=str(path))._validate()

        assert not any("nn_threshold" in w for w in warnings)

    def test_rules_must_be_numeric(self):
        problems = validate_config({"rules": {"fist_a": "tight", "fist_s": 0.12}})

        assert any("rules.fist_a" in p for p in problems)
        assert not any("rules.fist_s" in p for p in problems)

    def test_bool_is_not_a_number(self):
        problems = validate_config({"recognition": {"nn_threshold": True}})

        assert any("recognition.nn_threshold" in p for p in problems)

    def test_reset(self):
        first = Config()
        Config.reset()

        assert Config() is not first


class TestLetterLogger:
    """Test suite for the stable-letter transcript."""

    def test_transcript(self):
        letters = LetterLogger()
        letters.on_letter_stable(letter="H", score=0.0, source="rules")
        letters.on_letter_stable(letter="I", score=0.2, source="templates", extra=1)
        letters.log_letter("?")

        assert letters.transcript == "HI?"
        assert letters.total_letters == 3
        assert letters.get_history(1)[0]["letter"] == "?"
        assert letters.get_history()[0]["source"] == "rules"


class TestLoggingSetup:
    """Test suite for logging helpers."""

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "fingerspell.log"
        previous_level = logging.getLogger().level
        root = setup_logging(level="DEBUG", log_file=str(log_file))
        try:
            logging.getLogger("fingerspell.test").info("hello")
            for handler in root.handlers:
                handler.flush()

            assert root.level == logging.DEBUG
            assert "hello" in log_file.read_text()
        finally:
            for handler in list(root.handlers):
                handler.close()
                root.removeHandler(handler)
            root.setLevel(previous_level)

    def test_log_timing_preserves_result(self):
        @log_timing
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"
