"""
Application configuration backed by ``config/config.yaml``.

    - One shared :class:`Config` instance (``Config()`` always returns it)
    - Dot-path lookup: ``config.get("recognition.stable_required")``
    - Type checks against a small schema; problems are logged, never fatal
    - ``Config.reset()`` for tests
"""

import os
import yaml
import logging
from numbers import Real

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")
DEFAULT_CONFIG_PATH = os.path.join(_CONFIG_DIR, "config.yaml")

# Expected value type per section field. ``float`` fields accept ints.
_CONFIG_SCHEMA = {
    "recognition": {"stable_required": int, "nn_threshold": float},
    "rules": {},
    "model": {"model_dir": str, "checkpoint": str, "confidence_threshold": float, "device": str},
    "templates": {"storage_dir": str, "default_user": str, "seed_when_missing": bool},
    "training": {"epochs": int, "batch_size": int, "lr": float, "hidden_units": int,
                 "dropout": float},
    "logging": {"level": str},
}

# Sections whose every value must be numeric
_NUMERIC_SECTIONS = ("rules",)


def _deep_merge(base: dict, override: dict) -> dict:
    """Return ``base`` with ``override`` merged in, recursing into dicts."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _type_matches(value, expected) -> bool:
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, Real)
    return isinstance(value, expected)


def validate_config(data: dict) -> list:
    """Check ``data`` against the schema and return human-readable problems."""
    problems = []
    for section_name, fields in _CONFIG_SCHEMA.items():
        section = data.get(section_name)
        if section is None:
            problems.append("Missing config section: '%s'" % section_name)
            continue
        if not isinstance(section, dict):
            problems.append("Section '%s' should be a mapping, got %s"
                            % (section_name, type(section).__name__))
            continue

        for field_name, expected in fields.items():
            if field_name in section and not _type_matches(section[field_name], expected):
                value = section[field_name]
                problems.append("%s.%s: expected %s, got %s (%r)" % (
                    section_name, field_name, expected.__name__, type(value).__name__, value))

        if section_name in _NUMERIC_SECTIONS:
            for field_name, value in section.items():
                if not _type_matches(value, float):
                    problems.append("%s.%s: expected a number, got %r"
                                    % (section_name, field_name, value))
    return problems


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def load(self, config_path=None, overrides=None):
        """Read the YAML file (missing file → empty config), then merge ``overrides``.

        Returns:
            self, so ``Config().load()`` can be chained.
        """
        config_path = config_path or DEFAULT_CONFIG_PATH
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            data = {}

        if not isinstance(data, dict):
            logger.warning("Config root in %s is not a mapping, ignoring it", config_path)
            data = {}
        if overrides:
            data = _deep_merge(data, overrides)

        self._data = data
        self._validate()
        return self

    def _validate(self) -> list:
        problems = validate_config(self._data)
        for problem in problems:
            logger.warning("Config validation: %s", problem)
        if not problems:
            logger.debug("Config validation passed")
        return problems

    def get(self, key_path: str, default=None):
        """Nested lookup with dot notation, e.g. ``'model.device'``."""
        node = self._data
        for key in key_path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def get_section(self, section: str) -> dict:
        """A whole section; always a dict, empty when absent or malformed."""
        value = self._data.get(section)
        return value if isinstance(value, dict) else {}

    @property
    def recognition(self) -> dict:
        return self.get_section("recognition")

    @property
    def rules(self) -> dict:
        return self.get_section("rules")

    @property
    def model(self) -> dict:
        return self.get_section("model")

    @property
    def templates(self) -> dict:
        return self.get_section("templates")

    @property
    def training(self) -> dict:
        return self.get_section("training")

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Forget the shared instance and its data (for tests)."""
        cls._instance = None
        cls._data = {}
