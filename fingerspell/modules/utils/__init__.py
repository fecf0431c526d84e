"""Configuration and logging helpers."""
from .config import Config
from .logger import setup_logging, LetterLogger, log_timing

__all__ = ["Config", "setup_logging", "LetterLogger", "log_timing"]
