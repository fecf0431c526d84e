"""
Structured logging plus a transcript logger for stable letters.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging for the application."""
    # Compact console format
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    # Verbose format for log file
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class LetterLogger:
    """Records each newly displayed letter and builds the spelled transcript."""

    def __init__(self):
        self.logger = logging.getLogger("letter_events")
        self._history = []

    def log_letter(self, letter, score=None, source=None):
        """Log a letter that just became stable on screen."""
        entry = {
            "timestamp": time.time(),
            "letter": letter,
            "score": score,
            "source": source,
        }
        self._history.append(entry)
        self.logger.info(
            "Letter: %-2s | Score: %s | Source: %s",
            letter,
            f"{score:.3f}" if score is not None else "N/A",
            source or "n/a",
        )

    def on_letter_stable(self, letter, score=None, source=None, **_):
        """EventBus handler for ``letter_stable``."""
        self.log_letter(letter, score=score, source=source)

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def transcript(self) -> str:
        """Concatenated stable letters, unknown markers included."""
        return "".join(entry["letter"] for entry in self._history)

    @property
    def total_letters(self):
        return len(self._history)


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
