"""
Shared domain types for the fingerspelling recognizer.

Centralizes landmark indices, output markers and the prediction container
used across modules to eliminate circular imports and keep the classifier
contract consistent.
"""

import string
import time
from enum import IntEnum
from typing import Optional


# =============================================================================
# Landmark Layout
# =============================================================================

class LandmarkIndex(IntEnum):
    """Hand landmark indices following the MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_LANDMARKS = 21
FEATURE_DIM = 18


# =============================================================================
# Output Markers
# =============================================================================

UNKNOWN = "?"   # no classifier produced a confident label
BLANK = ""      # no hand in frame

LETTERS = tuple(string.ascii_uppercase)


def normalize_letter(letter) -> Optional[str]:
    """Return the upper-case A-Z letter, or None if ``letter`` is not one."""
    if not isinstance(letter, str) or len(letter) != 1:
        return None
    letter = letter.upper()
    return letter if letter in LETTERS else None


# =============================================================================
# Data Containers
# =============================================================================

class Prediction:
    """Container for one classifier's per-frame output.

    ``score`` is a distance/uncertainty value: lower means more confident.
    Uses __slots__ since one is created for every frame.
    """

    __slots__ = ("letter", "score", "source", "timestamp")

    def __init__(self, letter: str, score: float = 0.0, source: str = "none"):
        self.letter = letter
        self.score = float(score)
        self.source = source
        self.timestamp = time.time()

    def __repr__(self):
        return f"Prediction({self.letter!r}, score={self.score:.3f}, source={self.source})"

    @property
    def is_unknown(self) -> bool:
        return self.letter == UNKNOWN

    @staticmethod
    def unknown(score: float = float("inf"), source: str = "none") -> "Prediction":
        """Create the no-confident-match result."""
        return Prediction(UNKNOWN, score, source)
