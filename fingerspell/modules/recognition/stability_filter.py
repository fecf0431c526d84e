"""
Consecutive-frame stability filter for letter output.

A letter only reaches the display after it has been the per-frame prediction
for ``stable_required`` frames in a row. Anything shorter leaves the previous
output on screen, so single-frame misclassifications never flicker through.
Losing the hand clears both the counter and the display.
"""

import logging
from typing import Optional

from fingerspell.core.types import BLANK

logger = logging.getLogger(__name__)

STABLE_REQUIRED = 5


class StabilityFilter:
    """Idle / Holding(letter, count) state machine.

    ``update(None)`` means no hand was present in the frame. The UNKNOWN
    marker is an ordinary symbol: five consecutive unknown frames display it.
    """

    def __init__(self, stable_required: int = STABLE_REQUIRED):
        if stable_required < 1:
            raise ValueError("stable_required must be >= 1, got %d" % stable_required)
        self._stable_required = stable_required
        self._held_letter: Optional[str] = None
        self._count = 0
        self._output = BLANK

    @classmethod
    def from_dict(cls, config: dict) -> "StabilityFilter":
        """Create from the ``recognition`` config section."""
        return cls(stable_required=int(config.get("stable_required", STABLE_REQUIRED)))

    def update(self, letter: Optional[str]) -> str:
        """Feed one frame's prediction and return the display output.

        Args:
            letter: predicted letter or UNKNOWN, None when no hand is present

        Returns:
            The current display: a letter, UNKNOWN, or BLANK.
        """
        if letter is None:
            self.reset()
            return self._output

        if letter == self._held_letter:
            self._count += 1
        else:
            self._held_letter = letter
            self._count = 1

        if self._count >= self._stable_required and self._output != letter:
            logger.debug("Stable letter %r after %d frames", letter, self._count)
            self._output = letter

        return self._output

    def reset(self):
        """Back to Idle with a blank display."""
        self._held_letter = None
        self._count = 0
        self._output = BLANK

    @property
    def output(self) -> str:
        return self._output

    @property
    def held_letter(self) -> Optional[str]:
        return self._held_letter

    @property
    def count(self) -> int:
        return self._count

    @property
    def stable_required(self) -> int:
        return self._stable_required

    @property
    def is_stable(self) -> bool:
        """True when the held letter is what is being displayed."""
        return self._held_letter is not None and self._count >= self._stable_required
