"""
Tests for the Stability Filter
===============================
"""

import pytest

from fingerspell.core.types import BLANK, UNKNOWN
from fingerspell.modules.recognition.stability_filter import StabilityFilter, STABLE_REQUIRED


def feed(stability, letters):
    return [stability.update(letter) for letter in letters]


class TestStabilityFilter:
    """Test suite for consecutive-frame debouncing."""

    @pytest.fixture
    def stability(self):
        return StabilityFilter()

    def test_default_required(self, stability):
        assert stability.stable_required == STABLE_REQUIRED == 5

    def test_letter_after_five_frames(self, stability):
        """Test a letter appears on the fifth consecutive frame."""
        outputs = feed(stability, ["A"] * 5)

        assert outputs == [BLANK, BLANK, BLANK, BLANK, "A"]
        assert stability.is_stable

    def test_short_run_keeps_previous_output(self, stability):
        """Test a new letter shorter than the window leaves the old one shown."""
        outputs = feed(stability, ["A"] * 5 + ["B", "B"])

        assert outputs == [BLANK, BLANK, BLANK, BLANK, "A", "A", "A"]
        assert stability.held_letter == "B"
        assert stability.count == 2
        assert not stability.is_stable

    def test_four_frames_never_shown(self, stability):
        """Test four frames of A followed by B never display anything."""
        outputs = feed(stability, ["A", "A", "A", "A", "B", "B"])

        assert outputs == [BLANK] * 6

    def test_switch_after_full_run(self, stability):
        outputs = feed(stability, ["A"] * 5 + ["B"] * 5)

        assert outputs[-1] == "B"
        assert outputs[5:9] == ["A"] * 4

    def test_interrupted_run_restarts(self, stability):
        """Test a single different frame restarts the count."""
        outputs = feed(stability, ["A", "A", "A", "B", "A", "A", "A", "A"])

        assert outputs == [BLANK] * 8
        assert stability.update("A") == "A"

    def test_hand_loss_resets(self, stability):
        """Test a no-hand frame clears the display and the counter."""
        feed(stability, ["A"] * 6)

        assert stability.update(None) == BLANK
        assert stability.held_letter is None
        assert stability.count == 0
        assert feed(stability, ["A"] * 4) == [BLANK] * 4

    def test_unknown_is_displayed(self, stability):
        """Test five unknown frames show the unknown marker."""
        outputs = feed(stability, [UNKNOWN] * 5)

        assert outputs[-1] == UNKNOWN

    def test_count_keeps_growing(self, stability):
        feed(stability, ["A"] * 12)

        assert stability.count == 12
        assert stability.output == "A"

    def test_custom_window(self):
        stability = StabilityFilter(stable_required=2)

        assert feed(stability, ["C", "C"]) == [BLANK, "C"]

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            StabilityFilter(stable_required=0)

    def test_from_dict(self):
        assert StabilityFilter.from_dict({"stable_required": 3}).stable_required == 3
        assert StabilityFilter.from_dict({}).stable_required == STABLE_REQUIRED

    def test_reset(self, stability):
        feed(stability, ["A"] * 5)
        stability.reset()

        assert stability.output == BLANK
        assert stability.held_letter is None
