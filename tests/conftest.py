"""Shared fixtures."""

import pytest

from fingerspell.modules.utils.config import Config

from hands import build_hand, LETTER_HANDS, OPEN_PALM


@pytest.fixture
def hand_factory():
    """Callable building landmark arrays (see ``build_hand``)."""
    return build_hand


@pytest.fixture
def letter_hand():
    """Callable returning the landmark array for a rule-recognized letter."""
    def _make(letter):
        return build_hand(**LETTER_HANDS[letter])
    return _make


@pytest.fixture
def open_palm():
    return build_hand(**OPEN_PALM)


@pytest.fixture(autouse=True)
def reset_config():
    """Keep the Config singleton from leaking between tests."""
    Config.reset()
    yield
    Config.reset()
