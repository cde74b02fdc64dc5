"""Shared pytest fixtures."""

import logging
import random

import pytest

from handodds.core.cards import parse_hand
from handodds.core.config import SimConfig


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def hand():
    """Build a hand from ids, e.g. hand("AC KS AH")."""
    return parse_hand


@pytest.fixture
def small_config():
    """Quick in-process configuration."""
    return SimConfig(trials=2_000, max_hand_size=3, seed=42, workers=1, chunk_size=1_000)


@pytest.fixture
def restore_logging():
    """Undo setup_logging() changes to the handodds logger."""
    root = logging.getLogger("handodds")
    handlers = list(root.handlers)
    level = root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
