"""Shared fixtures for the Zoomba tests."""
import sys
from pathlib import Path

import pytest

# Add project root to path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from zoomba import Grid  # noqa: E402


class FixedDraw:
    """Random source that always returns the same draw."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def from_left():
    """Draw that sends the Zoomba in from the left edge."""
    return FixedDraw(0.1)


@pytest.fixture
def from_right():
    """Draw that sends the Zoomba in from the right edge."""
    return FixedDraw(0.9)


@pytest.fixture
def small_grid():
    return Grid(5, 3)


@pytest.fixture
def arena():
    """The classic 40x20 field."""
    return Grid(40, 20)
