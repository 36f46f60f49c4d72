"""
Shared test fixtures
"""

import pytest


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Fresh fake clock starting at t=1000"""
    return FakeClock()
