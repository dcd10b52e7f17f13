"""Shared fixtures: a fake clock whose sleep advances simulated time."""

from __future__ import annotations

import pytest


class FakeClock:
    """Monotonic clock stand-in. ``sleep`` advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
