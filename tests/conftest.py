import pytest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StatusFault(Exception):
    """Fault carrying an HTTP-style status code on ``status``."""

    def __init__(self, status: int, message: str = "request failed"):
        super().__init__(message)
        self.status = status


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def no_sleep(monkeypatch):
    """Record retry sleeps instead of waiting."""
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("resilience_core.retry.executor.asyncio.sleep", fake_sleep)
    return delays
