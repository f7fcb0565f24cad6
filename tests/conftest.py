"""Pytest configuration and fixtures."""
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTicker:
    """Tick source that records acquire/release instead of scheduling."""

    instances: list["FakeTicker"] = []

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False
        FakeTicker.instances.append(self)

    @property
    def active(self) -> bool:
        return self.started and not self.cancelled

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tickers():
    """Fake ticker class with a fresh instance log."""
    FakeTicker.instances = []
    yield FakeTicker
    FakeTicker.instances = []


@pytest.fixture
def make_goal():
    """Factory for Goal models."""
    from app.models.goal import Goal, GoalType

    def _make(**overrides):
        data = {
            "id": "g1",
            "title": "Consulting internship",
            "type": GoalType.RECURRING_MONTHLY,
            "deadline": datetime(2030, 1, 31, tzinfo=timezone.utc),
            "target_hours": 40,
            "logged_hours": 12,
        }
        data.update(overrides)
        return Goal(**data)

    return _make


@pytest.fixture
def make_task():
    """Factory for Task models."""
    from app.models.task import Task, TaskCategory

    def _make(**overrides):
        data = {
            "id": "t1",
            "title": "Learn more about quantity surveying",
            "category": TaskCategory.LEARNING,
            "planned_duration_minutes": 120,
            "linked_goal_id": "g1",
            "created_at": datetime(2030, 1, 2, 9, 30, tzinfo=timezone.utc),
        }
        data.update(overrides)
        return Task(**data)

    return _make


@pytest_asyncio.fixture
async def app_client(clock, tickers):
    """
    Create a test client around a fresh in-memory engine.

    This fixture:
    - Wires the engine to an empty store (no MongoDB, no persistence)
    - Drives sessions with a fake clock and fake tick source
    - Yields an async HTTP client for testing
    - Detaches the engine after each test
    """
    from app.main import app
    from app.services.entity_store import EntityStore
    from app.state import engine

    engine.attach(EntityStore(), clock=clock, ticker_factory=tickers)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    engine.sessions.shutdown()
    engine.detach()
