"""Shared fixtures.

The database URL must point at in-memory SQLite before any application
module is imported, because the engine is created at import time.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import httpx  # noqa: E402
import pytest  # noqa: E402

from workout_tracker.clients.workout_api import WorkoutApiClient  # noqa: E402
from workout_tracker.engine.session import PositionSample  # noqa: E402

BASE_URL = "http://workouts.test/api/workouts"


@pytest.fixture
def db():
    from workout_tracker.db import Base, DbSession, engine
    from workout_tracker.models.pending_workout import PendingWorkout

    Base.metadata.create_all(bind=engine)
    session = DbSession()
    try:
        yield session
    finally:
        session.rollback()
        session.query(PendingWorkout).delete()
        session.commit()
        session.close()


@pytest.fixture
def make_client():
    """Build a WorkoutApiClient whose HTTP calls go to `handler`."""

    def _make(handler, token=None):
        return WorkoutApiClient(
            base_url=BASE_URL,
            token=token,
            timeout=5,
            transport=httpx.MockTransport(handler),
        )

    return _make


def sample(lat, lon, speed=None, accuracy=None, timestamp=None):
    return PositionSample(latitude=lat, longitude=lon, speed_mps=speed, accuracy_m=accuracy, timestamp=timestamp)


@pytest.fixture
def track():
    """Four points heading north, 0.01 degrees of latitude (~1.112 km) apart."""
    return [sample(10.762622 + i * 0.01, 106.660172) for i in range(4)]
