from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from workout_tracker.db import Base


class PendingWorkout(Base):
    """A finished workout the remote service has not accepted yet."""

    __tablename__ = "pending_workouts"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String, nullable=False)

    # Exact request body for the create call; never recomputed on retry
    payload = Column(JSON, nullable=False)

    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(String, nullable=True)

    # Set once the service accepts the workout
    remote_id = Column(String, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
