"""Saving finished workouts with a local fallback.

A save goes straight to the workout service. When the service is
unreachable or failing, the payload is kept in `pending_workouts` and can be
resubmitted later with `retry_pending`, byte-for-byte the same.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from workout_tracker.clients.workout_api import WorkoutApiClient, WorkoutApiError
from workout_tracker.models.pending_workout import PendingWorkout


@dataclass
class SaveOutcome:
    workout_id: Optional[str] = None
    pending_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def queued(self) -> bool:
        return self.workout_id is None and self.pending_id is not None


def save_workout(db: Session, client: WorkoutApiClient, title: str, payload: dict) -> SaveOutcome:
    """Submit a workout; queue it locally if the failure is retryable.

    Non-retryable failures (validation, auth) propagate to the caller.
    """
    try:
        workout_id = client.create_workout(payload)
    except WorkoutApiError as e:
        if not e.retryable:
            raise
        row = PendingWorkout(title=title, payload=payload, attempts=1, last_error=e.message)
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.warning(f"Workout '{title}' queued as pending #{row.id}: {e.message}")
        return SaveOutcome(pending_id=row.id, error=e.message)

    logger.info(f"Workout '{title}' saved as {workout_id}")
    return SaveOutcome(workout_id=workout_id)


def list_pending(db: Session) -> list[PendingWorkout]:
    return (
        db.query(PendingWorkout)
        .filter(PendingWorkout.remote_id.is_(None))
        .order_by(PendingWorkout.created_at.asc(), PendingWorkout.id.asc())
        .all()
    )


def retry_pending(db: Session, client: WorkoutApiClient) -> list[PendingWorkout]:
    """Resubmit every unsent workout. Returns the rows that went through."""
    sent = []
    for row in list_pending(db):
        row.attempts = (row.attempts or 0) + 1
        try:
            row.remote_id = client.create_workout(row.payload)
        except WorkoutApiError as e:
            row.last_error = e.message
            logger.warning(f"Pending workout #{row.id} still failing (attempt {row.attempts}): {e.message}")
            continue
        row.submitted_at = datetime.now(timezone.utc)
        row.last_error = None
        sent.append(row)
        logger.info(f"Pending workout #{row.id} saved as {row.remote_id}")
    db.commit()
    return sent
