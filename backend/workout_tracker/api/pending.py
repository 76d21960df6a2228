from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from workout_tracker.clients.workout_api import WorkoutApiClient, get_workout_client
from workout_tracker.db import get_db
from workout_tracker.schemas.workout import PendingWorkoutRead
from workout_tracker.services.outbox import list_pending, retry_pending

router = APIRouter(prefix="/pending", tags=["pending"])


@router.get("/", response_model=list[PendingWorkoutRead])
def get_pending(db: Session = Depends(get_db)):
    return list_pending(db)


@router.post("/retry")
def retry_pending_workouts(
    db: Session = Depends(get_db),
    client: WorkoutApiClient = Depends(get_workout_client),
):
    sent = retry_pending(db, client)
    remaining = list_pending(db)
    return {
        "sent": [{"id": r.id, "workout_id": r.remote_id} for r in sent],
        "remaining": len(remaining),
    }
