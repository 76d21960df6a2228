from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from workout_tracker.clients.workout_api import WorkoutApiClient, WorkoutApiError, get_workout_client
from workout_tracker.db import get_db
from workout_tracker.engine.session import InvalidTransitionError, PositionSample
from workout_tracker.engine.sources import LocationUnavailableError
from workout_tracker.schemas.workout import (
    PositionIn,
    PositionResult,
    SaveRequest,
    SaveResult,
    SessionConfigure,
    SessionCreate,
    SessionRead,
    SessionStatus,
)
from workout_tracker.services.outbox import save_workout
from workout_tracker.services.registry import LiveSession, SessionRegistry

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def _live(session_id: str, registry: SessionRegistry) -> LiveSession:
    live = registry.get(session_id)
    if live is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return live


def _read(live: LiveSession) -> SessionRead:
    return SessionRead(id=live.id, **live.controller.engine.snapshot())


@router.post("/", response_model=SessionRead)
def create_session(payload: SessionCreate, registry: SessionRegistry = Depends(get_registry)):
    try:
        live = registry.create(
            sport_type=payload.sport_type,
            intensity=payload.intensity,
            weight_kg=payload.weight_kg,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _read(live)


@router.get("/{session_id}", response_model=SessionRead)
def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _read(_live(session_id, registry))


@router.patch("/{session_id}", response_model=SessionRead)
def configure_session(
    session_id: str,
    payload: SessionConfigure,
    registry: SessionRegistry = Depends(get_registry),
):
    live = _live(session_id, registry)
    try:
        live.controller.engine.configure(
            sport_type=payload.sport_type,
            intensity=payload.intensity,
            weight_kg=payload.weight_kg,
        )
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _read(live)


# Lifecycle endpoints are async so timers are scheduled on the server's loop
@router.post("/{session_id}/start", response_model=SessionRead)
async def start_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    live = _live(session_id, registry)
    try:
        await live.controller.start()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LocationUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e) or "Location unavailable")
    return _read(live)


@router.post("/{session_id}/pause", response_model=SessionRead)
async def pause_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    live = _live(session_id, registry)
    try:
        live.controller.pause()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _read(live)


@router.post("/{session_id}/stop", response_model=SessionRead)
async def stop_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    live = _live(session_id, registry)
    try:
        live.controller.stop()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _read(live)


@router.post("/{session_id}/positions", response_model=PositionResult)
async def push_position(
    session_id: str,
    payload: PositionIn,
    registry: SessionRegistry = Depends(get_registry),
):
    live = _live(session_id, registry)
    before = len(live.controller.engine.session.path)
    sample = PositionSample.from_mapping(payload.model_dump())
    # Only subscribed (active) sessions receive the sample
    live.source.push(sample)
    accepted = len(live.controller.engine.session.path) > before
    return PositionResult(accepted=accepted, session=_read(live))


@router.post("/{session_id}/save", response_model=SaveResult)
def save_session(
    session_id: str,
    payload: SaveRequest,
    registry: SessionRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
    client: WorkoutApiClient = Depends(get_workout_client),
):
    live = _live(session_id, registry)
    if live.controller.status != SessionStatus.finished:
        raise HTTPException(status_code=409, detail="Stop the session before saving it")

    summary = live.controller.finish()
    body = summary.to_payload(title=payload.title, notes=payload.notes, is_public=payload.is_public)
    try:
        outcome = save_workout(db, client, payload.title, body)
    except WorkoutApiError as e:
        # Session is kept so the user can fix the request and save again
        # A failure without an error status (no id in a 2xx body) is a bad gateway
        status_code = e.status_code if e.status_code and e.status_code >= 400 else 502
        raise HTTPException(status_code=status_code, detail=e.message)

    registry.discard(session_id)
    return SaveResult(
        workout_id=outcome.workout_id,
        queued=outcome.queued,
        pending_id=outcome.pending_id,
        detail=outcome.error,
    )


@router.delete("/{session_id}")
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    _live(session_id, registry)
    registry.discard(session_id)
    return {"message": "Session discarded"}
