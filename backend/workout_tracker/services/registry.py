"""Live tracking sessions owned by the HTTP layer.

The registry lives on `app.state`; each entry pairs a controller with the
push source the position endpoint feeds. Finished sessions that are never
saved or deleted are dropped once idle for `finished_ttl` seconds.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from workout_tracker.core.config import settings
from workout_tracker.engine.controller import TrackingController
from workout_tracker.engine.metrics import WorkoutMetricsEngine
from workout_tracker.engine.sources import PushPositionSource
from workout_tracker.schemas.workout import SessionStatus


@dataclass
class LiveSession:
    id: str
    controller: TrackingController
    source: PushPositionSource
    touched_at: float = field(default_factory=time.monotonic)


class SessionRegistry:
    def __init__(self, finished_ttl: Optional[float] = None):
        self.finished_ttl = (
            finished_ttl if finished_ttl is not None else settings.finished_session_ttl_seconds
        )
        self._sessions: dict[str, LiveSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, sport_type=None, intensity=None, weight_kg: Optional[float] = None) -> LiveSession:
        self.prune()
        engine = WorkoutMetricsEngine(sport_type=sport_type, intensity=intensity, weight_kg=weight_kg)
        source = PushPositionSource()
        live = LiveSession(id=uuid.uuid4().hex, controller=TrackingController(engine, source), source=source)
        self._sessions[live.id] = live
        logger.info(f"Session {live.id} created")
        return live

    def get(self, session_id: str) -> Optional[LiveSession]:
        live = self._sessions.get(session_id)
        if live is not None:
            live.touched_at = time.monotonic()
        return live

    def prune(self, now: Optional[float] = None) -> list[str]:
        """Drop finished sessions idle longer than the TTL. Returns their ids."""
        now = time.monotonic() if now is None else now
        stale = [
            sid
            for sid, live in self._sessions.items()
            if live.controller.status == SessionStatus.finished
            and now - live.touched_at > self.finished_ttl
        ]
        for sid in stale:
            self.discard(sid)
        return stale

    def discard(self, session_id: str) -> None:
        live = self._sessions.pop(session_id, None)
        if live is not None:
            live.controller.close()
            logger.info(f"Session {session_id} discarded")

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.discard(session_id)
