"""Tracking controller: wires a timer and a position source into the engine.

The controller owns the two live handles (tick timer, position
subscription) as fields. Pausing or stopping cancels both before the
engine transition, so nothing can mutate a paused or finished session.
"""

from typing import Optional

from loguru import logger

from workout_tracker.core.constants import TICK_SECONDS
from workout_tracker.engine.metrics import WorkoutMetricsEngine
from workout_tracker.engine.session import InvalidTransitionError, PositionSample, WorkoutSummary
from workout_tracker.engine.sources import (
    LocationUnavailableError,
    PeriodicTicker,
    PositionSource,
    Subscription,
)
from workout_tracker.schemas.workout import SessionStatus


class TrackingController:
    def __init__(self, engine: WorkoutMetricsEngine, source: PositionSource, tick_interval: float = TICK_SECONDS):
        self.engine = engine
        self.source = source
        self.tick_interval = tick_interval
        self._ticker: Optional[PeriodicTicker] = None
        self._subscription: Optional[Subscription] = None

    @property
    def status(self) -> SessionStatus:
        return self.engine.status

    @property
    def is_tracking(self) -> bool:
        return self._ticker is not None or self._subscription is not None

    async def start(self) -> None:
        """Start or resume tracking.

        Location updates are acquired first; if that fails the session keeps
        its current status and the caller may try again.
        """
        status = self.engine.status
        if status not in (SessionStatus.ready, SessionStatus.paused):
            raise InvalidTransitionError("start", status)

        try:
            subscription = await self.source.subscribe(self._on_position)
        except LocationUnavailableError:
            logger.warning("Location updates unavailable; session not started")
            raise

        # Another call may have moved the session while we were waiting
        if self.engine.status != status:
            subscription.cancel()
            raise InvalidTransitionError("start", self.engine.status)

        self._subscription = subscription
        self._ticker = PeriodicTicker(self.tick_interval, self._on_tick)
        self.engine.start()

    def pause(self) -> None:
        if self.engine.status != SessionStatus.active:
            raise InvalidTransitionError("pause", self.engine.status)
        self._release()
        self.engine.pause()

    def stop(self) -> None:
        if self.engine.status not in (SessionStatus.active, SessionStatus.paused):
            raise InvalidTransitionError("stop", self.engine.status)
        self._release()
        self.engine.stop()

    def finish(self) -> WorkoutSummary:
        """Stop if still running, then return the frozen summary."""
        if self.engine.status != SessionStatus.finished:
            self.stop()
        return self.engine.finalize()

    def close(self) -> None:
        """Tear down when the owner goes away: cancel handles, end the session."""
        self._release()
        if self.engine.status in (SessionStatus.active, SessionStatus.paused):
            self.engine.stop()

    def _release(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _on_tick(self) -> None:
        self.engine.on_tick()

    def _on_position(self, sample: PositionSample) -> None:
        self.engine.ingest_position_sample(sample)
