"""Workout metrics engine.

Turns a stream of position samples and one-second timer ticks into live
trip statistics (duration, distance, speed, calories) and a final summary.

Lifecycle:
    ready -> active <-> paused -> finished

Samples and ticks only count while the session is active. Calories are
recomputed from scratch on every tick from total elapsed time, never added
up incrementally.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger

from workout_tracker.core.config import settings
from workout_tracker.core.constants import SPEED_CHART_WINDOW, TICK_SECONDS
from workout_tracker.core.fitness import average_speed_kmh, calories_burned
from workout_tracker.core.geo import haversine_km
from workout_tracker.core.time_utils import compute_pace, format_duration
from workout_tracker.engine.session import (
    InvalidTransitionError,
    PositionSample,
    Session,
    TrackPoint,
    WorkoutSummary,
)
from workout_tracker.schemas.workout import IntensityLevel, SessionStatus, SportType


def _check_weight(weight_kg: Optional[float]) -> float:
    if weight_kg is None:
        return settings.default_weight_kg
    if weight_kg <= 0:
        raise ValueError("weight_kg must be > 0")
    return float(weight_kg)


class WorkoutMetricsEngine:
    def __init__(
        self,
        sport_type=None,
        intensity=None,
        weight_kg: Optional[float] = None,
    ):
        self.session = Session(
            sport_type=SportType.parse(sport_type or settings.default_sport_type),
            intensity=IntensityLevel.parse(intensity or settings.default_intensity),
        )
        self.weight_kg = _check_weight(weight_kg)
        self._summary: Optional[WorkoutSummary] = None

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def is_active(self) -> bool:
        return self.session.status == SessionStatus.active

    # --------- Lifecycle --------- #

    def configure(self, sport_type=None, intensity=None, weight_kg: Optional[float] = None) -> None:
        """Change sport, intensity or weight. Only allowed before the first start."""
        if self.session.status != SessionStatus.ready:
            raise InvalidTransitionError("configure", self.session.status)
        # Validate everything before touching the session
        sport = SportType.parse(sport_type) if sport_type is not None else self.session.sport_type
        level = IntensityLevel.parse(intensity) if intensity is not None else self.session.intensity
        weight = _check_weight(weight_kg) if weight_kg is not None else self.weight_kg

        self.session.sport_type = sport
        self.session.intensity = level
        self.weight_kg = weight

    def start(self) -> None:
        """Begin tracking, or resume a paused session."""
        if self.session.status not in (SessionStatus.ready, SessionStatus.paused):
            raise InvalidTransitionError("start", self.session.status)
        resumed = self.session.status == SessionStatus.paused
        self.session.status = SessionStatus.active
        logger.info(
            f"Session {'resumed' if resumed else 'started'}: "
            f"{self.session.sport_type.value}/{self.session.intensity.value}"
        )

    def pause(self) -> None:
        if self.session.status != SessionStatus.active:
            raise InvalidTransitionError("pause", self.session.status)
        self.session.status = SessionStatus.paused
        logger.info(
            f"Session paused at {self.session.elapsed_seconds}s, {self.session.distance_km:.3f} km"
        )

    def stop(self) -> None:
        if self.session.status not in (SessionStatus.active, SessionStatus.paused):
            raise InvalidTransitionError("stop", self.session.status)
        self.session.status = SessionStatus.finished
        logger.info(
            f"Session finished: {self.session.elapsed_seconds}s, "
            f"{self.session.distance_km:.3f} km, {self.session.calories_burned:.1f} kcal"
        )

    # --------- Accumulation --------- #

    def ingest_position_sample(self, sample: PositionSample) -> bool:
        """Fold one location update into the session.

        Returns False when the sample is dropped: the session is not active,
        or the fix has no coordinates (e.g. GPS cold start).
        """
        if self.session.status != SessionStatus.active:
            logger.debug(f"Sample ignored while {self.session.status.value}")
            return False
        if sample is None or not sample.has_coordinates:
            logger.debug("Sample rejected: missing or invalid coordinates")
            return False

        point = TrackPoint(
            latitude=sample.latitude,
            longitude=sample.longitude,
            accuracy_m=sample.accuracy_m,
            timestamp=sample.timestamp,
        )

        step_km = 0.0
        if self.session.path:
            prev = self.session.path[-1]
            step_km = haversine_km(prev.latitude, prev.longitude, point.latitude, point.longitude)

        speed_kmh = sample.speed_hint_kmh
        if speed_kmh is None:
            speed_kmh = step_km / (TICK_SECONDS / 3600)

        self.session.path.append(point)
        self.session.distance_km += step_km
        self.session.speed_samples_kmh.append(speed_kmh)
        return True

    def on_tick(self) -> bool:
        """Advance the stopwatch by one tick. Returns False if not active."""
        if self.session.status != SessionStatus.active:
            return False
        self.session.elapsed_seconds += TICK_SECONDS
        self.session.calories_burned = calories_burned(
            self.session.sport_type,
            self.session.intensity,
            self.session.elapsed_seconds / 60,
            self.weight_kg,
        )
        return True

    # --------- Results --------- #

    def finalize(self, now: Optional[datetime] = None) -> WorkoutSummary:
        """Freeze the finished session into a summary.

        The first call fixes the timestamps; later calls return the same
        object so a failed save can be retried with identical data.
        """
        if self.session.status != SessionStatus.finished:
            raise InvalidTransitionError("finalize", self.session.status)
        if self._summary is not None:
            return self._summary

        end = now or datetime.now(timezone.utc)
        self._summary = WorkoutSummary(
            sport_type=self.session.sport_type,
            intensity=self.session.intensity,
            elapsed_seconds=self.session.elapsed_seconds,
            distance_km=self.session.distance_km,
            calories_burned=round(self.session.calories_burned),
            path=tuple(self.session.path),
            start_time=end - timedelta(seconds=self.session.elapsed_seconds),
            end_time=end,
        )
        return self._summary

    def recent_speeds(self, window: int = SPEED_CHART_WINDOW) -> list[float]:
        """Trailing speed samples for the live chart, oldest first."""
        if window <= 0:
            return []
        return list(self.session.speed_samples_kmh[-window:])

    def snapshot(self, window: Optional[int] = None) -> dict:
        s = self.session
        return {
            "status": s.status,
            "sport_type": s.sport_type,
            "intensity": s.intensity,
            "weight_kg": self.weight_kg,
            "elapsed_seconds": s.elapsed_seconds,
            "duration": format_duration(s.elapsed_seconds),
            "distance_km": s.distance_km,
            "calories_burned": s.calories_burned,
            "pace": compute_pace(s.distance_km, s.elapsed_seconds),
            "average_speed_kmh": average_speed_kmh(s.distance_km, s.elapsed_seconds),
            "points_count": len(s.path),
            "recent_speeds_kmh": self.recent_speeds(
                window if window is not None else settings.speed_chart_window
            ),
        }
