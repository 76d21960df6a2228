"""Tracking session data model.

A `Session` is the mutable aggregate built while a workout is tracked. Once
the session is finished it is frozen into a `WorkoutSummary`, which is what
gets sent to the workout-storage service.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from workout_tracker.core.constants import MPS_TO_KMH
from workout_tracker.core.time_utils import parse_timestamp, to_iso
from workout_tracker.schemas.workout import IntensityLevel, SessionStatus, SportType


class InvalidTransitionError(Exception):
    """Raised when a lifecycle call is not allowed from the current status."""

    def __init__(self, action: str, status: SessionStatus):
        self.action = action
        self.status = status
        super().__init__(f"Cannot {action} a session that is {status.value}")


@dataclass(frozen=True)
class PositionSample:
    latitude: Optional[float]
    longitude: Optional[float]
    speed_mps: Optional[float] = None
    accuracy_m: Optional[float] = None
    timestamp: Optional[datetime] = None

    @property
    def has_coordinates(self) -> bool:
        """True for a finite fix inside WGS84 bounds."""
        if self.latitude is None or self.longitude is None:
            return False
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return False
        return abs(self.latitude) <= 90 and abs(self.longitude) <= 180

    @property
    def speed_hint_kmh(self) -> Optional[float]:
        """Device speed in km/h, or None when the device gave no usable value."""
        if self.speed_mps is None or not math.isfinite(self.speed_mps) or self.speed_mps < 0:
            return None
        return self.speed_mps * MPS_TO_KMH

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PositionSample":
        """Build a sample from a device/wire location object.

        Accepts both the flat wire shape (`speedMetersPerSecond`,
        `accuracyMeters`) and device objects that nest the fix under
        `coords` with `speed`/`accuracy` keys.
        """
        coords = data.get("coords") or data

        def pick(*keys):
            for key in keys:
                if coords.get(key) is not None:
                    return coords.get(key)
            return None

        def as_float(value):
            return float(value) if value is not None else None

        return cls(
            latitude=as_float(pick("latitude", "lat")),
            longitude=as_float(pick("longitude", "lon", "lng")),
            speed_mps=as_float(pick("speedMetersPerSecond", "speed_mps", "speed")),
            accuracy_m=as_float(pick("accuracyMeters", "accuracy_m", "accuracy")),
            timestamp=parse_timestamp(data.get("timestamp")),
        )


@dataclass(frozen=True)
class TrackPoint:
    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass
class Session:
    sport_type: SportType = SportType.RUNNING
    intensity: IntensityLevel = IntensityLevel.MEDIUM
    status: SessionStatus = SessionStatus.ready
    elapsed_seconds: int = 0
    distance_km: float = 0.0
    calories_burned: float = 0.0
    path: list[TrackPoint] = field(default_factory=list)
    speed_samples_kmh: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class WorkoutSummary:
    sport_type: SportType
    intensity: IntensityLevel
    elapsed_seconds: int
    distance_km: float
    calories_burned: int
    path: tuple[TrackPoint, ...]
    start_time: datetime
    end_time: datetime

    def to_payload(self, title: str, notes: str = "", is_public: bool = True) -> dict:
        """Request body for the workout-storage service's create call."""
        return {
            "title": title,
            "sportType": self.sport_type.value,
            "intensityLevel": self.intensity.value,
            "durationInSeconds": self.elapsed_seconds,
            "distanceInKm": self.distance_km,
            "caloriesBurned": self.calories_burned,
            "notes": notes,
            "path": [p.to_dict() for p in self.path],
            "isPublic": is_public,
            "startTime": to_iso(self.start_time),
            "endTime": to_iso(self.end_time),
        }
