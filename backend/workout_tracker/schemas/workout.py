from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SessionStatus(str, Enum):
    ready = "ready"
    active = "active"
    paused = "paused"
    finished = "finished"


class SportType(str, Enum):
    RUNNING = "RUNNING"
    CYCLING = "CYCLING"
    WALKING = "WALKING"
    SWIMMING = "SWIMMING"
    HIKING = "HIKING"
    YOGA = "YOGA"
    GYM = "GYM"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value) -> "SportType":
        """Map an external sport value onto the enum.

        The server may grow sport types the client does not know yet; those
        are tracked as OTHER.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.OTHER


class IntensityLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def parse(cls, value) -> "IntensityLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown intensity level: {value!r}") from None


class SessionCreate(BaseModel):
    """Schema for opening a new tracking session."""

    sport_type: Optional[str] = None
    intensity: Optional[IntensityLevel] = None
    weight_kg: Optional[float] = Field(default=None, gt=0)


class SessionConfigure(BaseModel):
    """Schema for changing a session before it starts (all fields optional)."""

    sport_type: Optional[str] = None
    intensity: Optional[IntensityLevel] = None
    weight_kg: Optional[float] = Field(default=None, gt=0)

    model_config = ConfigDict(extra="ignore")


class PositionIn(BaseModel):
    """A device location update.

    Coordinates are optional here on purpose: a fix without them is handed
    to the engine, which rejects it without raising.
    """

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    # m/s, negative or null means unknown
    speed: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("speedMetersPerSecond", "speed")
    )
    accuracy: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("accuracyMeters", "accuracy")
    )  # meters
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


class SessionRead(BaseModel):
    """Live metrics returned to the client."""

    id: str
    status: SessionStatus
    sport_type: SportType
    intensity: IntensityLevel
    weight_kg: float
    elapsed_seconds: int
    duration: str  # "MM:SS" or "HH:MM:SS"
    distance_km: float
    calories_burned: float
    pace: str  # e.g. "05:30 /km"
    average_speed_kmh: float
    points_count: int
    recent_speeds_kmh: list[float]


class PositionResult(BaseModel):
    accepted: bool
    session: SessionRead


class SaveRequest(BaseModel):
    title: str
    notes: str = ""
    is_public: bool = True

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class SaveResult(BaseModel):
    workout_id: Optional[str] = None
    queued: bool = False
    pending_id: Optional[int] = None
    detail: Optional[str] = None


class PendingWorkoutRead(BaseModel):
    id: int
    title: str
    attempts: int
    last_error: Optional[str] = None
    remote_id: Optional[str] = None
    created_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
