import math
from datetime import datetime, timezone

import pytest

from conftest import sample
from workout_tracker.engine.metrics import WorkoutMetricsEngine
from workout_tracker.engine.session import InvalidTransitionError, PositionSample, TrackPoint
from workout_tracker.schemas.workout import IntensityLevel, SessionStatus, SportType


def active_engine(**kwargs) -> WorkoutMetricsEngine:
    engine = WorkoutMetricsEngine(**kwargs)
    engine.start()
    return engine


def fields(engine):
    s = engine.session
    return (s.status, s.elapsed_seconds, s.distance_km, s.calories_burned, list(s.path), list(s.speed_samples_kmh))


def test_new_session_defaults():
    engine = WorkoutMetricsEngine()
    assert engine.status == SessionStatus.ready
    assert engine.session.sport_type == SportType.RUNNING
    assert engine.session.intensity == IntensityLevel.MEDIUM
    assert engine.weight_kg == 70.0
    assert engine.session.path == []


def test_distance_is_monotonic(track):
    engine = active_engine()
    previous = 0.0
    for s in track:
        assert engine.ingest_position_sample(s)
        assert engine.session.distance_km >= previous
        previous = engine.session.distance_km
    assert engine.session.distance_km == pytest.approx(3 * 1.1119, abs=0.03)
    assert len(engine.session.path) == 4


def test_first_point_adds_no_distance(track):
    engine = active_engine()
    engine.ingest_position_sample(track[0])
    assert engine.session.distance_km == 0.0
    assert engine.session.speed_samples_kmh == [0.0]


def test_device_speed_hint_is_converted_to_kmh():
    engine = active_engine()
    engine.ingest_position_sample(sample(10.0, 106.0, speed=2.5))
    assert engine.session.speed_samples_kmh == [pytest.approx(9.0)]


def test_speed_derived_from_step_when_hint_missing_or_negative():
    engine = active_engine()
    engine.ingest_position_sample(sample(10.762622, 106.660172))
    engine.ingest_position_sample(sample(10.762722, 106.660172, speed=-1.0))
    step_km = engine.session.distance_km
    # Step distance over one tick, in km/h
    assert engine.session.speed_samples_kmh[-1] == pytest.approx(step_km * 3600)


def test_tick_recomputes_calories_from_elapsed_time():
    engine = active_engine(sport_type="RUNNING", intensity="MEDIUM", weight_kg=70)
    for _ in range(600):
        engine.on_tick()
    assert engine.session.elapsed_seconds == 600
    assert engine.session.calories_burned == pytest.approx(128.333, abs=0.01)


def test_calories_ignore_distance(track):
    a = active_engine()
    b = active_engine()
    for s in track:
        a.ingest_position_sample(s)
    for _ in range(30):
        a.on_tick()
        b.on_tick()
    assert a.session.calories_burned == b.session.calories_burned


def test_pause_freezes_session():
    engine = active_engine()
    engine.session.distance_km = 2.5
    engine.session.elapsed_seconds = 600
    engine.session.path.append(TrackPoint(10.762622, 106.660172))

    engine.pause()
    assert engine.status == SessionStatus.paused
    before = fields(engine)

    assert not engine.ingest_position_sample(sample(10.772622, 106.660172))
    assert not engine.on_tick()
    assert fields(engine) == before

    engine.start()
    assert engine.status == SessionStatus.active
    engine.on_tick()
    engine.ingest_position_sample(sample(10.772622, 106.660172))
    assert engine.session.elapsed_seconds == 601
    assert engine.session.distance_km == pytest.approx(2.5 + 1.1119, abs=0.01)


@pytest.mark.parametrize("setup", ["ready", "finished"])
def test_pause_rejected_outside_active(setup):
    engine = WorkoutMetricsEngine()
    if setup == "finished":
        engine.start()
        engine.on_tick()
        engine.stop()
    before = fields(engine)

    with pytest.raises(InvalidTransitionError) as exc:
        engine.pause()
    assert exc.value.action == "pause"
    assert fields(engine) == before


def test_other_invalid_transitions():
    engine = WorkoutMetricsEngine()
    with pytest.raises(InvalidTransitionError):
        engine.stop()
    engine.start()
    with pytest.raises(InvalidTransitionError):
        engine.start()
    engine.stop()
    for action in (engine.start, engine.pause, engine.stop):
        with pytest.raises(InvalidTransitionError):
            action()
    assert engine.status == SessionStatus.finished


def test_stop_from_paused():
    engine = active_engine()
    engine.pause()
    engine.stop()
    assert engine.status == SessionStatus.finished


def test_sample_without_latitude_is_rejected(track):
    engine = active_engine()
    engine.ingest_position_sample(track[0])
    before = fields(engine)

    assert not engine.ingest_position_sample(PositionSample(latitude=None, longitude=106.66))
    assert fields(engine) == before


def test_samples_ignored_before_start(track):
    engine = WorkoutMetricsEngine()
    assert not engine.ingest_position_sample(track[0])
    assert not engine.on_tick()
    assert engine.session.path == []
    assert engine.session.elapsed_seconds == 0


def test_configure_only_while_ready():
    engine = WorkoutMetricsEngine()
    engine.configure(sport_type="CYCLING", intensity="HIGH", weight_kg=80)
    assert engine.session.sport_type == SportType.CYCLING
    assert engine.session.intensity == IntensityLevel.HIGH
    assert engine.weight_kg == 80

    engine.start()
    with pytest.raises(InvalidTransitionError):
        engine.configure(sport_type="WALKING")
    assert engine.session.sport_type == SportType.CYCLING


def test_configure_rejects_bad_values_without_partial_update():
    engine = WorkoutMetricsEngine()
    with pytest.raises(ValueError):
        engine.configure(sport_type="CYCLING", intensity="EXTREME")
    assert engine.session.sport_type == SportType.RUNNING


def test_unknown_sport_tracks_as_other():
    engine = WorkoutMetricsEngine(sport_type="KITESURFING")
    assert engine.session.sport_type == SportType.OTHER


def test_weight_must_be_positive():
    with pytest.raises(ValueError):
        WorkoutMetricsEngine(weight_kg=0)


def test_finalize_requires_finished():
    engine = active_engine()
    with pytest.raises(InvalidTransitionError):
        engine.finalize()


def test_finalize_is_frozen_and_resubmittable(track):
    engine = active_engine(sport_type="RUNNING", intensity="MEDIUM", weight_kg=70)
    for s in track:
        engine.ingest_position_sample(s)
    for _ in range(600):
        engine.on_tick()
    engine.stop()

    now = datetime(2026, 3, 1, 6, 10, tzinfo=timezone.utc)
    summary = engine.finalize(now=now)
    assert summary.calories_burned == 128
    assert summary.elapsed_seconds == 600
    assert summary.end_time == now
    assert summary.start_time == datetime(2026, 3, 1, 6, 0, tzinfo=timezone.utc)
    assert len(summary.path) == 4

    with pytest.raises(AttributeError):
        summary.distance_km = 0  # type: ignore[misc]

    # Later calls hand back the very same summary
    assert engine.finalize() is summary

    first = summary.to_payload(title="Morning run", notes="easy")
    second = summary.to_payload(title="Morning run", notes="easy")
    assert first == second
    assert first["startTime"] == "2026-03-01T06:00:00.000Z"
    assert first["endTime"] == "2026-03-01T06:10:00.000Z"
    assert first["sportType"] == "RUNNING"
    assert first["intensityLevel"] == "MEDIUM"
    assert first["durationInSeconds"] == 600
    assert first["caloriesBurned"] == 128
    assert first["isPublic"] is True
    assert first["path"][0] == {"latitude": 10.762622, "longitude": 106.660172}


def test_recent_speeds_window():
    engine = active_engine()
    for i in range(15):
        engine.ingest_position_sample(sample(10.0 + i * 0.0001, 106.0, speed=float(i)))
    recent = engine.recent_speeds(10)
    assert len(recent) == 10
    assert recent[0] == pytest.approx(5 * 3.6)
    assert recent[-1] == pytest.approx(14 * 3.6)
    assert engine.recent_speeds(0) == []


def test_snapshot_has_display_values():
    engine = active_engine()
    engine.session.distance_km = 5.0
    engine.session.elapsed_seconds = 1500
    snap = engine.snapshot()
    assert snap["pace"] == "05:00 /km"
    assert snap["duration"] == "25:00"
    assert snap["average_speed_kmh"] == pytest.approx(12.0)
    assert snap["status"] == SessionStatus.active


def test_position_sample_from_mapping():
    s = PositionSample.from_mapping(
        {"coords": {"latitude": 10.5, "longitude": 106.5, "speed": 3.0, "accuracy": 4.0}, "timestamp": 1700000000000}
    )
    assert s.latitude == 10.5
    assert s.speed_hint_kmh == pytest.approx(10.8)
    assert s.accuracy_m == 4.0
    assert s.timestamp == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    wire = PositionSample.from_mapping({"latitude": 1, "longitude": 2, "speedMetersPerSecond": None})
    assert wire.speed_hint_kmh is None
    assert not PositionSample.from_mapping({"longitude": 2}).has_coordinates


@pytest.mark.parametrize(
    "lat,lon",
    [(float("nan"), 106.0), (10.0, float("inf")), (91.0, 106.0), (10.0, 181.0)],
)
def test_non_finite_or_out_of_range_fix_is_rejected(lat, lon):
    engine = active_engine()
    engine.ingest_position_sample(sample(10.0, 106.0))
    engine.ingest_position_sample(sample(10.001, 106.0))
    before = fields(engine)

    bad = sample(lat, lon)
    assert not bad.has_coordinates
    assert not engine.ingest_position_sample(bad)
    assert fields(engine) == before
    assert math.isfinite(engine.session.distance_km)


def test_non_finite_speed_hint_is_ignored():
    assert sample(10.0, 106.0, speed=float("nan")).speed_hint_kmh is None
    assert sample(10.0, 106.0, speed=float("inf")).speed_hint_kmh is None
