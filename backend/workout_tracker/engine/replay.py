"""Recorded tracks: load GPX/FIT files as position samples and replay them.

`replay_offline` drives the engine without an event loop: it advances the
stopwatch one tick per elapsed second between samples, so a recorded track
produces the same metrics the live screen would have shown.
"""

from datetime import timezone
from typing import Iterable, Optional

import gpxpy
from fitparse import FitFile
from loguru import logger

from workout_tracker.engine.metrics import WorkoutMetricsEngine
from workout_tracker.engine.session import PositionSample, WorkoutSummary
from workout_tracker.schemas.workout import SessionStatus


def _semicircles_to_degrees(val):
    return val * (180 / 2**31) if val is not None else None


def _utc(ts):
    if ts is None:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def load_gpx_samples(path: str) -> list[PositionSample]:
    """Flatten every track point of a GPX file into samples."""
    with open(path, "r", encoding="utf-8") as f:
        gpx = gpxpy.parse(f)

    samples = []
    for track in gpx.tracks:
        for segment in track.segments:
            for p in segment.points:
                samples.append(
                    PositionSample(
                        latitude=p.latitude,
                        longitude=p.longitude,
                        speed_mps=p.speed,
                        timestamp=_utc(p.time),
                    )
                )
    logger.debug(f"Loaded {len(samples)} samples from {path}")
    return samples


def load_fit_samples(path: str) -> list[PositionSample]:
    """Record messages of a FIT file as samples.

    Records without a GPS fix (treadmill, tunnels) come back with no
    coordinates and are rejected by the engine like any other bad fix.
    """
    ff = FitFile(path)
    samples = []
    for record in ff.get_messages("record"):
        fields = {f.name: f.value for f in record}
        speed = fields.get("enhanced_speed")
        if speed is None:
            speed = fields.get("speed")
        samples.append(
            PositionSample(
                latitude=_semicircles_to_degrees(fields.get("position_lat")),
                longitude=_semicircles_to_degrees(fields.get("position_long")),
                speed_mps=float(speed) if speed is not None else None,
                timestamp=_utc(fields.get("timestamp")),
            )
        )
    logger.debug(f"Loaded {len(samples)} samples from {path}")
    return samples


def load_samples(path: str) -> list[PositionSample]:
    lower = path.lower()
    if lower.endswith(".gpx"):
        return load_gpx_samples(path)
    if lower.endswith(".fit"):
        return load_fit_samples(path)
    raise ValueError("Only .gpx or .fit files are supported")


def replay_offline(
    engine: WorkoutMetricsEngine,
    samples: Iterable[PositionSample],
    interval: float = 3.0,
) -> Optional[WorkoutSummary]:
    """Feed recorded samples and the implied ticks through the engine.

    Samples are placed on the clock by their timestamps when all of them
    have one, otherwise every `interval` seconds. The session is started if
    needed and finished at the last sample; returns its summary, or None
    when there was nothing to replay.
    """
    samples = list(samples)
    if not samples:
        return None

    if all(s.timestamp is not None for s in samples):
        t0 = samples[0].timestamp
        offsets = [(s.timestamp - t0).total_seconds() for s in samples]
    else:
        offsets = [i * interval for i in range(len(samples))]

    if engine.status != SessionStatus.active:
        engine.start()

    base = engine.session.elapsed_seconds
    rejected = 0
    for sample, offset in zip(samples, offsets):
        while engine.session.elapsed_seconds - base < int(offset):
            engine.on_tick()
        if not engine.ingest_position_sample(sample):
            rejected += 1

    if rejected:
        logger.info(f"Replay dropped {rejected} of {len(samples)} samples")

    engine.stop()
    end = samples[-1].timestamp
    return engine.finalize(now=end)
