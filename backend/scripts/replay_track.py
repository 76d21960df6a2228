#!/usr/bin/env python3
"""
Replay a recorded GPX/FIT track through the workout metrics engine.

Prints the summary the live tracker would have produced and, with --save,
submits it to the workout service (queuing it locally if the service is down).

Usage examples:
  - Summary only:
      python backend/scripts/replay_track.py morning_run.gpx --sport RUNNING --intensity MEDIUM
  - Replay and save:
      python backend/scripts/replay_track.py ride.fit --sport CYCLING --weight 68 --save --title "Sunday ride"
"""

from __future__ import annotations

import argparse
import json
import sys

from loguru import logger

from workout_tracker.clients.workout_api import WorkoutApiClient, WorkoutApiError
from workout_tracker.core.config import settings
from workout_tracker.core.fitness import average_speed_kmh
from workout_tracker.core.logger import setup_logger
from workout_tracker.core.time_utils import compute_pace, format_duration, to_local_datetime
from workout_tracker.db import Base, DbSession, engine
from workout_tracker.engine.metrics import WorkoutMetricsEngine
from workout_tracker.engine.replay import load_samples, replay_offline
from workout_tracker.services.outbox import save_workout


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Replay a GPX/FIT track through the metrics engine")
    p.add_argument("path", help="Path to a .gpx or .fit file")
    p.add_argument("--sport", default=settings.default_sport_type)
    p.add_argument("--intensity", default=settings.default_intensity)
    p.add_argument("--weight", type=float, default=None, help="Weight in kg (default from settings)")
    p.add_argument("--interval", type=float, default=settings.replay_interval_seconds,
                   help="Seconds between points when the file has no timestamps")
    p.add_argument("--save", action="store_true", help="Submit the result to the workout service")
    p.add_argument("--title", default=None)
    p.add_argument("--notes", default="")
    p.add_argument("--private", action="store_true")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logger(level="DEBUG" if args.verbose else settings.log_level)

    try:
        samples = load_samples(args.path)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read {args.path}: {e}")
        return 2

    metrics = WorkoutMetricsEngine(sport_type=args.sport, intensity=args.intensity, weight_kg=args.weight)
    summary = replay_offline(metrics, samples, interval=args.interval)
    if summary is None:
        logger.error("Track has no points")
        return 1

    print(f"Sport:     {summary.sport_type.value} ({summary.intensity.value})")
    print(f"Start:     {to_local_datetime(summary.start_time, settings.timezone):%Y-%m-%d %H:%M:%S %Z}")
    print(f"End:       {to_local_datetime(summary.end_time, settings.timezone):%Y-%m-%d %H:%M:%S %Z}")
    print(f"Duration:  {format_duration(summary.elapsed_seconds)}")
    print(f"Distance:  {summary.distance_km:.2f} km")
    print(f"Pace:      {compute_pace(summary.distance_km, summary.elapsed_seconds)}")
    print(f"Avg speed: {average_speed_kmh(summary.distance_km, summary.elapsed_seconds):.1f} km/h")
    print(f"Calories:  {summary.calories_burned} kcal")
    print(f"Points:    {len(summary.path)}")

    if not args.save:
        return 0

    title = args.title or f"{summary.sport_type.value.title()} replay"
    payload = summary.to_payload(title=title, notes=args.notes, is_public=not args.private)
    Base.metadata.create_all(bind=engine)
    db = DbSession()
    try:
        outcome = save_workout(db, WorkoutApiClient(), title, payload)
    except WorkoutApiError as e:
        logger.error(f"Save rejected by workout service: {e.message}")
        print(json.dumps(payload, indent=2))
        return 1
    finally:
        db.close()

    if outcome.queued:
        print(f"Service unavailable; queued locally as pending #{outcome.pending_id}")
    else:
        print(f"Saved as workout {outcome.workout_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
