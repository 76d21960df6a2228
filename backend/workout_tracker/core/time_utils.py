from datetime import datetime, timezone


def seconds_to_hhmmss(total_seconds: int) -> str:
    """
    Convert total seconds (int) -> 'HH:MM:SS'.
    Example: 2732 -> '00:45:32'
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_duration(total_seconds: int) -> str:
    """
    Stopwatch display: 'MM:SS' under an hour, 'HH:MM:SS' from one hour up.
    Example: 754 -> '12:34', 3725 -> '01:02:05'
    """
    total_seconds = int(total_seconds)
    if total_seconds >= 3600:
        return seconds_to_hhmmss(total_seconds)
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    return f"{minutes:02d}:{seconds:02d}"


def compute_pace(distance_km: float, elapsed_seconds: int) -> str:
    """
    Compute pace per kilometer as 'MM:SS /km'.
    Example: distance=5.0, elapsed=1500 -> '05:00 /km'
    """
    if not distance_km or distance_km <= 0:
        return "00:00 /km"

    pace_sec = elapsed_seconds / distance_km

    minutes = int(pace_sec // 60)
    seconds = int(pace_sec % 60)
    return f"{minutes:02d}:{seconds:02d} /km"


def to_iso(dt: datetime) -> str:
    """ISO-8601 in UTC with a trailing 'Z'; naive datetimes are assumed UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value) -> datetime | None:
    """Accept datetimes, epoch milliseconds (device clocks) or ISO strings."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def to_local_datetime(dt, tz_name: str | None = None):
    """Convert a datetime (assume UTC if naive) to local or the given tz.

    - If `tz_name` is 'local' or None: use system local timezone.
    - If `tz_name` is an IANA tz name (e.g., 'Asia/Ho_Chi_Minh'): use that.
    """
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if tz_name and tz_name != "local":
        try:
            return dt.astimezone(ZoneInfo(tz_name))
        except ZoneInfoNotFoundError:
            return dt.astimezone()
    return dt.astimezone()
