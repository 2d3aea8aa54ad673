from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.123Z"""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> int:
    return int(utc_now().timestamp() * 1000)
