from __future__ import annotations

import datetime as dt
from uuid import uuid4

MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def new_id() -> str:
    return str(uuid4())


def now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def parse_timestamp(value: str | None) -> dt.datetime | None:
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed


def format_log_time(value: str | None) -> str:
    """Render a timestamp as ``DD Mon YYYY HH:MM`` in local time, or ``-``."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return "-"
    month = MONTH_ABBREVIATIONS[parsed.month - 1]
    return f"{parsed.day:02d} {month} {parsed.year} {parsed.hour:02d}:{parsed.minute:02d}"


def sort_key_timestamp(value: str | None) -> float:
    parsed = parse_timestamp(value)
    if parsed is None:
        return float("-inf")
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed.timestamp()
