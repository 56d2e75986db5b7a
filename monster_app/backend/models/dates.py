"""Timestamp helpers used for API payloads and display labels."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_iso(value: datetime) -> str:
    """ISO-8601 string with a ``Z`` suffix for UTC."""

    text = ensure_aware(value).astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_iso(text: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"無効な日時形式です: {text}") from exc
    return ensure_aware(parsed)


def format_ja(value: Union[datetime, str]) -> str:
    """Format as ``YYYY/MM/DD HH:MM:SS``."""

    moment = parse_iso(value) if isinstance(value, str) else ensure_aware(value)
    return moment.strftime("%Y/%m/%d %H:%M:%S")


def relative_ja(value: Union[datetime, str], now: Optional[datetime] = None) -> str:
    """Describe how long ago ``value`` was, falling back to the full date after 30 days."""

    moment = parse_iso(value) if isinstance(value, str) else ensure_aware(value)
    seconds = int(((now or now_utc()) - moment).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if seconds < 60:
        return "今"
    if minutes < 60:
        return f"{minutes}分前"
    if hours < 24:
        return f"{hours}時間前"
    if days < 30:
        return f"{days}日前"
    return format_ja(moment)
