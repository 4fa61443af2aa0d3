from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, TypeVar

from .errors import InvalidParameter
from .schemas import WeatherOut

T = TypeVar("T")


def parse_get_last(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidParameter("get_last must be a number") from None


def last_n(items: Sequence[T], n: int) -> List[T]:
    """Die letzten ``n`` Einträge (Reihenfolge bleibt erhalten)."""
    if n <= 0:
        return []
    return list(items[-n:])


def _as_utc(ts: datetime) -> datetime:
    # SQLite liefert naive Zeitstempel (UTC)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def created_within_hours(
    weathers: Sequence[WeatherOut], hours: int, now: Optional[datetime] = None
) -> List[WeatherOut]:
    now = now or datetime.now(timezone.utc)
    try:
        cutoff = _as_utc(now) - timedelta(hours=hours)
    except OverflowError:
        # Zeitraum jenseits von datetime: alles oder nichts
        return list(weathers) if hours > 0 else []
    return [w for w in weathers if _as_utc(w.created_at) > cutoff]
