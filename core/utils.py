import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional


SECONDS_PER_HOUR = 3600.0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hours_until(moment: datetime, now: Optional[datetime] = None) -> float:
    """Signed hours from now until moment; negative once it has passed."""
    now = as_utc(now) if now is not None else utcnow()
    return (as_utc(moment) - now).total_seconds() / SECONDS_PER_HOUR


def to_uuid(value: Any) -> uuid.UUID:
    """Coerce an id given as UUID or string.

    Raises ValueError for malformed ids so callers can map it to their own
    not-found or validation error.
    """
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def enum_value(value: Any) -> Any:
    """Plain value of an enum member; other values pass through."""
    if isinstance(value, enum.Enum):
        return value.value
    return value


def enum_values(values: Optional[Iterable[Any]]) -> List[Any]:
    """Plain, order-preserving, de-duplicated values for JSON storage."""
    seen = []
    for value in values or ():
        plain = enum_value(value)
        if plain not in seen:
            seen.append(plain)
    return seen
