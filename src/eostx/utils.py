from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def parse_timestamp(value: str) -> datetime:
    """Parse a node timestamp (``2017-07-01T00:00:00`` or with ``Z``/offset)."""
    text = value.replace("Z", "+00:00")
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def expiration_from(head_time: str, expire_in_seconds: int) -> str:
    return format_timestamp(parse_timestamp(head_time) + timedelta(seconds=expire_in_seconds))


def as_list(value: object) -> list:
    """Normalize ``None``, a single value, or a sequence into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def sorted_unique(values: object) -> list[str]:
    return sorted({str(v) for v in as_list(values)})
