"""
Run identifiers and UTC timestamp helpers (stdlib-only).

- **utc_now():** Timezone-aware UTC datetime
- **elapsed_ms():** Non-negative whole milliseconds between two instants
- **generate_run_id():** Time-sortable 26-char id used to correlate a run's logs
- **to_iso8601():** Safe serialization for payloads and CLI output

Tags:
    timestamps, ulid, utc, datetime, cronguard, stdlib-only
"""

import random
import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def elapsed_ms(started_at: datetime, ended_at: datetime) -> int:
    """Whole milliseconds from ``started_at`` to ``ended_at``, clamped at zero."""
    delta = ended_at - started_at
    return max(0, int(delta.total_seconds() * 1000))


def generate_run_id() -> str:
    """
    Generate a ULID-like run identifier.

    Format: 26 characters, base32 encoded, time-sortable.
    """
    timestamp_ms = int(time.time() * 1000)
    timestamp_chars = _encode_base32(timestamp_ms, 10)
    random_part = "".join(random.choices(_ENCODING, k=16))
    return timestamp_chars + random_part


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


# Crockford's base32 alphabet
_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENCODING_LEN = len(_ENCODING)


def _encode_base32(value: int, length: int) -> str:
    """Encode integer to base32 string of fixed length."""
    result = []
    for _ in range(length):
        result.append(_ENCODING[value % _ENCODING_LEN])
        value //= _ENCODING_LEN
    return "".join(reversed(result))
