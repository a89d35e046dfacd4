"""
ACR Gate Validity Oracle

Decides whether a past authentication action still counts as proof for
a requirement at a given instant. Malformed entries are skipped, never
raised.
"""

import math
from datetime import datetime, timezone
from typing import Any, Iterable, Optional


def _parse_iso_datetime(text: str) -> Optional[float]:
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp() * 1000.0


def parse_validated_at(value: Any) -> Optional[float]:
    """
    Parse a stored `validatedAt` into epoch milliseconds.

    Accepts numbers, numeric strings and ISO-8601 datetimes. Returns None
    for anything else (including booleans, empty strings, NaN/infinity).
    """
    if isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float)):
            millis = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                millis = float(text)
            except ValueError:
                parsed = _parse_iso_datetime(text)
                if parsed is None:
                    return None
                millis = parsed
        else:
            return None
    except OverflowError:
        return None

    return millis if math.isfinite(millis) else None


def is_action_still_valid(
    past_actions: Iterable[Any],
    amr_id: str,
    max_age_seconds: int,
    now_ms: float
) -> bool:
    """
    True if any history entry for `amr_id` is at most `max_age_seconds` old.

    The boundary is inclusive: an action exactly `max_age_seconds` old is
    still valid.
    """
    max_age_ms = max_age_seconds * 1000

    for past in past_actions:
        if getattr(past, "method_id", None) != amr_id:
            continue

        validated_at_ms = parse_validated_at(getattr(past, "validated_at", None))
        if validated_at_ms is None:
            continue

        if now_ms - validated_at_ms <= max_age_ms:
            return True

    return False
