"""Defensive field coercion shared by all source transforms.

Upstream payloads are untrusted: every lookup type-checks before it casts
and falls back to a neutral default (0, "", [], False) on mismatch.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

NEW_RELEASE_WINDOW_DAYS = 30
UNKNOWN_PROVIDER = "Unknown"


def get_mapping(data: Any, key: str) -> dict[str, Any]:
    """Return ``data[key]`` if it is a dict, else an empty dict."""
    if isinstance(data, dict):
        value = data.get(key)
        if isinstance(value, dict):
            return value
    return {}


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce numbers and numeric strings to float; anything else -> default."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return num if math.isfinite(num) else default


def to_cost(value: Any) -> float:
    """Unit cost: a non-negative number."""
    return max(0.0, to_number(value))


def to_int(value: Any, default: int = 0) -> int:
    num = to_number(value, float(default))
    return max(0, int(num))


def to_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def to_str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    return []


def to_bool(value: Any) -> bool:
    """``True``/``"true"`` (any case) are true; other strings are false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if value is None:
        return False
    return bool(value)


def unique(values: list[str]) -> list[str]:
    """De-duplicate keeping first-seen order."""
    return list(dict.fromkeys(values))


def first_str(data: dict[str, Any], *keys: str) -> str:
    """First key whose value is a string (snake_case / camelCase variants)."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str):
            return value
    return ""


def _parse_date(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_new_release(
    release_date: str,
    now: datetime | None = None,
    window_days: int = NEW_RELEASE_WINDOW_DAYS,
) -> bool:
    """True if ``release_date`` falls within the last ``window_days`` days."""
    parsed = _parse_date(release_date) if release_date else None
    if parsed is None:
        return False
    now = now or datetime.now(timezone.utc)
    return parsed >= now - timedelta(days=window_days)


def has_text(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def provider_or_unknown(provider: str, model_id: Any, name: Any) -> str:
    """Keep ``provider`` only when the record has a usable id and name."""
    if has_text(model_id) and has_text(name):
        return provider
    return UNKNOWN_PROVIDER


def epoch_to_date(value: Any) -> str:
    """Unix seconds -> ISO date string ("" when absent or invalid)."""
    seconds = to_number(value, default=-1.0)
    if seconds <= 0:
        return ""
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
    except (OverflowError, OSError, ValueError):
        return ""
