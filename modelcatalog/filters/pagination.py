"""Clamping for caller-supplied paging and evaluation limits."""

from __future__ import annotations

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_EVAL_LIMIT = 50
MAX_EVAL_LIMIT = 500


def clamp_page(page: int | None) -> int:
    return max(1, page or 1)


def clamp_page_size(
    page_size: int | None,
    default: int = DEFAULT_PAGE_SIZE,
    maximum: int = MAX_PAGE_SIZE,
) -> int:
    if page_size is None:
        return default
    return max(1, min(page_size, maximum))


def clamp_limit(
    limit: int | None,
    default: int = DEFAULT_EVAL_LIMIT,
    maximum: int = MAX_EVAL_LIMIT,
) -> int:
    """Evaluation limit: missing or 0 means the default, capped at ``maximum``."""
    if not limit:
        return default
    return max(1, min(limit, maximum))
