"""Bounded retry with a fixed inter-attempt delay.

Every source fetch (and every snapshot batch write) goes through a
``RetryingFetcher``. The policy is deliberately flat: N attempts, the same
delay between each, no jitter, the last error re-raised when exhausted.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_fixed

from modelcatalog.errors import SourceFetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryingFetcher:
    """Run an async operation up to ``attempts`` times.

    Args:
        attempts: Total attempts including the first (>= 1)
        delay_seconds: Fixed sleep between attempts
        operation_name: Label used in log lines
    """

    def __init__(
        self,
        attempts: int = 3,
        delay_seconds: float = 1.0,
        operation_name: str = "fetch",
    ):
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        self.attempts = attempts
        self.delay_seconds = delay_seconds
        self.operation_name = operation_name

    def named(self, operation_name: str) -> RetryingFetcher:
        """Same policy, different log label."""
        return RetryingFetcher(self.attempts, self.delay_seconds, operation_name)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{self.operation_name} attempt {retry_state.attempt_number}/{self.attempts} "
            f"failed: {exc}; retrying in {self.delay_seconds}s"
        )

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await ``fn(*args, **kwargs)`` under the retry policy.

        Raises:
            Exception: The error from the last attempt
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.attempts),
                wait=wait_fixed(self.delay_seconds),
                before_sleep=self._log_retry,
                reraise=True,
            ):
                with attempt:
                    return await fn(*args, **kwargs)
        except Exception as e:
            logger.error(
                f"{self.operation_name} failed after {self.attempts} attempt(s): {e}"
            )
            raise
        raise AssertionError("unreachable")  # pragma: no cover


async def fetch_json(session: aiohttp.ClientSession, url: str, source_name: str) -> Any:
    """GET ``url`` and decode the body as JSON.

    Raises:
        SourceFetchError: On non-2xx status or undecodable body
    """
    async with session.get(url) as response:
        if response.status >= 400:
            raise SourceFetchError(source_name, f"HTTP {response.status} from {url}")
        try:
            return await response.json(content_type=None)
        except ValueError as e:
            raise SourceFetchError(source_name, f"Invalid JSON from {url}: {e}") from e


async def fetch_text(session: aiohttp.ClientSession, url: str, source_name: str) -> str:
    """GET ``url`` and return the body as text.

    Raises:
        SourceFetchError: On non-2xx status
    """
    async with session.get(url) as response:
        if response.status >= 400:
            raise SourceFetchError(source_name, f"HTTP {response.status} from {url}")
        return await response.text()
