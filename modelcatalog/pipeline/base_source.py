"""Base class for all upstream catalog sources.

Defines the contract every source adapter implements: fetch a raw payload
(through the shared retry policy) and transform it into canonical ``Model``
records. New catalogs are added by subclassing ``BaseSource`` and
registering the class, never by editing the orchestrator.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import aiohttp

from modelcatalog.errors import TransformError
from modelcatalog.models import Model
from modelcatalog.pipeline.retry import RetryingFetcher, fetch_json, fetch_text
from modelcatalog.pipeline.types import SourceResult, SourceStatus

logger = logging.getLogger(__name__)


class BaseSource(ABC):
    """Abstract base class for catalog sources.

    Key principles:
    1. Each source handles exactly ONE upstream catalog
    2. ``fetch_raw`` is a single attempt; retries are applied by ``fetch``
    3. ``transform`` is pure and total: a malformed record degrades to
       defaults or is skipped, it never aborts the batch
    4. Failures are captured in the ``SourceResult``, never raised by ``run``
    """

    def __init__(
        self,
        source_name: str,
        config: dict[str, Any] | None = None,
        fetcher: RetryingFetcher | None = None,
        timeout_seconds: float = 30.0,
    ):
        """Initialize source.

        Args:
            source_name: Unique identifier for this catalog (e.g. "openrouter")
            config: Source-specific settings (``url`` at minimum)
            fetcher: Retry policy; defaults to 3 attempts, 1s apart
            timeout_seconds: Total HTTP timeout per attempt
        """
        self.source_name = source_name
        self.config = config or {}
        self.fetcher = (fetcher or RetryingFetcher()).named(f"fetch {source_name}")
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(f"{__name__}.{source_name}")

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch_raw(self) -> Any:
        """Perform one fetch attempt and return the undecoded payload shape."""

    @abstractmethod
    def iter_records(self, raw: Any) -> Iterable[Any]:
        """Split a payload into per-model raw records."""

    @abstractmethod
    def transform_record(self, record: Any) -> Model:
        """Map one raw record to the canonical Model."""

    # ------------------------------------------------------------------
    # Shared behaviour
    # ------------------------------------------------------------------

    async def fetch(self) -> Any:
        """Fetch the raw payload under the retry policy."""
        return await self.fetcher.call(self.fetch_raw)

    def transform(self, raw: Any) -> list[Model]:
        """Transform a full payload.

        Raises:
            TransformError: Only if the payload itself cannot be iterated
        """
        try:
            records = list(self.iter_records(raw))
        except Exception as e:
            raise TransformError(
                f"{self.source_name}: unexpected payload shape: {e}"
            ) from e

        models: list[Model] = []
        skipped = 0
        for record in records:
            try:
                models.append(self.transform_record(record))
            except Exception as e:
                skipped += 1
                self.logger.warning(f"Skipping malformed record from {self.source_name}: {e}")

        if skipped:
            self.logger.warning(
                f"{self.source_name}: skipped {skipped} of {len(records)} records"
            )
        return models

    async def run(self) -> SourceResult:
        """Fetch and transform with error capture and timing.

        This is the public interface called by the orchestrator.
        """
        start_time = time.monotonic()

        try:
            self.logger.info(f"Fetching catalog from {self.source_name}")
            raw = await self.fetch()
            models = self.transform(raw)
        except Exception as e:
            duration = time.monotonic() - start_time
            self.logger.error(f"Source {self.source_name} failed: {e}", exc_info=True)
            return SourceResult.failed(self.source_name, e, duration)

        result = SourceResult(
            source_name=self.source_name,
            status=SourceStatus.SUCCESS,
            models=models,
            message=f"Fetched {len(models)} models",
            duration_seconds=time.monotonic() - start_time,
        )
        self.logger.info(f"{self.source_name}: {result.message}")
        return result

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self._get_config_value("url", required=True)

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            headers={"Accept": "application/json, text/csv;q=0.9, */*;q=0.8"},
        )

    async def _get_json(self) -> Any:
        async with self._session() as session:
            return await fetch_json(session, self.url, self.source_name)

    async def _get_text(self) -> str:
        async with self._session() as session:
            return await fetch_text(session, self.url, self.source_name)

    def _get_config_value(self, key: str, default=None, required: bool = False):
        """Get configuration value with validation.

        Raises:
            ValueError: If required key is missing
        """
        value = self.config.get(key, default)

        if required and value is None:
            raise ValueError(
                f"Required config key '{key}' missing for {self.source_name}"
            )

        return value
