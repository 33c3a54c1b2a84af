"""Type definitions for pipeline operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from modelcatalog.models import Model, SyncStatus


class SourceStatus(str, Enum):
    """Outcome of fetching one upstream catalog."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass
class SourceResult:
    """Result of one source fetch+transform, captured independently."""

    source_name: str
    status: SourceStatus
    models: list[Model] = field(default_factory=list)
    message: str = ""
    error_details: Optional[dict[str, Any]] = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == SourceStatus.SUCCESS

    @property
    def record_count(self) -> int:
        return len(self.models)

    @classmethod
    def failed(
        cls, source_name: str, error: BaseException, duration_seconds: float = 0.0
    ) -> SourceResult:
        return cls(
            source_name=source_name,
            status=SourceStatus.FAILED,
            message=f"Fetch failed: {error}",
            error_details={
                "error_type": type(error).__name__,
                "error_message": str(error),
            },
            duration_seconds=duration_seconds,
        )


@dataclass
class AggregationResult:
    """All per-source outcomes of one fan-out, in source order."""

    results: list[SourceResult]
    duration_seconds: float = 0.0

    @property
    def successful(self) -> list[SourceResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[SourceResult]:
        return [r for r in self.results if not r.success]

    @property
    def models(self) -> list[Model]:
        """Combined catalog (no cross-source deduplication)."""
        combined: list[Model] = []
        for result in self.successful:
            combined.extend(result.models)
        return combined

    @property
    def total_fetched(self) -> int:
        return sum(r.record_count for r in self.successful)

    @property
    def errors(self) -> dict[str, str]:
        return {r.source_name: r.message for r in self.failed}


@dataclass
class SyncResult:
    """Summary of a persisted sync."""

    sync_id: UUID
    status: SyncStatus
    total_fetched: int = 0
    total_stored: int = 0
    per_source: dict[str, int] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    models: list[Model] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == SyncStatus.COMPLETED
