"""Exception types for ModelCatalog.

Source-level errors are contained by the aggregation pipeline; persistence
errors fail the sync they occur in; filter errors map onto HTTP responses.
"""

from __future__ import annotations

from dataclasses import dataclass


class ModelCatalogError(Exception):
    """Base class for all ModelCatalog errors."""


class SourceFetchError(ModelCatalogError):
    """Upstream catalog could not be fetched (network, timeout, non-2xx, parse)."""

    def __init__(self, source_name: str, message: str):
        super().__init__(f"{source_name}: {message}")
        self.source_name = source_name
        self.message = message


class TransformError(ModelCatalogError):
    """Transform raised despite defensive parsing; handled like a fetch failure."""


class PersistenceError(ModelCatalogError):
    """Snapshot batch or sync status could not be written."""


class SyncNotFoundError(ModelCatalogError):
    """Sync operation id does not exist or is no longer running."""


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class FilterValidationError(ModelCatalogError):
    """Filter create/update request rejected before any mutation."""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        summary = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"Invalid filter: {summary}")


class FilterNotFoundError(ModelCatalogError):
    """Saved filter does not exist."""


class FilterRunNotFoundError(ModelCatalogError):
    """Filter run does not exist for the given filter."""


class FilterAccessDeniedError(ModelCatalogError):
    """Filter exists but the requester may not read or modify it."""
