"""ModelCatalog Pydantic models for type-safe data validation.

Field names are snake_case in Python and camelCase on the wire, matching the
shape the upstream catalogs and API consumers use (``inputCost``,
``contextWindow``...).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator
from pydantic.alias_generators import to_camel

# Non-canonical upstream values addressable by dot-path rules
ExtraValue = JsonValue

ClauseScalar = Union[bool, int, float, str]
ClauseValue = Union[ClauseScalar, list[ClauseScalar]]


class CamelModel(BaseModel):
    """Base model serialising with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Canonical catalog record
# ---------------------------------------------------------------------------


class Model(CamelModel):
    """Canonical, source-independent metadata for one AI model."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str = ""
    name: str = "Unknown"
    provider: str = "Unknown"

    # Limits (tokens)
    context_window: int = 0
    max_output_tokens: int = 0

    # Unit costs
    input_cost: float = Field(default=0.0, ge=0)
    output_cost: float = Field(default=0.0, ge=0)
    cache_read_cost: float = Field(default=0.0, ge=0)
    cache_write_cost: float = Field(default=0.0, ge=0)

    modalities: list[str] = Field(default_factory=list)  # text, image, audio, video
    capabilities: list[str] = Field(default_factory=list)  # tools, reasoning, ...

    release_date: str = ""  # ISO date, may be empty
    last_updated: str = ""
    knowledge: str = ""

    open_weights: bool = False
    supports_temperature: bool = False
    supports_attachments: bool = False
    new: bool = False  # released within the last 30 days

    # Source-specific values (downloads, benchmark indexes, ...)
    extra: dict[str, ExtraValue] = Field(default_factory=dict)


def _field_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for name, info in Model.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return lookup


# alias or attribute name -> attribute name
MODEL_FIELDS: dict[str, str] = _field_lookup()


# ---------------------------------------------------------------------------
# Sync ledger
# ---------------------------------------------------------------------------


class SyncStatus(str, Enum):
    """Lifecycle of one aggregation run."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SyncStatus.RUNNING


class SyncOperation(CamelModel):
    id: UUID
    status: SyncStatus
    started_at: datetime
    completed_at: datetime | None = None
    total_fetched: int | None = None
    total_stored: int | None = None
    error_message: str | None = None


class ModelSnapshot(CamelModel):
    id: UUID
    sync_id: UUID
    source: str
    model: Model
    synced_at: datetime


class ModelDataStats(CamelModel):
    total_models: int = 0
    providers: list[str] = Field(default_factory=list)
    last_sync_at: datetime | None = None
    model_count_by_provider: dict[str, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class RuleOperator(str, Enum):
    """Closed set of comparison operators."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


class ClauseType(str, Enum):
    HARD = "hard"  # must pass for a match
    SOFT = "soft"  # contributes weight to the score


class Visibility(str, Enum):
    PRIVATE = "private"
    TEAM = "team"
    PUBLIC = "public"


class RuleClause(CamelModel):
    """One filter rule: ``<field> <operator> <value>``."""

    field: str
    operator: RuleOperator
    value: ClauseValue
    type: ClauseType = ClauseType.HARD
    weight: float = Field(default=1.0, ge=0)

    @field_validator("field")
    @classmethod
    def validate_field(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field must be a non-empty dot path")
        return v


class SavedFilter(CamelModel):
    id: UUID
    owner_id: str
    team_id: str | None = None
    name: str
    description: str | None = None
    visibility: Visibility = Visibility.PRIVATE
    rules: list[RuleClause]
    version: int = 1
    usage_count: int = 0
    last_used_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class FilterSnapshot(CamelModel):
    """Copy of a filter definition frozen into a run record."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: UUID
    name: str
    description: str | None = None
    visibility: Visibility
    rules: list[RuleClause]
    version: int

    @classmethod
    def of(cls, saved: SavedFilter) -> FilterSnapshot:
        return cls(
            id=saved.id,
            name=saved.name,
            description=saved.description,
            visibility=saved.visibility,
            rules=[rule.model_copy(deep=True) for rule in saved.rules],
            version=saved.version,
        )


class EvaluationResult(CamelModel):
    match: bool
    score: float
    failed_hard_clauses: int = 0
    passed_soft_clauses: int = 0
    total_soft_clauses: int = 0
    rationale: str = ""


class ModelRunResult(CamelModel):
    model_id: str
    model_name: str
    matched_all_hard: bool
    score: float
    rationale: str = ""
    failed_hard_clauses: int = 0
    passed_soft_clauses: int = 0
    total_soft_clauses: int = 0


class FilterRun(CamelModel):
    id: UUID
    filter_id: UUID
    executed_by: str
    executed_at: datetime
    duration_ms: int
    filter_snapshot: FilterSnapshot
    total_evaluated: int
    match_count: int
    results: list[ModelRunResult] = Field(default_factory=list)
    limit_used: int
    model_ids_filter: list[str] | None = None
    artifacts: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Requests / responses
# ---------------------------------------------------------------------------


class RequestContext(CamelModel):
    """Resolved identity of the caller."""

    user_id: str
    team_id: str | None = None
    is_admin: bool = False


class CreateFilterRequest(CamelModel):
    name: str
    description: str | None = None
    visibility: Visibility = Visibility.PRIVATE
    team_id: str | None = None
    rules: list[RuleClause] = Field(default_factory=list)


class UpdateFilterRequest(CamelModel):
    name: str | None = None
    description: str | None = None
    visibility: Visibility | None = None
    team_id: str | None = None
    rules: list[RuleClause] | None = None


class FilterListResult(CamelModel):
    filters: list[SavedFilter]
    total: int
    page: int
    page_size: int


class EvaluateFilterRequest(CamelModel):
    model_ids: list[str] | None = None
    limit: int | None = None


class ModelEvaluationResult(CamelModel):
    model_id: str
    model_name: str
    match: bool
    score: float
    rationale: str
    failed_hard_clauses: int
    passed_soft_clauses: int
    total_soft_clauses: int


class EvaluateFilterResponse(CamelModel):
    filter_id: UUID
    filter_name: str
    run_id: UUID
    results: list[ModelEvaluationResult]
    total_evaluated: int
    match_count: int


class FilterRunListResult(CamelModel):
    runs: list[FilterRun]
    total: int
    page: int
    page_size: int
