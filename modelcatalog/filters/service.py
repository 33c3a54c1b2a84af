"""Saved filter operations: validation, access control, evaluation, run history."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from modelcatalog.config import FilterConfig
from modelcatalog.db.filter_runs import FilterRunLedger
from modelcatalog.db.filter_store import FilterStore
from modelcatalog.errors import (
    FieldError,
    FilterAccessDeniedError,
    FilterNotFoundError,
    FilterRunNotFoundError,
    FilterValidationError,
)
from modelcatalog.filters import access
from modelcatalog.filters.engine import evaluate as evaluate_rules
from modelcatalog.filters.pagination import clamp_limit, clamp_page, clamp_page_size
from modelcatalog.models import (
    CreateFilterRequest,
    EvaluateFilterRequest,
    EvaluateFilterResponse,
    FilterListResult,
    FilterRun,
    FilterRunListResult,
    FilterSnapshot,
    ModelEvaluationResult,
    ModelRunResult,
    RequestContext,
    RuleClause,
    SavedFilter,
    UpdateFilterRequest,
    Visibility,
)

if TYPE_CHECKING:
    from modelcatalog.catalog.service import CatalogService

logger = logging.getLogger(__name__)

LIST_VISIBILITIES = ("all", "private", "team", "public")


def _validate_rules(rules: list[RuleClause] | None, errors: list[FieldError]) -> None:
    if not rules:
        errors.append(FieldError("rules", "At least one rule is required"))
        return
    for i, rule in enumerate(rules):
        if not rule.field.strip():
            errors.append(FieldError(f"rules[{i}].field", "Field path is required"))
        if rule.weight < 0:
            errors.append(FieldError(f"rules[{i}].weight", "Weight must be non-negative"))


def validate_create(request: CreateFilterRequest) -> None:
    """Raises FilterValidationError with every problem found."""
    errors: list[FieldError] = []
    if not request.name or not request.name.strip():
        errors.append(FieldError("name", "Name is required"))
    _validate_rules(request.rules, errors)
    if request.visibility == Visibility.TEAM and not request.team_id:
        errors.append(FieldError("teamId", "teamId is required for team visibility"))
    if errors:
        raise FilterValidationError(errors)


def validate_update(request: UpdateFilterRequest, current: SavedFilter) -> None:
    errors: list[FieldError] = []
    fields = request.model_fields_set
    if "name" in fields and (not request.name or not request.name.strip()):
        errors.append(FieldError("name", "Name cannot be empty"))
    if "rules" in fields:
        _validate_rules(request.rules, errors)
    if "visibility" in fields and request.visibility is None:
        errors.append(FieldError("visibility", "Visibility cannot be null"))

    visibility = request.visibility if "visibility" in fields else current.visibility
    team_id = request.team_id if "team_id" in fields else current.team_id
    if visibility == Visibility.TEAM and not team_id:
        errors.append(FieldError("teamId", "teamId is required for team visibility"))
    if errors:
        raise FilterValidationError(errors)


class FilterService:
    """Coordinates the filter store, access policy, rule engine and catalog."""

    def __init__(
        self,
        store: FilterStore,
        runs: FilterRunLedger,
        catalog: CatalogService,
        config: FilterConfig | None = None,
    ):
        self.store = store
        self.runs = runs
        self.catalog = catalog
        self.config = config or FilterConfig()

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    async def _load(self, filter_id: UUID) -> SavedFilter:
        saved = await self.store.get_filter_by_id(filter_id)
        if saved is None:
            raise FilterNotFoundError(f"Filter {filter_id} not found")
        return saved

    async def _load_accessible(self, ctx: RequestContext, filter_id: UUID) -> SavedFilter:
        saved = await self._load(filter_id)
        if not access.can_access(ctx, saved):
            raise FilterAccessDeniedError(f"Access denied to filter {filter_id}")
        return saved

    async def _load_modifiable(self, ctx: RequestContext, filter_id: UUID) -> SavedFilter:
        saved = await self._load(filter_id)
        if not access.can_modify(ctx, saved):
            raise FilterAccessDeniedError(f"Only the owner can modify filter {filter_id}")
        return saved

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create(self, ctx: RequestContext, request: CreateFilterRequest) -> SavedFilter:
        validate_create(request)
        saved = await self.store.create_filter(
            owner_id=ctx.user_id,
            name=request.name.strip(),
            rules=request.rules,
            description=request.description,
            visibility=request.visibility,
            team_id=request.team_id,
        )
        logger.info(f"Filter {saved.id} created by {ctx.user_id}")
        return saved

    async def get(self, ctx: RequestContext, filter_id: UUID) -> SavedFilter:
        return await self._load_accessible(ctx, filter_id)

    async def list_filters(
        self,
        ctx: RequestContext,
        visibility: str = "all",
        page: int | None = 1,
        page_size: int | None = None,
    ) -> FilterListResult:
        if visibility not in LIST_VISIBILITIES:
            raise FilterValidationError(
                [FieldError("visibility", f"Must be one of: {', '.join(LIST_VISIBILITIES)}")]
            )
        page = clamp_page(page)
        page_size = clamp_page_size(
            page_size, self.config.default_page_size, self.config.max_page_size
        )
        filters, total = await self.store.list_filters(ctx, visibility, page, page_size)
        return FilterListResult(filters=filters, total=total, page=page, page_size=page_size)

    async def update(
        self, ctx: RequestContext, filter_id: UUID, request: UpdateFilterRequest
    ) -> SavedFilter:
        current = await self._load_modifiable(ctx, filter_id)
        validate_update(request, current)

        changes: dict[str, Any] = {
            name: getattr(request, name) for name in request.model_fields_set
        }
        if isinstance(changes.get("name"), str):
            changes["name"] = changes["name"].strip()

        updated = await self.store.update_filter(filter_id, changes)
        if updated is None:
            raise FilterNotFoundError(f"Filter {filter_id} not found")
        logger.info(f"Filter {filter_id} updated to version {updated.version}")
        return updated

    async def delete(self, ctx: RequestContext, filter_id: UUID) -> None:
        await self._load_modifiable(ctx, filter_id)
        if not await self.store.delete_filter(filter_id):
            raise FilterNotFoundError(f"Filter {filter_id} not found")
        logger.info(f"Filter {filter_id} deleted by {ctx.user_id}")

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def evaluate(
        self,
        ctx: RequestContext,
        filter_id: UUID,
        request: EvaluateFilterRequest | None = None,
    ) -> EvaluateFilterResponse:
        """Evaluate a filter against the live catalog and record the run."""
        request = request or EvaluateFilterRequest()
        saved = await self._load_accessible(ctx, filter_id)
        # Snapshot before any await that could interleave with an edit
        snapshot = FilterSnapshot.of(saved)

        limit = clamp_limit(
            request.limit, self.config.default_eval_limit, self.config.max_eval_limit
        )
        start = time.monotonic()

        models = await self.catalog.get_models()
        if request.model_ids:
            wanted = set(request.model_ids)
            models = [m for m in models if m.id in wanted]
        models = models[:limit]

        results: list[ModelEvaluationResult] = []
        for model in models:
            outcome = evaluate_rules(snapshot.rules, model)
            results.append(
                ModelEvaluationResult(
                    model_id=model.id,
                    model_name=model.name,
                    match=outcome.match,
                    score=outcome.score,
                    rationale=outcome.rationale,
                    failed_hard_clauses=outcome.failed_hard_clauses,
                    passed_soft_clauses=outcome.passed_soft_clauses,
                    total_soft_clauses=outcome.total_soft_clauses,
                )
            )

        match_count = sum(1 for r in results if r.match)
        run = FilterRun(
            id=uuid4(),
            filter_id=saved.id,
            executed_by=ctx.user_id,
            executed_at=datetime.now(timezone.utc),
            duration_ms=int((time.monotonic() - start) * 1000),
            filter_snapshot=snapshot,
            total_evaluated=len(results),
            match_count=match_count,
            results=[
                ModelRunResult(
                    model_id=r.model_id,
                    model_name=r.model_name,
                    matched_all_hard=r.match,
                    score=r.score,
                    rationale=r.rationale,
                    failed_hard_clauses=r.failed_hard_clauses,
                    passed_soft_clauses=r.passed_soft_clauses,
                    total_soft_clauses=r.total_soft_clauses,
                )
                for r in results
            ],
            limit_used=limit,
            model_ids_filter=list(request.model_ids) if request.model_ids else None,
        )
        await self.runs.record(run)
        await self.store.increment_usage(saved.id)

        logger.info(
            f"Filter {saved.id} v{snapshot.version} evaluated by {ctx.user_id}: "
            f"{match_count}/{len(results)} matched in {run.duration_ms}ms"
        )
        return EvaluateFilterResponse(
            filter_id=saved.id,
            filter_name=saved.name,
            run_id=run.id,
            results=results,
            total_evaluated=len(results),
            match_count=match_count,
        )

    # ------------------------------------------------------------------
    # Run history
    # ------------------------------------------------------------------

    async def list_runs(
        self,
        ctx: RequestContext,
        filter_id: UUID,
        page: int | None = 1,
        page_size: int | None = None,
    ) -> FilterRunListResult:
        await self._load_accessible(ctx, filter_id)
        page = clamp_page(page)
        page_size = clamp_page_size(
            page_size, self.config.default_page_size, self.config.max_page_size
        )
        runs, total = await self.runs.list_runs(filter_id, page, page_size)
        return FilterRunListResult(runs=runs, total=total, page=page, page_size=page_size)

    async def get_run(self, ctx: RequestContext, filter_id: UUID, run_id: UUID) -> FilterRun:
        await self._load_accessible(ctx, filter_id)
        run = await self.runs.get_run(filter_id, run_id)
        if run is None:
            raise FilterRunNotFoundError(f"Run {run_id} not found for filter {filter_id}")
        return run
