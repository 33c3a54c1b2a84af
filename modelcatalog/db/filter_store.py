"""Saved filter persistence.

Authorization is not enforced here: callers check ``filters.access`` before
invoking any mutation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.orm import sessionmaker

from modelcatalog.db.connection import get_session
from modelcatalog.db.models import SavedFilterModel
from modelcatalog.models import RequestContext, RuleClause, SavedFilter, Visibility

# Fields whose change produces a new filter version
VERSIONED_FIELDS = ("rules", "visibility")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _dump_rules(rules: list[RuleClause]) -> list[dict[str, Any]]:
    return [rule.model_dump(mode="json", by_alias=True) for rule in rules]


def _to_filter(row: SavedFilterModel) -> SavedFilter:
    return SavedFilter(
        id=row.id,
        owner_id=row.owner_id,
        team_id=row.team_id,
        name=row.name,
        description=row.description,
        visibility=Visibility(row.visibility),
        rules=[RuleClause.model_validate(rule) for rule in row.rules],
        version=row.version,
        usage_count=row.usage_count,
        last_used_at=row.last_used_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class FilterStore:
    """CRUD over ``saved_filters``."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self._session_factory = session_factory

    async def create_filter(
        self,
        owner_id: str,
        name: str,
        rules: list[RuleClause],
        description: str | None = None,
        visibility: Visibility = Visibility.PRIVATE,
        team_id: str | None = None,
    ) -> SavedFilter:
        now = _utcnow()
        row = SavedFilterModel(
            id=uuid4(),
            owner_id=owner_id,
            team_id=team_id,
            name=name,
            description=description,
            visibility=visibility.value,
            rules=_dump_rules(rules),
            version=1,
            usage_count=0,
            created_at=now,
            updated_at=now,
        )
        async with get_session(self._session_factory) as session:
            session.add(row)
        return _to_filter(row)

    async def get_filter_by_id(self, filter_id: UUID) -> SavedFilter | None:
        async with get_session(self._session_factory) as session:
            row = await session.get(SavedFilterModel, filter_id)
            return _to_filter(row) if row else None

    async def list_filters(
        self,
        ctx: RequestContext,
        visibility: str = "all",
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[SavedFilter], int]:
        """Filters visible to ``ctx``, oldest first.

        visibility:
            all     own, public, and the caller's team
            private the caller's own private filters
            team    the caller's team filters
            public  public filters

        Returns:
            (page of filters, total matching)
        """
        condition = self._visibility_condition(ctx, visibility)

        count_query = select(func.count()).select_from(SavedFilterModel).where(condition)
        query = (
            select(SavedFilterModel)
            .where(condition)
            .order_by(SavedFilterModel.created_at, SavedFilterModel.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        async with get_session(self._session_factory) as session:
            total = (await session.execute(count_query)).scalar_one()
            rows = (await session.execute(query)).scalars().all()
            return [_to_filter(row) for row in rows], total

    @staticmethod
    def _visibility_condition(ctx: RequestContext, visibility: str):
        own = SavedFilterModel.owner_id == ctx.user_id
        public = SavedFilterModel.visibility == Visibility.PUBLIC.value
        team = (
            and_(
                SavedFilterModel.visibility == Visibility.TEAM.value,
                SavedFilterModel.team_id == ctx.team_id,
            )
            if ctx.team_id
            else None
        )

        if visibility == Visibility.PRIVATE.value:
            return and_(own, SavedFilterModel.visibility == Visibility.PRIVATE.value)
        if visibility == Visibility.TEAM.value:
            # No team: match nothing
            return team if team is not None else SavedFilterModel.id.is_(None)
        if visibility == Visibility.PUBLIC.value:
            return public
        if team is not None:
            return or_(own, public, team)
        return or_(own, public)

    async def update_filter(self, filter_id: UUID, changes: dict[str, Any]) -> SavedFilter | None:
        """Apply ``changes`` (only keys present are updated).

        The version is bumped when rules or visibility change; name and
        description edits keep the version.
        """
        async with get_session(self._session_factory) as session:
            row = await session.get(SavedFilterModel, filter_id)
            if row is None:
                return None

            bump = False
            for key, value in changes.items():
                if key == "rules":
                    value = _dump_rules(value)
                elif key == "visibility":
                    value = Visibility(value).value
                if key in VERSIONED_FIELDS and getattr(row, key) != value:
                    bump = True
                setattr(row, key, value)

            if bump:
                row.version += 1
            row.updated_at = _utcnow()
            await session.flush()
            return _to_filter(row)

    async def delete_filter(self, filter_id: UUID) -> bool:
        async with get_session(self._session_factory) as session:
            result = await session.execute(
                delete(SavedFilterModel).where(SavedFilterModel.id == filter_id)
            )
            return result.rowcount > 0

    async def increment_usage(self, filter_id: UUID) -> None:
        async with get_session(self._session_factory) as session:
            await session.execute(
                update(SavedFilterModel)
                .where(SavedFilterModel.id == filter_id)
                .values(
                    usage_count=SavedFilterModel.usage_count + 1,
                    last_used_at=_utcnow(),
                )
            )
