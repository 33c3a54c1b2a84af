"""SQLAlchemy async database models for ModelCatalog.

Column types are portable (JSON, Uuid, timezone-aware DateTime) so the
schema runs on PostgreSQL in production and SQLite in tests.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ModelSyncModel(Base):
    """One aggregation run. Created running, moved once to a terminal state."""

    __tablename__ = "model_syncs"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="running")
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    total_fetched: Mapped[int | None] = mapped_column(Integer)
    total_stored: Mapped[int | None] = mapped_column(Integer)
    error_message: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('running', 'completed', 'failed')",
            name="check_model_sync_status_valid",
        ),
        CheckConstraint(
            "total_fetched IS NULL OR total_fetched >= 0",
            name="check_total_fetched_non_negative",
        ),
        CheckConstraint(
            "total_stored IS NULL OR total_stored >= 0",
            name="check_total_stored_non_negative",
        ),
        Index("idx_model_syncs_status", "status"),
        Index("idx_model_syncs_started_at", "started_at"),
        # Latest completed sync lookup
        Index("idx_model_syncs_status_completed", "status", "completed_at"),
    )


class ModelSnapshotModel(Base):
    """One model record as seen by one source during one sync. Append-only."""

    __tablename__ = "model_snapshots"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    sync_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)

    # Denormalized for stats queries
    model_id: Mapped[str] = mapped_column(Text, nullable=False)
    provider: Mapped[str] = mapped_column(Text, nullable=False)

    model_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_model_snapshots_sync_id", "sync_id"),
        Index("idx_model_snapshots_source", "source"),
        Index("idx_model_snapshots_sync_source", "sync_id", "source"),
        Index("idx_model_snapshots_synced_at", "synced_at"),
    )


class SavedFilterModel(Base):
    """Reusable hard/soft rule set owned by a user."""

    __tablename__ = "saved_filters"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    team_id: Mapped[str | None] = mapped_column(Text, index=True)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    visibility: Mapped[str] = mapped_column(Text, nullable=False, default="private")
    rules: Mapped[list] = mapped_column(JSON, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "visibility IN ('private', 'team', 'public')",
            name="check_filter_visibility_valid",
        ),
        CheckConstraint("version >= 1", name="check_filter_version_positive"),
        CheckConstraint("usage_count >= 0", name="check_filter_usage_non_negative"),
        Index("idx_saved_filters_visibility", "visibility"),
    )


class FilterRunModel(Base):
    """Immutable record of one filter evaluation.

    Runs outlive their filter: deleting a filter keeps its run history.
    """

    __tablename__ = "filter_runs"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    filter_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    executed_by: Mapped[str] = mapped_column(Text, nullable=False)
    executed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Denormalized copy of the filter at evaluation time
    filter_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)

    limit_used: Mapped[int] = mapped_column(Integer, nullable=False)
    model_ids_filter: Mapped[list | None] = mapped_column(JSON)

    total_evaluated: Mapped[int] = mapped_column(Integer, nullable=False)
    match_count: Mapped[int] = mapped_column(Integer, nullable=False)
    results: Mapped[list] = mapped_column(JSON, nullable=False)

    artifacts: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_filter_runs_filter_executed", "filter_id", "executed_at"),
    )
