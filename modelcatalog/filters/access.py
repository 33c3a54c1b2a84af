"""Who may read or change a saved filter. Pure functions, no I/O."""

from __future__ import annotations

from modelcatalog.models import RequestContext, SavedFilter, Visibility


def can_access(ctx: RequestContext, saved: SavedFilter) -> bool:
    """Owner, any caller for public filters, or a member of the filter's team."""
    if saved.owner_id == ctx.user_id:
        return True
    if saved.visibility == Visibility.PUBLIC:
        return True
    return (
        saved.visibility == Visibility.TEAM
        and saved.team_id is not None
        and saved.team_id == ctx.team_id
    )


def can_modify(ctx: RequestContext, saved: SavedFilter) -> bool:
    """Only the owner may update or delete."""
    return saved.owner_id == ctx.user_id
