"""
Workspace lifecycle: the tenant boundary every other record hangs off.

A newly created workspace is seeded with the default categories for its
type, in the same commit as the workspace row.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from config import DEFAULT_CURRENCY
from errors import WorkspaceNotFound
from models import Workspace, utcnow
from app.services.categories import seed_default_categories

logger = logging.getLogger(__name__)


def create_workspace(
    db: Session,
    name: str,
    type: str = "personal",
    currency: str | None = None,
    start_day_of_month: int = 1,
) -> Workspace:
    workspace = Workspace(
        name=name.strip() or ("Personal" if type == "personal" else "Business"),
        type=type,
        currency=currency or DEFAULT_CURRENCY,
        start_day_of_month=start_day_of_month,
        active=True,
    )
    try:
        db.add(workspace)
        db.flush()
        seeded = seed_default_categories(db, workspace.id, type)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(workspace)
    logger.info("[workspace] created %s (%s) with %d default categories", workspace.id, type, seeded)
    return workspace


def list_workspaces(db: Session) -> List[Workspace]:
    return (
        db.query(Workspace)
        .filter(Workspace.active.is_(True))
        .order_by(Workspace.type, Workspace.name)
        .all()
    )


def get_active_workspace(db: Session, workspace_id: str) -> Workspace:
    """Resolve an active workspace or raise WorkspaceNotFound."""
    workspace = (
        db.query(Workspace)
        .filter(Workspace.id == workspace_id, Workspace.active.is_(True))
        .one_or_none()
    )
    if workspace is None:
        raise WorkspaceNotFound(workspace_id)
    return workspace


def archive_workspace(db: Session, workspace_id: str) -> Workspace:
    workspace = get_active_workspace(db, workspace_id)
    now = utcnow()
    workspace.active = False
    workspace.archived_at = now
    workspace.updated_at = now
    db.commit()
    db.refresh(workspace)
    logger.info("[workspace] archived %s", workspace_id)
    return workspace
