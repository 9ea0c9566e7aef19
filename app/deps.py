# app/deps.py
# Role: Shared FastAPI dependencies.
#       Provides the standard SQLAlchemy database session dependency and the
#       workspace context every tenant-scoped route receives explicitly.

"""
Shared dependencies for the expense manager API.
"""

from dataclasses import dataclass
from typing import Generator

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from db import SessionLocal
from errors import WorkspaceRequired
from app.services.workspaces import get_active_workspace

# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# -------------------------------------------------------------------
# Workspace context
# -------------------------------------------------------------------

@dataclass(frozen=True)
class WorkspaceContext:
    """Tenant scope passed down to every service call."""

    workspace_id: str
    currency: str


def get_workspace_context(
    x_workspace_id: str | None = Header(None),
    db: Session = Depends(get_db),
) -> WorkspaceContext:
    """
    Resolve the X-Workspace-Id header to an active workspace.

    Missing header -> 400 WorkspaceRequired; unknown or archived
    workspace -> 404 WorkspaceNotFound.
    """
    workspace_id = (x_workspace_id or "").strip()
    if not workspace_id:
        raise WorkspaceRequired("X-Workspace-Id header is required")

    workspace = get_active_workspace(db, workspace_id)
    return WorkspaceContext(workspace_id=workspace.id, currency=workspace.currency)
