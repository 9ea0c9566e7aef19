# app/services/budgets.py
#
# Budget Directory
# Reference records the ledger points at. Budgets are soft-deleted
# (archived) and can be restored; only active budgets accept new fundings,
# transfers or expenses, but archived ones stay readable.

import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from errors import BudgetNotFound
from models import Budget, utcnow

logger = logging.getLogger(__name__)

# Fields a PATCH may touch
EDITABLE_FIELDS = ("name", "target", "period", "color", "active")


# ---- Lookups ----

def find_active_budget(db: Session, workspace_id: str, budget_id: str) -> Budget | None:
    """Return the budget if it exists in this workspace and is active, else None."""
    return (
        db.query(Budget)
        .filter(
            Budget.id == budget_id,
            Budget.workspace_id == workspace_id,
            Budget.active.is_(True),
        )
        .one_or_none()
    )


def find_budgets_by_ids(db: Session, workspace_id: str, ids: Iterable[str]) -> List[Budget]:
    """
    Return the ACTIVE budgets among `ids` that belong to the workspace.
    Callers compare the result length against the ids they asked for.
    """
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return []
    return (
        db.query(Budget)
        .filter(
            Budget.id.in_(wanted),
            Budget.workspace_id == workspace_id,
            Budget.active.is_(True),
        )
        .all()
    )


def get_budget(db: Session, workspace_id: str, budget_id: str) -> Budget:
    """Resolve a budget in any state (active or archived)."""
    budget = (
        db.query(Budget)
        .filter(Budget.id == budget_id, Budget.workspace_id == workspace_id)
        .one_or_none()
    )
    if budget is None:
        raise BudgetNotFound(budget_id)
    return budget


def list_budgets(db: Session, workspace_id: str, include_archived: bool = False) -> List[Budget]:
    query = db.query(Budget).filter(Budget.workspace_id == workspace_id)
    if not include_archived:
        query = query.filter(Budget.active.is_(True))
    return query.order_by(Budget.name_lc).all()


# ---- Mutations ----

def create_budget(
    db: Session,
    workspace_id: str,
    name: str,
    target: float,
    period: str = "monthly",
    color: str | None = None,
) -> Budget:
    budget = Budget(
        workspace_id=workspace_id,
        name=name,
        target=target,
        period=period,
        color=color,
        active=True,
    )
    db.add(budget)
    db.commit()
    db.refresh(budget)
    logger.info("[budget] created %s %r target=%.2f %s", budget.id, budget.name, budget.target, budget.period)
    return budget


def _set_active(budget: Budget, active: bool) -> None:
    if budget.active == active:
        return
    budget.active = active
    budget.archived_at = None if active else utcnow()


def update_budget(db: Session, workspace_id: str, budget_id: str, changes: dict) -> Budget:
    """
    Apply a partial update. Unknown keys are ignored; None values are skipped
    except for `color`, which may be cleared.
    """
    budget = get_budget(db, workspace_id, budget_id)

    try:
        for field in EDITABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field == "active":
                if value is not None:
                    _set_active(budget, bool(value))
            elif field == "color" or value is not None:
                setattr(budget, field, value)
        budget.updated_at = utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(budget)
    logger.info("[budget] updated %s fields=%s", budget_id, sorted(k for k in changes if k in EDITABLE_FIELDS))
    return budget


def archive_budget(db: Session, workspace_id: str, budget_id: str) -> Budget:
    return update_budget(db, workspace_id, budget_id, {"active": False})


def restore_budget(db: Session, workspace_id: str, budget_id: str) -> Budget:
    return update_budget(db, workspace_id, budget_id, {"active": True})
