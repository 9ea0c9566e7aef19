# app/routes_budgets.py
"""
Budget routes: directory CRUD, archive/restore, funding, the ledger audit
trail, and the funded/spent summary.
"""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.deps import WorkspaceContext, get_db, get_workspace_context
from app.schemas import (
    BudgetCreate,
    BudgetUpdate,
    FundRequest,
    budget_to_dict,
    entry_to_dict,
    summary_to_dict,
)
from app.services.balances import summarize
from app.services.budgets import (
    archive_budget,
    create_budget,
    get_budget,
    list_budgets,
    restore_budget,
    update_budget,
)
from app.services.ledger import fund, list_entries

router = APIRouter(prefix="/budgets", tags=["budgets"])


# -------------------------------------------------------------------
# Directory
# -------------------------------------------------------------------

@router.get("")
def list_budgets_route(
    include_archived: bool = Query(False, alias="includeArchived"),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return [budget_to_dict(b) for b in list_budgets(db, ctx.workspace_id, include_archived)]


@router.post("", status_code=201)
def create_budget_route(
    body: BudgetCreate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    budget = create_budget(
        db,
        ctx.workspace_id,
        name=body.name,
        target=body.target,
        period=body.period,
        color=body.color,
    )
    return budget_to_dict(budget)


@router.get("/{budget_id}")
def get_budget_route(
    budget_id: str,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return budget_to_dict(get_budget(db, ctx.workspace_id, budget_id))


@router.patch("/{budget_id}")
def update_budget_route(
    budget_id: str,
    body: BudgetUpdate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)
    return budget_to_dict(update_budget(db, ctx.workspace_id, budget_id, changes))


@router.post("/{budget_id}/archive")
def archive_budget_route(
    budget_id: str,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return budget_to_dict(archive_budget(db, ctx.workspace_id, budget_id))


@router.post("/{budget_id}/restore")
def restore_budget_route(
    budget_id: str,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return budget_to_dict(restore_budget(db, ctx.workspace_id, budget_id))


# -------------------------------------------------------------------
# Ledger
# -------------------------------------------------------------------

@router.post("/{budget_id}/fund", status_code=201)
def fund_budget(
    budget_id: str,
    body: FundRequest,
    response: Response,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    result = fund(
        db,
        ctx.workspace_id,
        budget_id,
        body.amount,
        date=body.date,
        note=body.note,
        source=body.source,
        idempotency_key=body.idempotency_key,
    )
    if result.replayed:
        response.status_code = 200
    return {**entry_to_dict(result.entry), "replayed": result.replayed}


@router.get("/{budget_id}/entries")
def budget_entries(
    budget_id: str,
    start: str | None = Query(None, alias="from"),
    end: str | None = Query(None, alias="to"),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return [entry_to_dict(e) for e in list_entries(db, ctx.workspace_id, budget_id, start, end)]


@router.get("/{budget_id}/summary")
def budget_summary(
    budget_id: str,
    start: str | None = Query(None, alias="from"),
    end: str | None = Query(None, alias="to"),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    """
    Funded / spent / remaining for [from, to). Bounds are ISO dates or
    datetimes; default window is the last 30 days.
    """
    return summary_to_dict(summarize(db, ctx.workspace_id, budget_id, start, end))
