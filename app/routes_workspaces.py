# app/routes_workspaces.py
"""
Workspace routes: create / list tenants and the monthly dashboard summary.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.deps import WorkspaceContext, get_db, get_workspace_context
from app.schemas import WorkspaceCreate, summary_to_dict, workspace_to_dict
from app.services.balances import summarize_workspace
from app.services.workspaces import archive_workspace, create_workspace, list_workspaces

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.post("", status_code=201)
def create_workspace_route(body: WorkspaceCreate, db: Session = Depends(get_db)):
    workspace = create_workspace(
        db,
        name=body.name,
        type=body.type,
        currency=body.currency,
        start_day_of_month=body.start_day_of_month,
    )
    return workspace_to_dict(workspace)


@router.get("")
def list_workspaces_route(db: Session = Depends(get_db)):
    return [workspace_to_dict(w) for w in list_workspaces(db)]


@router.get("/summary")
def workspace_summary(
    month: str | None = Query(None),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    """
    KPIs, per-budget summaries and chart series for one month
    (YYYY-MM, default: current month).
    """
    s = summarize_workspace(db, ctx.workspace_id, month)
    return {
        "month": s.month,
        "kpis": {
            "income": s.income,
            "spent": s.spent,
            "funded": s.funded,
            "cashOnHand": s.cash_on_hand,
            "remainingToBudget": s.remaining_to_budget,
        },
        "charts": {
            "spendingOverTime": s.spending_over_time,
            "categoryBreakdown": s.spending_by_category,
        },
        "budgets": [summary_to_dict(b) for b in s.budgets],
    }


@router.post("/archive")
def archive_workspace_route(
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return workspace_to_dict(archive_workspace(db, ctx.workspace_id))
