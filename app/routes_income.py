# routes_income.py
"""
Routes for income records and the income total over a window.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.deps import WorkspaceContext, get_db, get_workspace_context
from app.schemas import IncomeCreate, income_to_dict
from app.services.income import income_total, list_income, record_income

router = APIRouter(prefix="/income", tags=["income"])


@router.post("", status_code=201)
def create_income(
    body: IncomeCreate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    income = record_income(
        db,
        ctx.workspace_id,
        body.amount,
        body.source,
        date=body.date,
        currency=body.currency or ctx.currency,
        notes=body.notes,
    )
    return income_to_dict(income)


@router.get("")
def income_list(
    start: str | None = Query(None, alias="from"),
    end: str | None = Query(None, alias="to"),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return [income_to_dict(i) for i in list_income(db, ctx.workspace_id, start, end)]


@router.get("/summary")
def income_summary(
    start: str | None = Query(None, alias="from"),
    end: str | None = Query(None, alias="to"),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    total, window_from, window_to = income_total(db, ctx.workspace_id, start, end)
    return {"total": total, "from": window_from.isoformat(), "to": window_to.isoformat()}
