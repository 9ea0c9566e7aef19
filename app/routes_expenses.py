# routes_expenses.py
"""
Routes for recording and listing expenses.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.deps import WorkspaceContext, get_db, get_workspace_context
from app.schemas import ExpenseCreate, expense_to_dict
from app.services.expenses import list_expenses, record_expense

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("", status_code=201)
def create_expense(
    body: ExpenseCreate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    """
    Record one expense. Without budgetId, the category's default budget
    (if any) is used.
    """
    expense = record_expense(
        db,
        ctx.workspace_id,
        body.amount,
        date=body.date,
        budget_id=body.budget_id,
        category_id=body.category_id,
        currency=body.currency or ctx.currency,
        merchant=body.merchant,
        notes=body.notes,
        vat_rate=body.vat_rate,
        vat_amount=body.vat_amount,
    )
    return expense_to_dict(expense)


@router.get("")
def expenses_list(
    start: str | None = Query(None, alias="from"),
    end: str | None = Query(None, alias="to"),
    budget_id: str | None = Query(None, alias="budgetId"),
    category_id: str | None = Query(None, alias="categoryId"),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    expenses = list_expenses(
        db,
        ctx.workspace_id,
        start,
        end,
        budget_id=budget_id,
        category_id=category_id,
    )
    return [expense_to_dict(x) for x in expenses]
