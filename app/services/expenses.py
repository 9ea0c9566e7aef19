# app/services/expenses.py
#
# Expense Recording
# Expenses are immutable spend records. One linked to a budget counts
# towards that budget's "spent" figure. When an expense names a category
# but no budget, the category's default_budget_id is used.

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from config import DEFAULT_CURRENCY
from errors import BudgetNotFound
from models import Expense
from app.services.budgets import find_active_budget
from app.services.categories import get_category
from app.services.periods import parse_bound

logger = logging.getLogger(__name__)


def record_expense(
    db: Session,
    workspace_id: str,
    amount,
    date: datetime | None = None,
    budget_id: str | None = None,
    category_id: str | None = None,
    currency: str | None = None,
    merchant: str | None = None,
    notes: str | None = None,
    vat_rate: float | None = None,
    vat_amount: float | None = None,
) -> Expense:
    if category_id is not None:
        category = get_category(db, workspace_id, category_id)
        if budget_id is None:
            budget_id = category.default_budget_id

    if budget_id is not None and find_active_budget(db, workspace_id, budget_id) is None:
        logger.warning("[expense] rejected: budget %s not active in workspace %s", budget_id, workspace_id)
        raise BudgetNotFound(budget_id)

    expense = Expense(
        workspace_id=workspace_id,
        budget_id=budget_id,
        category_id=category_id,
        amount=amount,
        currency=currency or DEFAULT_CURRENCY,
        merchant=merchant,
        notes=notes,
        vat_rate=vat_rate,
        vat_amount=vat_amount,
    )
    when = parse_bound(date)
    if when is not None:
        expense.date = when

    try:
        db.add(expense)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(expense)
    logger.info("[expense] %s %.2f %s budget=%s", expense.id, expense.amount, expense.currency, budget_id)
    return expense


def list_expenses(
    db: Session,
    workspace_id: str,
    start=None,
    end=None,
    budget_id: str | None = None,
    category_id: str | None = None,
) -> List[Expense]:
    query = db.query(Expense).filter(Expense.workspace_id == workspace_id)

    start_dt = parse_bound(start, "from")
    end_dt = parse_bound(end, "to")
    if start_dt is not None:
        query = query.filter(Expense.date >= start_dt)
    if end_dt is not None:
        query = query.filter(Expense.date < end_dt)
    if budget_id is not None:
        query = query.filter(Expense.budget_id == budget_id)
    if category_id is not None:
        query = query.filter(Expense.category_id == category_id)

    return query.order_by(Expense.date.desc()).all()
