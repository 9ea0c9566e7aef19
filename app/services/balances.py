# app/services/balances.py
#
# Balance Aggregator
# Point-in-time figures for budgets and workspaces. Nothing here is stored:
# every number is summed from ledger entries and expenses at read time, so
# concurrent writers only ever append rows and never race on a balance.

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Category, Expense, Income, LedgerEntry
from app.services.budgets import get_budget, list_budgets
from app.services.periods import get_month_range, resolve_window


@dataclass(frozen=True)
class BudgetSummary:
    budget_id: str
    target: float
    funded: float
    spent: float
    window_from: datetime
    window_to: datetime

    @property
    def remaining_classic(self) -> float:
        # Target-minus-spend view, floored at zero
        return max(0.0, self.target - self.spent)

    @property
    def envelope_remaining(self) -> float:
        # Funded-minus-spend view; negative means overspent
        return self.funded - self.spent


@dataclass
class WorkspaceSummary:
    workspace_id: str
    month: str
    income: float
    spent: float
    funded: float
    budgets: List[BudgetSummary] = field(default_factory=list)
    spending_by_category: List[Dict[str, Any]] = field(default_factory=list)
    spending_over_time: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def cash_on_hand(self) -> float:
        return self.income - self.spent

    @property
    def remaining_to_budget(self) -> float:
        return self.income - self.funded


# ---- Single budget ----

def _funded(db: Session, workspace_id: str, budget_id: str, start: datetime, end: datetime) -> float:
    total = (
        db.query(func.coalesce(func.sum(LedgerEntry.amount), 0.0))
        .filter(
            LedgerEntry.workspace_id == workspace_id,
            LedgerEntry.budget_id == budget_id,
            LedgerEntry.date >= start,
            LedgerEntry.date < end,
        )
        .scalar()
    )
    return float(total or 0.0)


def _spent(db: Session, workspace_id: str, budget_id: str, start: datetime, end: datetime) -> float:
    total = (
        db.query(func.coalesce(func.sum(Expense.amount), 0.0))
        .filter(
            Expense.workspace_id == workspace_id,
            Expense.budget_id == budget_id,
            Expense.date >= start,
            Expense.date < end,
        )
        .scalar()
    )
    return float(total or 0.0)


def summarize(db: Session, workspace_id: str, budget_id: str, start=None, end=None) -> BudgetSummary:
    """
    Funded/spent figures for one budget over [start, end).

    Bounds default to the last SUMMARY_DEFAULT_DAYS days. Archived budgets
    are summarizable; only the workspace has to match.
    """
    window_from, window_to = resolve_window(start, end)
    budget = get_budget(db, workspace_id, budget_id)

    return BudgetSummary(
        budget_id=budget.id,
        target=float(budget.target),
        funded=_funded(db, workspace_id, budget.id, window_from, window_to),
        spent=_spent(db, workspace_id, budget.id, window_from, window_to),
        window_from=window_from,
        window_to=window_to,
    )


# ---- Workspace dashboard ----

def summarize_workspace(db: Session, workspace_id: str, month: str | None = None) -> WorkspaceSummary:
    """
    Monthly dashboard: KPI totals, a summary per active budget, spending by
    category (largest first) and spending per day.
    """
    start, end, normalized_month = get_month_range(month)

    income_total = (
        db.query(func.coalesce(func.sum(Income.amount), 0.0))
        .filter(Income.workspace_id == workspace_id, Income.date >= start, Income.date < end)
        .scalar()
    )
    spent_total = (
        db.query(func.coalesce(func.sum(Expense.amount), 0.0))
        .filter(Expense.workspace_id == workspace_id, Expense.date >= start, Expense.date < end)
        .scalar()
    )
    # Transfer legs cancel out, so this is the money put into budgets
    funded_total = (
        db.query(func.coalesce(func.sum(LedgerEntry.amount), 0.0))
        .filter(
            LedgerEntry.workspace_id == workspace_id,
            LedgerEntry.date >= start,
            LedgerEntry.date < end,
        )
        .scalar()
    )

    funded_by_budget = dict(
        db.query(LedgerEntry.budget_id, func.sum(LedgerEntry.amount))
        .filter(
            LedgerEntry.workspace_id == workspace_id,
            LedgerEntry.date >= start,
            LedgerEntry.date < end,
        )
        .group_by(LedgerEntry.budget_id)
        .all()
    )
    spent_by_budget = dict(
        db.query(Expense.budget_id, func.sum(Expense.amount))
        .filter(
            Expense.workspace_id == workspace_id,
            Expense.budget_id.isnot(None),
            Expense.date >= start,
            Expense.date < end,
        )
        .group_by(Expense.budget_id)
        .all()
    )

    budgets: List[BudgetSummary] = []
    for budget in list_budgets(db, workspace_id):
        budgets.append(
            BudgetSummary(
                budget_id=budget.id,
                target=float(budget.target),
                funded=float(funded_by_budget.get(budget.id) or 0.0),
                spent=float(spent_by_budget.get(budget.id) or 0.0),
                window_from=start,
                window_to=end,
            )
        )

    # Spending by category (uncategorized expenses grouped together)
    category_key = func.coalesce(Category.name, "Uncategorized")
    category_rows = (
        db.query(category_key.label("category"), func.sum(Expense.amount).label("spent"))
        .select_from(Expense)
        .outerjoin(Category, Category.id == Expense.category_id)
        .filter(Expense.workspace_id == workspace_id, Expense.date >= start, Expense.date < end)
        .group_by(category_key)
        .order_by(func.sum(Expense.amount).desc())
        .all()
    )

    day_key = func.date(Expense.date)
    day_rows = (
        db.query(day_key.label("day"), func.sum(Expense.amount).label("spent"))
        .filter(Expense.workspace_id == workspace_id, Expense.date >= start, Expense.date < end)
        .group_by(day_key)
        .order_by(day_key)
        .all()
    )

    return WorkspaceSummary(
        workspace_id=workspace_id,
        month=normalized_month,
        income=float(income_total or 0.0),
        spent=float(spent_total or 0.0),
        funded=float(funded_total or 0.0),
        budgets=budgets,
        spending_by_category=[{"label": r.category, "value": float(r.spent)} for r in category_rows],
        spending_over_time=[{"date": str(r.day), "value": float(r.spent)} for r in day_rows],
    )
