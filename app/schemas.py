# app/schemas.py
# Role: Request bodies and response shaping for the JSON API.
#       Request models only check shapes and types; amount, period and
#       ownership rules are enforced by the services so they surface as
#       domain errors. Responses use camelCase keys.

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import Budget, Category, Expense, Income, LedgerEntry, Workspace


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# -------------------------------------------------------------------
# Requests
# -------------------------------------------------------------------

class WorkspaceCreate(_Body):
    name: str = ""
    type: Literal["personal", "business"] = "personal"
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    start_day_of_month: int = Field(1, ge=1, le=28, alias="startDayOfMonth")


class CategoryCreate(_Body):
    name: str = Field(..., min_length=1)
    type: Literal["personal", "business"] = "personal"
    default_budget_id: Optional[str] = Field(None, alias="defaultBudgetId")


class BudgetCreate(_Body):
    name: str
    target: float
    period: str = "monthly"
    color: Optional[str] = None


class BudgetUpdate(_Body):
    name: Optional[str] = None
    target: Optional[float] = None
    period: Optional[str] = None
    color: Optional[str] = None
    active: Optional[bool] = None


class FundRequest(_Body):
    amount: float
    date: Optional[datetime] = None
    note: Optional[str] = None
    source: Literal["manual", "adjustment", "rollover"] = "manual"
    idempotency_key: Optional[str] = Field(None, max_length=128, alias="idempotencyKey")


class TransferRequest(_Body):
    from_budget_id: str = Field(..., alias="fromBudgetId")
    to_budget_id: str = Field(..., alias="toBudgetId")
    amount: float
    note: Optional[str] = None
    idempotency_key: Optional[str] = Field(None, max_length=128, alias="idempotencyKey")


class ExpenseCreate(_Body):
    amount: float
    date: Optional[datetime] = None
    budget_id: Optional[str] = Field(None, alias="budgetId")
    category_id: Optional[str] = Field(None, alias="categoryId")
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    merchant: Optional[str] = None
    notes: Optional[str] = None
    vat_rate: Optional[float] = Field(None, alias="vatRate")
    vat_amount: Optional[float] = Field(None, alias="vatAmount")


class IncomeCreate(_Body):
    amount: float
    source: str = "Other"
    date: Optional[datetime] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None


# -------------------------------------------------------------------
# Responses
# -------------------------------------------------------------------

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def workspace_to_dict(w: Workspace) -> Dict[str, Any]:
    return {
        "id": w.id,
        "name": w.name,
        "type": w.type,
        "currency": w.currency,
        "startDayOfMonth": w.start_day_of_month,
        "active": w.active,
        "createdAt": _iso(w.created_at),
        "updatedAt": _iso(w.updated_at),
        "archivedAt": _iso(w.archived_at),
    }


def category_to_dict(c: Category) -> Dict[str, Any]:
    return {
        "id": c.id,
        "workspaceId": c.workspace_id,
        "name": c.name,
        "type": c.type,
        "isDefault": c.is_default,
        "defaultBudgetId": c.default_budget_id,
    }


def budget_to_dict(b: Budget) -> Dict[str, Any]:
    return {
        "id": b.id,
        "workspaceId": b.workspace_id,
        "name": b.name,
        "target": b.target,
        "period": b.period,
        "color": b.color,
        "active": b.active,
        "createdAt": _iso(b.created_at),
        "updatedAt": _iso(b.updated_at),
        "archivedAt": _iso(b.archived_at),
    }


def entry_to_dict(e: LedgerEntry) -> Dict[str, Any]:
    return {
        "id": e.id,
        "workspaceId": e.workspace_id,
        "budgetId": e.budget_id,
        "amount": e.amount,
        "date": _iso(e.date),
        "note": e.note,
        "source": e.source,
        "transferId": e.transfer_id,
        "createdAt": _iso(e.created_at),
    }


def expense_to_dict(x: Expense) -> Dict[str, Any]:
    return {
        "id": x.id,
        "workspaceId": x.workspace_id,
        "budgetId": x.budget_id,
        "categoryId": x.category_id,
        "amount": x.amount,
        "currency": x.currency,
        "date": _iso(x.date),
        "merchant": x.merchant,
        "notes": x.notes,
        "vatRate": x.vat_rate,
        "vatAmount": x.vat_amount,
        "createdAt": _iso(x.created_at),
    }


def income_to_dict(i: Income) -> Dict[str, Any]:
    return {
        "id": i.id,
        "workspaceId": i.workspace_id,
        "amount": i.amount,
        "currency": i.currency,
        "source": i.source,
        "date": _iso(i.date),
        "notes": i.notes,
        "createdAt": _iso(i.created_at),
    }


def summary_to_dict(s) -> Dict[str, Any]:
    """BudgetSummary -> wire format."""
    return {
        "budgetId": s.budget_id,
        "from": _iso(s.window_from),
        "to": _iso(s.window_to),
        "target": s.target,
        "funded": s.funded,
        "spent": s.spent,
        "remainingClassic": s.remaining_classic,
        "envelopeRemaining": s.envelope_remaining,
    }
