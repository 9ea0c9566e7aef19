# models.py
# Role: SQLAlchemy ORM models for the expense manager domain.
#       Workspaces own categories, budgets, ledger entries, expenses and
#       income. Field validation happens when an attribute is assigned, so a
#       malformed entity can never reach a session.

import math
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import validates

from db import Base
from errors import InvalidAmount, InvalidBudget

WORKSPACE_TYPES = ("personal", "business")
BUDGET_PERIODS = ("monthly", "quarterly", "annual")
ENTRY_SOURCES = ("manual", "transfer", "adjustment", "rollover")


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def _finite(value, field: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidAmount(f"{field} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidAmount(f"{field} must be finite, got {value!r}")
    return number


class Workspace(Base):
    """Tenant boundary. Every other row points at exactly one workspace."""

    __tablename__ = "workspaces"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    type = Column(String(16), nullable=False, default="personal")
    currency = Column(String(3), nullable=False, default="EUR")
    start_day_of_month = Column(Integer, nullable=False, default=1)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    archived_at = Column(DateTime, nullable=True)

    @validates("type")
    def _validate_type(self, key, value):
        if value not in WORKSPACE_TYPES:
            raise ValueError(f"Unsupported workspace type: {value!r}")
        return value


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String(16), nullable=False, default="personal")
    is_default = Column(Boolean, nullable=False, default=False)

    # Budget that expenses in this category count against when they name none
    default_budget_id = Column(String(36), ForeignKey("budgets.id"), nullable=True)

    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Budget(Base):
    """
    Named spending envelope with a target and a period.

    Budgets are never hard-deleted: archiving flips `active` off and stamps
    `archived_at`. Balances are not stored here; they are always summed from
    ledger entries and expenses (see app/services/balances.py).
    """

    __tablename__ = "budgets"

    id = Column(String(36), primary_key=True, default=new_id)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String, nullable=False)

    # Lower-cased name, used for ordering listings
    name_lc = Column(String, nullable=False)

    target = Column(Float, nullable=False, default=0.0)
    period = Column(String(16), nullable=False, default="monthly")
    color = Column(String(16), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    archived_at = Column(DateTime, nullable=True)

    @validates("name")
    def _validate_name(self, key, value):
        name = str(value or "").strip()
        if not name:
            raise InvalidBudget("Budget name is required")
        self.name_lc = name.lower()
        return name

    @validates("target")
    def _validate_target(self, key, value):
        try:
            target = _finite(value, "target")
        except InvalidAmount as exc:
            raise InvalidBudget(exc.message) from exc
        if target < 0:
            raise InvalidBudget(f"target must be >= 0, got {target}")
        return target

    @validates("period")
    def _validate_period(self, key, value):
        if value not in BUDGET_PERIODS:
            raise InvalidBudget(
                f"period must be one of {', '.join(BUDGET_PERIODS)}, got {value!r}"
            )
        return value


class LedgerEntry(Base):
    """
    Immutable signed monetary event against a budget.

    Positive amounts are inflows (funding, transfer-in), negative amounts are
    outflows (transfer-out). Both legs of one transfer share `transfer_id`.
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint(
            "workspace_id", "budget_id", "idempotency_key", name="uq_ledger_idempotency"
        ),
        Index("ix_ledger_workspace_budget_date", "workspace_id", "budget_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), nullable=False)
    budget_id = Column(String(36), ForeignKey("budgets.id"), nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False, default=utcnow)
    note = Column(Text, nullable=True)
    source = Column(String(16), nullable=False, default="manual")
    transfer_id = Column(String(36), nullable=True, index=True)
    # Stored scoped by operation, e.g. "fund:<key>" or "transfer:<key>"
    idempotency_key = Column(String(160), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @validates("amount")
    def _validate_amount(self, key, value):
        amount = _finite(value, "amount")
        if amount == 0:
            raise InvalidAmount("Ledger entry amount must be non-zero")
        return amount

    @validates("source")
    def _validate_source(self, key, value):
        if value not in ENTRY_SOURCES:
            raise ValueError(f"Unsupported ledger source: {value!r}")
        return value


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_workspace_budget_date", "workspace_id", "budget_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), nullable=False)
    budget_id = Column(String(36), ForeignKey("budgets.id"), nullable=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)

    # Always non-negative; the expense itself is the outflow
    amount = Column(Float, nullable=False)

    currency = Column(String(3), nullable=False, default="EUR")
    date = Column(DateTime, nullable=False, default=utcnow)
    merchant = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    vat_rate = Column(Float, nullable=True)
    vat_amount = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @validates("amount")
    def _validate_amount(self, key, value):
        amount = _finite(value, "amount")
        if amount < 0:
            raise InvalidAmount(f"Expense amount must be >= 0, got {amount}")
        return amount


class Income(Base):
    __tablename__ = "incomes"
    __table_args__ = (Index("ix_incomes_workspace_date", "workspace_id", "date"),)

    id = Column(String(36), primary_key=True, default=new_id)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")

    # Free-text payer / income stream, e.g. "Salary"
    source = Column(String, nullable=False)

    date = Column(DateTime, nullable=False, default=utcnow)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @validates("amount")
    def _validate_amount(self, key, value):
        amount = _finite(value, "amount")
        if amount <= 0:
            raise InvalidAmount(f"Income amount must be positive, got {amount}")
        return amount
