# app/services/ledger.py
#
# Ledger Entry Store
# Append-only store of signed funding and transfer-leg events. Entries are
# never updated or deleted; a correction is a new, offsetting entry.

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import BudgetNotFound, IdempotencyConflict, InvalidAmount
from models import LedgerEntry
from app.services.budgets import find_active_budget, get_budget
from app.services.periods import parse_bound

logger = logging.getLogger(__name__)


# ---- Validation ----

def require_positive_amount(amount) -> float:
    """Coerce to float and reject zero, negative and non-finite values."""
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidAmount(f"amount must be a number, got {amount!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount(f"amount must be a positive finite number, got {amount!r}")
    return value


# ---- Primitives ----

def append_entry(db: Session, entry: LedgerEntry) -> LedgerEntry:
    """
    Add one entry to the caller's open transaction and flush it.

    Does not commit: funding commits right away, a transfer commits once both
    legs are in. The amount was already validated when the entry was built.
    """
    if entry.amount is None or entry.amount == 0:
        raise InvalidAmount("Ledger entry amount must be non-zero")
    db.add(entry)
    db.flush()
    return entry


# ---- Idempotency ----

def scoped_key(operation: str, idempotency_key: str | None) -> str | None:
    """Prefix a client key with its operation so fundings and transfers never share one."""
    if not idempotency_key:
        return None
    return f"{operation}:{idempotency_key}"


def _find_keyed_funding(db: Session, workspace_id: str, budget_id: str, stored_key: str):
    return (
        db.query(LedgerEntry)
        .filter(
            LedgerEntry.workspace_id == workspace_id,
            LedgerEntry.budget_id == budget_id,
            LedgerEntry.idempotency_key == stored_key,
            LedgerEntry.transfer_id.is_(None),
        )
        .one_or_none()
    )


def _check_funding_replay(existing: LedgerEntry, value: float, idempotency_key: str) -> None:
    if not math.isclose(existing.amount, value, abs_tol=1e-9):
        logger.warning(
            "[fund] key=%r reused with amount %.2f (first request: %.2f)",
            idempotency_key, value, existing.amount,
        )
        raise IdempotencyConflict(idempotency_key)


# ---- Operations ----

@dataclass(frozen=True)
class FundingResult:
    entry: LedgerEntry
    replayed: bool = False


def fund(
    db: Session,
    workspace_id: str,
    budget_id: str,
    amount,
    date: datetime | None = None,
    note: str | None = None,
    source: str = "manual",
    idempotency_key: str | None = None,
) -> FundingResult:
    """
    Fund an active budget with a positive amount.

    With an idempotency_key, a repeated call returns the entry written by the
    first one (replayed=True) instead of adding a second. The same key with
    a different amount raises IdempotencyConflict.
    """
    value = require_positive_amount(amount)
    stored_key = scoped_key("fund", idempotency_key)

    if stored_key:
        existing = _find_keyed_funding(db, workspace_id, budget_id, stored_key)
        if existing is not None:
            _check_funding_replay(existing, value, idempotency_key)
            logger.info("[fund] replayed key=%r -> entry %s", idempotency_key, existing.id)
            return FundingResult(entry=existing, replayed=True)

    if find_active_budget(db, workspace_id, budget_id) is None:
        logger.warning("[fund] rejected: budget %s not active in workspace %s", budget_id, workspace_id)
        raise BudgetNotFound(budget_id)

    entry_kwargs = dict(
        workspace_id=workspace_id,
        budget_id=budget_id,
        amount=value,
        note=note,
        source=source,
        idempotency_key=stored_key,
    )
    when = parse_bound(date)
    if when is not None:
        entry_kwargs["date"] = when

    try:
        entry = append_entry(db, LedgerEntry(**entry_kwargs))
        db.commit()
    except IntegrityError:
        db.rollback()
        if stored_key:
            # A concurrent request with the same key committed first
            existing = _find_keyed_funding(db, workspace_id, budget_id, stored_key)
            if existing is not None:
                _check_funding_replay(existing, value, idempotency_key)
                logger.info("[fund] lost race on key=%r -> entry %s", idempotency_key, existing.id)
                return FundingResult(entry=existing, replayed=True)
        logger.error("[fund] integrity error for budget %s, rolled back", budget_id)
        raise
    except Exception:
        db.rollback()
        logger.error("[fund] failed for budget %s, rolled back", budget_id)
        raise

    db.refresh(entry)
    logger.info("[fund] %s +%.2f -> budget %s", entry.id, entry.amount, budget_id)
    return FundingResult(entry=entry)


def record_funding(db: Session, workspace_id: str, budget_id: str, amount, **kwargs) -> LedgerEntry:
    """Same as fund(), returning just the ledger entry."""
    return fund(db, workspace_id, budget_id, amount, **kwargs).entry


def list_entries(
    db: Session,
    workspace_id: str,
    budget_id: str,
    start=None,
    end=None,
) -> List[LedgerEntry]:
    """Audit trail for one budget (archived ones included), newest first."""
    get_budget(db, workspace_id, budget_id)

    query = db.query(LedgerEntry).filter(
        LedgerEntry.workspace_id == workspace_id,
        LedgerEntry.budget_id == budget_id,
    )
    start_dt = parse_bound(start, "from")
    end_dt = parse_bound(end, "to")
    if start_dt is not None:
        query = query.filter(LedgerEntry.date >= start_dt)
    if end_dt is not None:
        query = query.filter(LedgerEntry.date < end_dt)

    return query.order_by(LedgerEntry.date.desc(), LedgerEntry.created_at.desc()).all()
