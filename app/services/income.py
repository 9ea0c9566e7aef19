"""
Income records: money coming into a workspace before it is budgeted.
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import DEFAULT_CURRENCY
from models import Income
from app.services.periods import parse_bound, resolve_window

logger = logging.getLogger(__name__)


def record_income(
    db: Session,
    workspace_id: str,
    amount,
    source: str,
    date: datetime | None = None,
    currency: str | None = None,
    notes: str | None = None,
) -> Income:
    income = Income(
        workspace_id=workspace_id,
        amount=amount,
        source=(source or "").strip() or "Other",
        currency=currency or DEFAULT_CURRENCY,
        notes=notes,
    )
    when = parse_bound(date)
    if when is not None:
        income.date = when

    try:
        db.add(income)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(income)
    logger.info("[income] %s +%.2f %s from %r", income.id, income.amount, income.currency, income.source)
    return income


def list_income(db: Session, workspace_id: str, start=None, end=None) -> List[Income]:
    query = db.query(Income).filter(Income.workspace_id == workspace_id)
    start_dt = parse_bound(start, "from")
    end_dt = parse_bound(end, "to")
    if start_dt is not None:
        query = query.filter(Income.date >= start_dt)
    if end_dt is not None:
        query = query.filter(Income.date < end_dt)
    return query.order_by(Income.date.desc()).all()


def income_total(db: Session, workspace_id: str, start=None, end=None):
    """Sum of income over [start, end); returns (total, start, end)."""
    window_from, window_to = resolve_window(start, end)
    total = (
        db.query(func.coalesce(func.sum(Income.amount), 0.0))
        .filter(
            Income.workspace_id == workspace_id,
            Income.date >= window_from,
            Income.date < window_to,
        )
        .scalar()
    )
    return float(total or 0.0), window_from, window_to
