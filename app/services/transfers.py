"""
Transfer Coordinator: move funds between two budgets of one workspace.

A transfer is two ledger legs written in a single database transaction:
a negative "Transfer out" entry on the source budget and a positive
"Transfer in" entry on the destination, with the same date and the same
transfer_id. Either both legs commit or the session is rolled back and
neither is visible.

Without an idempotency key the operation is NOT idempotent: repeating a
request moves the money again. Transfer keys live in their own key space,
separate from funding keys, and are scoped to the workspace.
"""

import logging
import math
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import BudgetNotFound, IdempotencyConflict, InvalidTransfer
from models import LedgerEntry, new_id, utcnow
from app.services.budgets import find_budgets_by_ids
from app.services.ledger import append_entry, require_positive_amount, scoped_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    transfer_id: str
    debit: LedgerEntry
    credit: LedgerEntry
    replayed: bool = False

    @property
    def amount(self) -> float:
        return self.credit.amount


def _leg_note(direction: str, note: str | None) -> str:
    note = (note or "").strip()
    return f"Transfer {direction}: {note}" if note else f"Transfer {direction}"


def _find_replay(db: Session, workspace_id: str, stored_key: str) -> TransferResult | None:
    legs = (
        db.query(LedgerEntry)
        .filter(
            LedgerEntry.workspace_id == workspace_id,
            LedgerEntry.idempotency_key == stored_key,
            LedgerEntry.source == "transfer",
        )
        .all()
    )
    debit = next((leg for leg in legs if leg.amount < 0), None)
    credit = next((leg for leg in legs if leg.amount > 0), None)
    if debit is None or credit is None:
        return None
    return TransferResult(transfer_id=debit.transfer_id, debit=debit, credit=credit, replayed=True)


def _check_replay(
    replay: TransferResult, from_budget_id: str, to_budget_id: str, value: float, idempotency_key: str
) -> None:
    same = (
        replay.debit.budget_id == from_budget_id
        and replay.credit.budget_id == to_budget_id
        and math.isclose(replay.amount, value, abs_tol=1e-9)
    )
    if not same:
        logger.warning(
            "[transfer] key=%r reused for a different transfer (first: %s)",
            idempotency_key,
            replay.transfer_id,
        )
        raise IdempotencyConflict(idempotency_key)


def transfer(
    db: Session,
    workspace_id: str,
    from_budget_id: str,
    to_budget_id: str,
    amount,
    note: str | None = None,
    idempotency_key: str | None = None,
) -> TransferResult:
    if from_budget_id == to_budget_id:
        logger.warning("[transfer] rejected: source and destination are both %s", from_budget_id)
        raise InvalidTransfer("Source and destination budget must differ")

    value = require_positive_amount(amount)

    stored_key = scoped_key("transfer", idempotency_key)
    if stored_key:
        replay = _find_replay(db, workspace_id, stored_key)
        if replay is not None:
            _check_replay(replay, from_budget_id, to_budget_id, value, idempotency_key)
            logger.info("[transfer] replayed key=%r -> %s", idempotency_key, replay.transfer_id)
            return replay

    # Both budgets are checked together: one archived or foreign is a full miss
    found = {b.id for b in find_budgets_by_ids(db, workspace_id, [from_budget_id, to_budget_id])}
    missing = [bid for bid in (from_budget_id, to_budget_id) if bid not in found]
    if missing:
        logger.warning("[transfer] rejected: budgets %s not active in workspace %s", missing, workspace_id)
        raise BudgetNotFound(
            missing[0],
            message=f"Budget(s) not found: {', '.join(repr(b) for b in missing)}",
        )

    transfer_id = new_id()
    when = utcnow()

    try:
        debit = append_entry(
            db,
            LedgerEntry(
                workspace_id=workspace_id,
                budget_id=from_budget_id,
                amount=-value,
                date=when,
                note=_leg_note("out", note),
                source="transfer",
                transfer_id=transfer_id,
                idempotency_key=stored_key,
            ),
        )
        credit = append_entry(
            db,
            LedgerEntry(
                workspace_id=workspace_id,
                budget_id=to_budget_id,
                amount=value,
                date=when,
                note=_leg_note("in", note),
                source="transfer",
                transfer_id=transfer_id,
                idempotency_key=stored_key,
            ),
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        if stored_key:
            # A concurrent request with the same key committed first
            replay = _find_replay(db, workspace_id, stored_key)
            if replay is not None:
                _check_replay(replay, from_budget_id, to_budget_id, value, idempotency_key)
                logger.info("[transfer] lost race on key=%r -> %s", idempotency_key, replay.transfer_id)
                return replay
        logger.error("[transfer] integrity error, rolled back %s", transfer_id)
        raise
    except Exception:
        db.rollback()
        logger.error("[transfer] failed, rolled back %s", transfer_id)
        raise

    logger.info(
        "[transfer] %s moved %.2f from %s to %s", transfer_id, value, from_budget_id, to_budget_id
    )
    return TransferResult(transfer_id=transfer_id, debit=debit, credit=credit)
