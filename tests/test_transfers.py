"""Two-leg transfers between budgets."""

from datetime import timedelta

import pytest

from errors import BudgetNotFound, IdempotencyConflict, InvalidAmount, InvalidTransfer
from models import LedgerEntry, utcnow
from app.services import transfers as transfers_module
from app.services.balances import summarize
from app.services.budgets import archive_budget, create_budget
from app.services.ledger import append_entry, record_funding
from app.services.transfers import transfer


def _funded(db, workspace_id, budget_id):
    # Transfer legs are dated "now"; look a little into the future to be safe
    now = utcnow()
    return summarize(db, workspace_id, budget_id, now - timedelta(days=1), now + timedelta(days=1)).funded


def test_transfer_conserves_total_funded(db, workspace, groceries, dining):
    record_funding(db, workspace.id, groceries.id, 100)
    before_x = _funded(db, workspace.id, groceries.id)
    before_y = _funded(db, workspace.id, dining.id)

    transfer(db, workspace.id, groceries.id, dining.id, 30)

    after_x = _funded(db, workspace.id, groceries.id)
    after_y = _funded(db, workspace.id, dining.id)
    assert after_x == pytest.approx(before_x - 30)
    assert after_y == pytest.approx(before_y + 30)
    assert after_x + after_y == pytest.approx(before_x + before_y)


def test_transfer_writes_two_linked_legs(db, workspace, groceries, dining):
    result = transfer(db, workspace.id, groceries.id, dining.id, 25, note="dinner out")

    legs = db.query(LedgerEntry).order_by(LedgerEntry.amount).all()
    assert len(legs) == 2
    debit, credit = legs
    assert (debit.budget_id, debit.amount) == (groceries.id, -25.0)
    assert (credit.budget_id, credit.amount) == (dining.id, 25.0)
    assert debit.date == credit.date
    assert debit.transfer_id == credit.transfer_id == result.transfer_id
    assert debit.note == "Transfer out: dinner out"
    assert credit.note == "Transfer in: dinner out"
    assert {debit.source, credit.source} == {"transfer"}
    assert result.amount == 25.0
    assert not result.replayed


def test_transfer_note_without_suffix(db, workspace, groceries, dining):
    result = transfer(db, workspace.id, groceries.id, dining.id, 5)
    assert result.debit.note == "Transfer out"
    assert result.credit.note == "Transfer in"


def test_transfer_to_same_budget_is_rejected_before_any_write(db, workspace, groceries):
    with pytest.raises(InvalidTransfer):
        transfer(db, workspace.id, groceries.id, groceries.id, 30)
    assert db.query(LedgerEntry).count() == 0


@pytest.mark.parametrize("amount", [0, -5, float("inf")])
def test_transfer_rejects_bad_amounts(db, workspace, groceries, dining, amount):
    with pytest.raises(InvalidAmount):
        transfer(db, workspace.id, groceries.id, dining.id, amount)
    assert db.query(LedgerEntry).count() == 0


def test_transfer_with_one_archived_budget_is_full_failure(db, workspace, groceries, dining):
    archive_budget(db, workspace.id, dining.id)

    with pytest.raises(BudgetNotFound):
        transfer(db, workspace.id, groceries.id, dining.id, 10)
    assert db.query(LedgerEntry).count() == 0


def test_transfer_to_foreign_workspace_budget_is_rejected(db, workspace, other_workspace, groceries):
    foreign = create_budget(db, other_workspace.id, "Office", 300, "quarterly")

    with pytest.raises(BudgetNotFound):
        transfer(db, workspace.id, groceries.id, foreign.id, 10)
    assert db.query(LedgerEntry).count() == 0


def test_failure_after_first_leg_leaves_no_leg(db, workspace, groceries, dining, monkeypatch):
    calls = []

    def crash_on_second_leg(session, entry):
        calls.append(entry)
        if len(calls) == 2:
            raise RuntimeError("connection lost")
        return append_entry(session, entry)

    monkeypatch.setattr(transfers_module, "append_entry", crash_on_second_leg)

    with pytest.raises(RuntimeError):
        transfer(db, workspace.id, groceries.id, dining.id, 40)

    # The first leg was flushed, then rolled back with the transaction
    assert len(calls) == 2
    assert db.query(LedgerEntry).count() == 0


def test_repeating_a_transfer_moves_money_twice(db, workspace, groceries, dining):
    transfer(db, workspace.id, groceries.id, dining.id, 15)
    transfer(db, workspace.id, groceries.id, dining.id, 15)

    assert _funded(db, workspace.id, dining.id) == pytest.approx(30)
    assert db.query(LedgerEntry).count() == 4


def test_idempotency_key_replays_the_first_transfer(db, workspace, groceries, dining):
    first = transfer(db, workspace.id, groceries.id, dining.id, 15, idempotency_key="t-1")
    second = transfer(db, workspace.id, groceries.id, dining.id, 15, idempotency_key="t-1")

    assert second.replayed
    assert second.transfer_id == first.transfer_id
    assert _funded(db, workspace.id, dining.id) == pytest.approx(15)
    assert db.query(LedgerEntry).count() == 2


@pytest.mark.parametrize(
    "change",
    [dict(amount=20), dict(swap=True)],
    ids=["other-amount", "other-direction"],
)
def test_reusing_a_transfer_key_for_another_transfer_conflicts(db, workspace, groceries, dining, change):
    transfer(db, workspace.id, groceries.id, dining.id, 15, idempotency_key="t-1")

    source, dest = (dining.id, groceries.id) if change.get("swap") else (groceries.id, dining.id)
    with pytest.raises(IdempotencyConflict):
        transfer(db, workspace.id, source, dest, change.get("amount", 15), idempotency_key="t-1")
    assert db.query(LedgerEntry).count() == 2


def test_funding_key_does_not_block_a_transfer_with_the_same_key(db, workspace, groceries, dining):
    record_funding(db, workspace.id, groceries.id, 100, idempotency_key="k1")

    result = transfer(db, workspace.id, groceries.id, dining.id, 30, idempotency_key="k1")

    assert not result.replayed
    assert db.query(LedgerEntry).count() == 3
    assert _funded(db, workspace.id, groceries.id) == pytest.approx(70)
    assert _funded(db, workspace.id, dining.id) == pytest.approx(30)


def test_transfer_key_does_not_swallow_a_funding_with_the_same_key(db, workspace, groceries, dining):
    transfer(db, workspace.id, groceries.id, dining.id, 30, idempotency_key="k2")

    entry = record_funding(db, workspace.id, groceries.id, 100, idempotency_key="k2")

    assert entry.amount == 100
    assert entry.source == "manual"
    assert entry.transfer_id is None
    assert db.query(LedgerEntry).count() == 3
    assert _funded(db, workspace.id, groceries.id) == pytest.approx(70)


def test_concurrent_duplicate_transfer_returns_the_committed_legs(
    db, session_factory, workspace, groceries, dining, monkeypatch
):
    real_find_replay = transfers_module._find_replay
    raced = []

    def find_replay_then_lose_race(session, *args):
        found = real_find_replay(session, *args)
        if not raced:
            # Another request commits the same key right after our lookup
            raced.append(True)
            other = session_factory()
            try:
                winner = transfer(
                    other, workspace.id, groceries.id, dining.id, 25, idempotency_key="t-race"
                )
                raced.append(winner.transfer_id)
            finally:
                other.close()
        return found

    monkeypatch.setattr(transfers_module, "_find_replay", find_replay_then_lose_race)

    result = transfer(db, workspace.id, groceries.id, dining.id, 25, idempotency_key="t-race")

    assert result.replayed
    assert result.transfer_id == raced[1]
    assert db.query(LedgerEntry).count() == 2
    assert _funded(db, workspace.id, dining.id) == pytest.approx(25)
