"""Fundings and the append-only ledger."""

from datetime import timedelta

import pytest

from errors import BudgetNotFound, IdempotencyConflict, InvalidAmount, NotFound
from models import LedgerEntry
from app.services.balances import summarize
from app.services.budgets import archive_budget, create_budget
from app.services import ledger as ledger_module
from app.services.ledger import append_entry, fund, list_entries, record_funding

from conftest import DAY0


def test_funding_increases_funded_by_its_amount(db, workspace, groceries):
    window = dict(start=DAY0, end=DAY0 + timedelta(days=10))
    before = summarize(db, workspace.id, groceries.id, **window).funded

    record_funding(db, workspace.id, groceries.id, 75.5, date=DAY0 + timedelta(days=2))

    after = summarize(db, workspace.id, groceries.id, **window).funded
    assert after == pytest.approx(before + 75.5)


def test_funding_outside_window_is_not_counted(db, workspace, groceries):
    record_funding(db, workspace.id, groceries.id, 50, date=DAY0 - timedelta(days=1))
    record_funding(db, workspace.id, groceries.id, 20, date=DAY0 + timedelta(days=10))

    summary = summarize(db, workspace.id, groceries.id, DAY0, DAY0 + timedelta(days=10))

    # [from, to) excludes the upper bound
    assert summary.funded == 0


def test_funding_entry_fields(db, workspace, groceries):
    entry = record_funding(
        db, workspace.id, groceries.id, "40", date=DAY0, note="payday", source="manual"
    )

    assert entry.amount == 40.0
    assert entry.workspace_id == workspace.id
    assert entry.budget_id == groceries.id
    assert entry.note == "payday"
    assert entry.source == "manual"
    assert entry.date == DAY0
    assert entry.transfer_id is None


@pytest.mark.parametrize("amount", [0, -10, float("nan"), float("inf"), "abc", None])
def test_funding_rejects_bad_amounts(db, workspace, groceries, amount):
    with pytest.raises(InvalidAmount):
        record_funding(db, workspace.id, groceries.id, amount)
    assert db.query(LedgerEntry).count() == 0


def test_funding_archived_budget_writes_nothing(db, workspace, groceries):
    archive_budget(db, workspace.id, groceries.id)

    with pytest.raises(BudgetNotFound):
        record_funding(db, workspace.id, groceries.id, 10)
    assert db.query(LedgerEntry).count() == 0


def test_funding_unknown_budget_is_not_found(db, workspace):
    with pytest.raises(NotFound):
        record_funding(db, workspace.id, "missing-budget", 10)


def test_funding_budget_from_another_workspace_is_rejected(db, workspace, other_workspace):
    foreign = create_budget(db, other_workspace.id, "Travel", 500, "annual")

    with pytest.raises(BudgetNotFound):
        record_funding(db, workspace.id, foreign.id, 10)
    assert db.query(LedgerEntry).count() == 0


def test_funding_idempotency_key_replays_first_entry(db, workspace, groceries):
    first = record_funding(db, workspace.id, groceries.id, 30, date=DAY0, idempotency_key="req-1")
    second = record_funding(db, workspace.id, groceries.id, 30, date=DAY0, idempotency_key="req-1")

    assert second.id == first.id
    assert db.query(LedgerEntry).count() == 1


def test_funding_replay_is_flagged(db, workspace, groceries):
    assert not fund(db, workspace.id, groceries.id, 30, idempotency_key="req-1").replayed
    assert fund(db, workspace.id, groceries.id, 30, idempotency_key="req-1").replayed


def test_funding_key_reused_with_other_amount_conflicts(db, workspace, groceries):
    record_funding(db, workspace.id, groceries.id, 30, idempotency_key="req-1")

    with pytest.raises(IdempotencyConflict):
        record_funding(db, workspace.id, groceries.id, 45, idempotency_key="req-1")
    assert db.query(LedgerEntry).count() == 1


def test_funding_keys_are_per_budget(db, workspace, groceries, dining):
    record_funding(db, workspace.id, groceries.id, 30, idempotency_key="req-1")
    record_funding(db, workspace.id, dining.id, 30, idempotency_key="req-1")

    assert db.query(LedgerEntry).count() == 2


def test_concurrent_duplicate_funding_returns_the_committed_entry(
    db, session_factory, workspace, groceries, monkeypatch
):
    real_lookup = ledger_module._find_keyed_funding
    raced = []

    def lookup_then_lose_race(session, *args):
        found = real_lookup(session, *args)
        if not raced:
            # Another request commits the same key right after our lookup
            raced.append(True)
            other = session_factory()
            try:
                winner = record_funding(
                    other, workspace.id, groceries.id, 30, idempotency_key="req-race"
                )
                raced.append(winner.id)
            finally:
                other.close()
        return found

    monkeypatch.setattr(ledger_module, "_find_keyed_funding", lookup_then_lose_race)

    result = fund(db, workspace.id, groceries.id, 30, idempotency_key="req-race")

    assert result.replayed
    assert result.entry.id == raced[1]
    assert db.query(LedgerEntry).count() == 1


def test_funding_without_key_is_not_deduplicated(db, workspace, groceries):
    record_funding(db, workspace.id, groceries.id, 30, date=DAY0)
    record_funding(db, workspace.id, groceries.id, 30, date=DAY0)

    assert db.query(LedgerEntry).count() == 2


def test_append_entry_rejects_zero(db, workspace, groceries):
    with pytest.raises(InvalidAmount):
        append_entry(db, LedgerEntry(workspace_id=workspace.id, budget_id=groceries.id, amount=0))


def test_list_entries_newest_first_and_archived_still_readable(db, workspace, groceries):
    record_funding(db, workspace.id, groceries.id, 10, date=DAY0)
    record_funding(db, workspace.id, groceries.id, 20, date=DAY0 + timedelta(days=3))
    archive_budget(db, workspace.id, groceries.id)

    entries = list_entries(db, workspace.id, groceries.id)
    assert [e.amount for e in entries] == [20.0, 10.0]

    windowed = list_entries(db, workspace.id, groceries.id, DAY0 + timedelta(days=1), None)
    assert [e.amount for e in windowed] == [20.0]
