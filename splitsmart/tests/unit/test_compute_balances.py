"""
tests/unit/test_compute_balances.py — Unit tests for balance_service.

What this file proves:
  - Payer is credited the full amount; each participant is debited a share
  - Payer outside the split is credited the whole amount
  - Settlements move balance from receiver to payer, confirmed or not
  - include_unconfirmed=False drops unconfirmed settlements
  - Every member appears, even with a zero balance
  - Unknown member ids are accumulated and logged, not dropped
  - sum(balances) == 0 within 1e-6 for every scenario
  - compute_balances is pure: repeated calls give equal results and inputs
    are not mutated

Pure Python: plain model objects, MagicMock for the LedgerSource.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from splitsmart.app.errors import AppError, ErrorCode
from splitsmart.app.models.expense import Expense
from splitsmart.app.models.group import Group, Member
from splitsmart.app.models.settlement import Settlement
from splitsmart.app.services.balance_service import (
    assert_balanced,
    balance_sum,
    compute_balances,
    compute_group_balances,
    get_balance_response,
)

_EPSILON = Decimal("1e-6")


# ── Factory helpers ────────────────────────────────────────────────────────

def _group(*member_ids: str, group_id: str = "g1") -> Group:
    return Group(
        id=group_id,
        name="Trip",
        members=[Member(id=m, name=m.upper()) for m in member_ids],
    )


_counter = iter(range(1, 10_000))


def _expense(paid_by: str, amount: str, split: list[str], group_id: str = "g1") -> Expense:
    return Expense(
        id=f"e{next(_counter)}",
        group_id=group_id,
        paid_by=paid_by,
        amount=Decimal(amount),
        split_between=split,
        description="Dinner",
    )


def _settlement(
        from_member: str,
        to_member: str,
        amount: str,
        confirmed: bool = False,
        group_id: str = "g1",
) -> Settlement:
    return Settlement(
        id=f"s{next(_counter)}",
        group_id=group_id,
        from_member=from_member,
        to_member=to_member,
        amount=Decimal(amount),
        confirmed=confirmed,
    )


def _assert_zero_sum(balances: dict) -> None:
    total = balance_sum(balances)
    assert abs(total) <= _EPSILON, f"sum of balances was {total}"


# ── Scenarios ──────────────────────────────────────────────────────────────

def test_two_members_even_split():
    """A pays 100 split [A, B] → A +50, B -50."""
    group = _group("A", "B")
    result = compute_balances(group, [_expense("A", "100", ["A", "B"])], [])

    assert result == {"A": Decimal("50"), "B": Decimal("-50")}
    _assert_zero_sum(result)


def test_settlement_clears_the_debt():
    """Above, then B pays A 50 → both at zero."""
    group = _group("A", "B")
    result = compute_balances(
        group,
        [_expense("A", "100", ["A", "B"])],
        [_settlement("B", "A", "50")],
    )

    assert result == {"A": Decimal("0"), "B": Decimal("0")}


def test_float_amounts_are_coerced_to_decimal():
    """Direct callers may build records with float amounts."""
    group = _group("A", "B")
    expense = Expense(
        id="ef", group_id="g1", paid_by="A", amount=100.0, split_between=["A", "B"],
    )
    settlement = Settlement(
        id="sf", group_id="g1", from_member="B", to_member="A", amount=20.5,
    )

    result = compute_balances(group, [expense], [settlement])

    assert result == {"A": Decimal("29.5"), "B": Decimal("-29.5")}
    assert all(isinstance(v, Decimal) for v in result.values())
    _assert_zero_sum(result)


def test_three_way_split():
    """A pays 90 split [A, B, C] → A +60, B -30, C -30."""
    group = _group("A", "B", "C")
    result = compute_balances(group, [_expense("A", "90", ["A", "B", "C"])], [])

    assert result == {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}
    _assert_zero_sum(result)


def test_payer_not_in_split_is_credited_full_amount():
    group = _group("A", "B", "C")
    result = compute_balances(group, [_expense("A", "60", ["B", "C"])], [])

    assert result["A"] == Decimal("60")
    assert result["B"] == Decimal("-30")
    assert result["C"] == Decimal("-30")


def test_repeating_share_still_sums_to_zero():
    group = _group("A", "B", "C")
    result = compute_balances(
        group,
        [
            _expense("A", "100", ["A", "B", "C"]),
            _expense("B", "10", ["A", "B", "C"]),
            _expense("C", "0.01", ["A", "B", "C"]),
        ],
        [],
    )
    _assert_zero_sum(result)


def test_multiple_payers_and_partial_settlement():
    """
    A pays 100 (A, B); B pays 60 (A, B) → A +20, B -20.
    B pays A 15 → A +5, B -5.
    """
    group = _group("A", "B")
    result = compute_balances(
        group,
        [_expense("A", "100", ["A", "B"]), _expense("B", "60", ["A", "B"])],
        [_settlement("B", "A", "15")],
    )

    assert result["A"] == Decimal("5")
    assert result["B"] == Decimal("-5")
    _assert_zero_sum(result)


def test_every_member_appears_even_with_zero_balance():
    group = _group("A", "B", "C")
    result = compute_balances(group, [_expense("A", "100", ["A", "B"])], [])

    assert list(result) == ["A", "B", "C"]
    assert result["C"] == Decimal("0")


def test_empty_group_has_all_zero_balances():
    result = compute_balances(_group("A", "B"), [], [])
    assert result == {"A": Decimal("0"), "B": Decimal("0")}


def test_records_from_other_groups_are_ignored():
    group = _group("A", "B")
    result = compute_balances(
        group,
        [_expense("A", "100", ["A", "B"], group_id="other")],
        [_settlement("B", "A", "20", group_id="other")],
    )
    assert result == {"A": Decimal("0"), "B": Decimal("0")}


# ── Unconfirmed settlements ────────────────────────────────────────────────

class TestUnconfirmedSettlements:

    def test_included_by_default(self):
        group = _group("A", "B")
        result = compute_balances(
            group,
            [_expense("A", "100", ["A", "B"])],
            [_settlement("B", "A", "50", confirmed=False)],
        )
        assert result["B"] == Decimal("0")

    def test_excluded_when_switched_off(self):
        group = _group("A", "B")
        result = compute_balances(
            group,
            [_expense("A", "100", ["A", "B"])],
            [
                _settlement("B", "A", "20", confirmed=True),
                _settlement("B", "A", "30", confirmed=False),
            ],
            include_unconfirmed=False,
        )
        assert result["A"] == Decimal("30")
        assert result["B"] == Decimal("-30")
        _assert_zero_sum(result)


# ── Unknown member ids ─────────────────────────────────────────────────────

def test_unknown_member_is_accumulated_and_logged(caplog):
    group = _group("A", "B")

    with caplog.at_level(logging.WARNING, logger="splitsmart.app.services.balance_service"):
        result = compute_balances(group, [_expense("A", "90", ["A", "B", "ghost"])], [])

    assert result["ghost"] == Decimal("-30")
    assert list(result) == ["A", "B", "ghost"]
    _assert_zero_sum(result)
    assert any("ghost" in r.getMessage() for r in caplog.records)


def test_unknown_settlement_party_is_accumulated():
    group = _group("A", "B")
    result = compute_balances(group, [], [_settlement("A", "outsider", "10")])

    assert result["A"] == Decimal("10")
    assert result["outsider"] == Decimal("-10")


# ── Purity ─────────────────────────────────────────────────────────────────

def test_repeated_calls_are_identical_and_inputs_untouched():
    group = _group("A", "B", "C")
    expenses = [_expense("A", "100", ["A", "B", "C"]), _expense("C", "45.50", ["B", "C"])]
    settlements = [_settlement("B", "A", "10")]
    snapshot = (list(group.member_ids), [e.amount for e in expenses], list(expenses[0].split_between))

    first = compute_balances(group, expenses, settlements)
    second = compute_balances(group, expenses, settlements)

    assert first == second
    assert first is not second
    assert snapshot == (list(group.member_ids), [e.amount for e in expenses], list(expenses[0].split_between))


# ── assert_balanced ────────────────────────────────────────────────────────

def test_assert_balanced_accepts_rounding_residue():
    assert_balanced({"A": Decimal("1E-20"), "B": Decimal("0")})


def test_assert_balanced_rejects_drift():
    with pytest.raises(AppError) as exc_info:
        assert_balanced({"A": Decimal("0.01"), "B": Decimal("0")}, group_id="g1")

    assert exc_info.value.code == ErrorCode.INTERNAL_ERROR
    assert exc_info.value.http_status == 500


# ── Source-backed entry points ─────────────────────────────────────────────

def _source(group: Group | None, expenses=(), settlements=()) -> MagicMock:
    source = MagicMock()
    source.get_group.return_value = group
    source.expenses_for_group.return_value = list(expenses)
    source.settlements_for_group.return_value = list(settlements)
    return source


def test_compute_group_balances_reads_through_source():
    group = _group("A", "B")
    source = _source(group, [_expense("A", "100", ["A", "B"])])

    result = compute_group_balances("g1", source)

    assert result == {"A": Decimal("50"), "B": Decimal("-50")}
    source.get_group.assert_called_once_with("g1")
    source.expenses_for_group.assert_called_once_with("g1")
    source.settlements_for_group.assert_called_once_with("g1")


def test_compute_group_balances_unknown_group():
    with pytest.raises(AppError) as exc_info:
        compute_group_balances("missing", _source(None))

    assert exc_info.value.code == ErrorCode.GROUP_NOT_FOUND
    assert exc_info.value.http_status == 404


def test_balance_response_rounds_for_display_only():
    group = _group("A", "B", "C")
    source = _source(group, [_expense("A", "100", ["A", "B", "C"])])

    response = get_balance_response("g1", source)

    balances = {b["member_id"]: b for b in response["balances"]}
    assert balances["A"]["balance"] == Decimal("66.67")
    assert balances["B"]["balance"] == Decimal("-33.33")
    assert balances["A"]["name"] == "A"
    assert balances["A"]["is_member"] is True
    assert str(response["balance_sum"]) == "0.00"
    assert response["include_unconfirmed"] is True
