"""
services/balance_service.py — Per-member balance computation for a group.

This file is the SINGLE SOURCE OF TRUTH for how balances are computed.
The formula must not be reimplemented elsewhere in the codebase.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - compute_balances() is a pure function over already-fetched records.
  - compute_group_balances() reads through a LedgerSource and delegates.
  - Returns plain Python dicts and lists.

Sign convention:
  positive balance = others owe this member
  negative balance = this member owes others

Zero-sum guarantee:
  Every expense credits exactly what it debits and every settlement moves
  the same amount in both directions, so sum(balances) == 0 up to Decimal
  rounding of repeating shares. assert_balanced() checks this before a
  response is built.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING

from splitsmart.app.errors import AppError, ErrorCode
from splitsmart.app.models.expense import Expense
from splitsmart.app.models.group import Group
from splitsmart.app.models.settlement import Settlement
from splitsmart.app.services.split_service import (
    round_for_display,
    split_amount,
    to_decimal,
)

if TYPE_CHECKING:
    from splitsmart.app.extensions import LedgerSource

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.000001")


# ── Private helpers ────────────────────────────────────────────────────────

def _apply(
        balances: dict[str, Decimal],
        member_id: str,
        delta: Decimal,
        group: Group,
        record_id: str,
) -> None:
    """
    Adds `delta` to `member_id`'s balance.

    Ids outside the group's member list are kept, not dropped: the amount is
    accumulated under that id so the zero-sum property still holds.
    """
    if member_id not in balances:
        logger.warning(
            "Record %s references %r, which is not a member of group %s; "
            "accumulating its balance anyway.",
            record_id,
            member_id,
            group.id,
        )
        balances[member_id] = Decimal("0")
    balances[member_id] += delta


# ── Core algorithm ─────────────────────────────────────────────────────────

def compute_balances(
        group: Group,
        expenses: Iterable[Expense],
        settlements: Iterable[Settlement],
        include_unconfirmed: bool = True,
) -> dict[str, Decimal]:
    """
    Canonical balance computation for a group.

    Returns {member_id: net_balance}; group members first in member order,
    then any stray ids in first-seen order.

    Algorithm:
      1. Every member starts at zero.
      2. For each expense: credit the payer the full amount, debit every
         participant their equal share. A payer inside the split therefore
         nets amount - share; a payer outside it nets +amount.
      3. For each settlement: from_member += amount, to_member -= amount.
         Unconfirmed settlements count unless include_unconfirmed is False.
      4. Records belonging to another group are ignored.

    Amounts may be int, str, float or Decimal; they are coerced with
    to_decimal() before summation.

    Inputs are never mutated; calling twice with the same inputs returns
    equal results.
    """
    balances: dict[str, Decimal] = {
        member_id: Decimal("0") for member_id in group.member_ids
    }

    for expense in expenses:
        if expense.group_id != group.id:
            continue
        amount = to_decimal(expense.amount)
        share = split_amount(amount, expense.split_between)
        _apply(balances, expense.paid_by, amount, group, expense.id)
        for member_id in expense.split_between:
            _apply(balances, member_id, -share, group, expense.id)

    for settlement in settlements:
        if settlement.group_id != group.id:
            continue
        if not settlement.confirmed and not include_unconfirmed:
            continue
        amount = to_decimal(settlement.amount)
        _apply(balances, settlement.from_member, amount, group, settlement.id)
        _apply(balances, settlement.to_member, -amount, group, settlement.id)

    return balances


def balance_sum(balances: dict[str, Decimal]) -> Decimal:
    return sum(balances.values(), Decimal("0"))


def assert_balanced(
        balances: dict[str, Decimal],
        tolerance: Decimal = DEFAULT_TOLERANCE,
        group_id: str | None = None,
) -> None:
    """
    Raises AppError(INTERNAL_ERROR, 500) if |sum(balances)| > tolerance.

    A non-zero sum means the source data is corrupt; it is never a user error.
    """
    total = balance_sum(balances)
    if abs(total) > tolerance:
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Balance integrity check failed: sum was {total} (expected 0). "
            f"Group {group_id} has inconsistent financial data.",
            500,
        )


# ── Source-backed entry points ─────────────────────────────────────────────

def get_group_or_404(group_id: str, source: "LedgerSource") -> Group:
    group = source.get_group(group_id)
    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {group_id} does not exist.",
            404,
        )
    return group


def compute_group_balances(
        group_id: str,
        source: "LedgerSource",
        include_unconfirmed: bool = True,
) -> dict[str, Decimal]:
    """
    Reads the group's records from `source` and computes its balances.

    Raises:
        AppError(GROUP_NOT_FOUND, 404) -- group does not exist.
    """
    group = get_group_or_404(group_id, source)
    return compute_balances(
        group,
        source.expenses_for_group(group_id),
        source.settlements_for_group(group_id),
        include_unconfirmed=include_unconfirmed,
    )


def get_balance_response(
        group_id: str,
        source: "LedgerSource",
        include_unconfirmed: bool = True,
        tolerance: Decimal = DEFAULT_TOLERANCE,
) -> dict:
    """
    Builds the payload for GET /groups/:id/balances.

    Balances are rounded to cents for display only; the integrity check runs
    on the unrounded values.

    Raises:
        AppError(GROUP_NOT_FOUND, 404) -- group does not exist.
        AppError(INTERNAL_ERROR, 500)  -- sum of balances is not zero.
    """
    group = get_group_or_404(group_id, source)
    balances = compute_balances(
        group,
        source.expenses_for_group(group_id),
        source.settlements_for_group(group_id),
        include_unconfirmed=include_unconfirmed,
    )
    assert_balanced(balances, tolerance, group_id=group_id)

    return {
        "group_id": group.id,
        "group_name": group.name,
        "balances": [
            {
                "member_id": member_id,
                "name": group.member_name(member_id),
                "is_member": group.has_member(member_id),
                "balance": round_for_display(balance),
            }
            for member_id, balance in balances.items()
        ],
        "balance_sum": round_for_display(balance_sum(balances)),
        "include_unconfirmed": include_unconfirmed,
    }
