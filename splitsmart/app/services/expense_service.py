"""
services/expense_service.py — Expense queries and state transitions.

Membership rules enforced here (the schema cannot see the group):
  PAYER_NOT_MEMBER (422)      — paid_by must be a group member
  SPLIT_USER_NOT_MEMBER (422) — every split_between id must be a group member

These checks run at the boundary (snapshot loading with STRICT_MEMBERS).
balance_service stays tolerant of unknown ids.

Layer rules:
  - No Flask imports. Pure Python with a LedgerSource parameter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from splitsmart.app.errors import AppError, ErrorCode
from splitsmart.app.models.expense import Expense
from splitsmart.app.models.group import Group

if TYPE_CHECKING:
    from splitsmart.app.extensions import LedgerSource


def validate_expense_members(expense: Expense, group: Group) -> None:
    """
    Raises AppError (422) if the payer or any participant is not a member
    of `group`.
    """
    if not group.has_member(expense.paid_by):
        raise AppError(
            ErrorCode.PAYER_NOT_MEMBER,
            f"Member {expense.paid_by} is not a member of group {group.id}.",
            422,
            field="paid_by",
        )

    for member_id in expense.split_between:
        if not group.has_member(member_id):
            raise AppError(
                ErrorCode.SPLIT_USER_NOT_MEMBER,
                f"Member {member_id} in split_between is not a member of group {group.id}.",
                422,
                field="split_between",
            )


def get_expense_or_404(expense_id: str, source: "LedgerSource") -> Expense:
    expense = source.get_expense(expense_id)
    if expense is None:
        raise AppError(
            ErrorCode.EXPENSE_NOT_FOUND,
            f"Expense {expense_id} does not exist.",
            404,
        )
    return expense


def settle_expense(expense_id: str, source: "LedgerSource") -> Expense:
    """
    Marks an expense as settled.

    `settled` is a display flag. Balances are unaffected: only settlements
    move money in the ledger.
    """
    expense = get_expense_or_404(expense_id, source)
    expense.settled = True
    return expense


def expenses_where_member_owes(member_id: str, source: "LedgerSource") -> list[Expense]:
    """
    Returns expenses, across every group `member_id` belongs to, that the
    member shares in but did not pay for. Newest first.
    """
    owed: list[Expense] = []
    for group in source.groups_for_member(member_id):
        for expense in source.expenses_for_group(group.id):
            if expense.paid_by != member_id and expense.involves(member_id):
                owed.append(expense)

    owed.sort(key=lambda e: e.date, reverse=True)
    return owed


def expenses_paid_by_member(member_id: str, source: "LedgerSource") -> list[Expense]:
    """Returns expenses paid by `member_id` across their groups. Newest first."""
    paid: list[Expense] = []
    for group in source.groups_for_member(member_id):
        paid.extend(
            e for e in source.expenses_for_group(group.id) if e.paid_by == member_id
        )

    paid.sort(key=lambda e: e.date, reverse=True)
    return paid
