"""
services/debt_service.py — "What you owe" view for a single member.

Attribution model:
  Each expense the member shares in but did not pay for yields one debt to
  that expense's payer, equal to the member's share. This is a direct
  per-expense view. It is NOT minimal-transfer netting, and settlements do
  not reduce these entries; the settled position is available as
  ledger_balance in get_balance_overview().

Per-expense views:
  get_expense_shares() lists every participant's share of one expense with
  their payment status; get_expense_payment() is the same answer for one
  member.

Layer rules:
  - No Flask imports. Pure Python with a LedgerSource parameter.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from splitsmart.app.errors import AppError, ErrorCode
from splitsmart.app.models.settlement import PaymentStatus
from splitsmart.app.services.balance_service import compute_balances, get_group_or_404
from splitsmart.app.services.expense_service import (
    expenses_paid_by_member,
    expenses_where_member_owes,
    get_expense_or_404,
)
from splitsmart.app.services.settlement_service import payment_status_for_expense
from splitsmart.app.services.split_service import round_for_display, split_amount

if TYPE_CHECKING:
    from splitsmart.app.extensions import LedgerSource


@dataclass(frozen=True)
class Debt:
    group_id: str
    owed_to: str
    amount: Decimal
    expense_id: str | None = None

    def to_dict(self) -> dict:
        payload = {
            "group_id": self.group_id,
            "owed_to": self.owed_to,
            "amount": round_for_display(self.amount),
        }
        if self.expense_id is not None:
            payload["expense_id"] = self.expense_id
        return payload


@dataclass(frozen=True)
class ExpenseShare:
    member_id: str
    amount: Decimal
    status: PaymentStatus

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "amount": round_for_display(self.amount),
            "status": self.status.value,
        }


def get_debts(user_id: str, source: "LedgerSource") -> list[Debt]:
    """
    Returns one Debt per expense where `user_id` owes the payer a share.

    Covers every group the user is a member of. Newest expense first.
    Amounts keep full precision; Debt.to_dict() rounds for display.
    """
    return [
        Debt(
            group_id=expense.group_id,
            owed_to=expense.paid_by,
            amount=split_amount(expense.amount, expense.split_between),
            expense_id=expense.id,
        )
        for expense in expenses_where_member_owes(user_id, source)
    ]


def summarize_debts(debts: list[Debt]) -> list[Debt]:
    """Folds debts into one entry per (group_id, owed_to), first-seen order."""
    totals: dict[tuple[str, str], Decimal] = {}
    for debt in debts:
        key = (debt.group_id, debt.owed_to)
        totals[key] = totals.get(key, Decimal("0")) + debt.amount

    return [
        Debt(group_id=group_id, owed_to=owed_to, amount=amount)
        for (group_id, owed_to), amount in totals.items()
    ]


def get_balance_overview(
        user_id: str,
        source: "LedgerSource",
        include_unconfirmed: bool = True,
) -> dict:
    """
    Dashboard totals for one member across all their groups.

      you_owe        : sum of get_debts()
      you_are_owed   : shares of other participants in expenses the user paid
      total_balance  : you_are_owed - you_owe (expenses only)
      ledger_balance : sum of the user's compute_balances() entries, which
                       also nets settlements
    """
    you_owe = sum((d.amount for d in get_debts(user_id, source)), Decimal("0"))

    you_are_owed = Decimal("0")
    for expense in expenses_paid_by_member(user_id, source):
        others = [m for m in expense.split_between if m != user_id]
        if others:
            you_are_owed += split_amount(expense.amount, expense.split_between) * len(others)

    ledger_balance = Decimal("0")
    groups = source.groups_for_member(user_id)
    for group in groups:
        balances = compute_balances(
            group,
            source.expenses_for_group(group.id),
            source.settlements_for_group(group.id),
            include_unconfirmed=include_unconfirmed,
        )
        ledger_balance += balances.get(user_id, Decimal("0"))

    return {
        "user_id": user_id,
        "group_count": len(groups),
        "you_owe": round_for_display(you_owe),
        "you_are_owed": round_for_display(you_are_owed),
        "total_balance": round_for_display(you_are_owed - you_owe),
        "ledger_balance": round_for_display(ledger_balance),
    }


def get_expense_shares(
        group_id: str,
        expense_id: str,
        source: "LedgerSource",
) -> list[ExpenseShare]:
    """
    Who owes what on one expense, in split order.

    The payer appears too when they are in the split, with status
    NOT_APPLICABLE. An expense that exists in another group is reported as
    EXPENSE_NOT_FOUND for this one.
    """
    get_group_or_404(group_id, source)
    expense = get_expense_or_404(expense_id, source)
    if expense.group_id != group_id:
        raise AppError(
            ErrorCode.EXPENSE_NOT_FOUND,
            f"Expense {expense_id} does not exist in group {group_id}.",
            404,
        )

    share = split_amount(expense.amount, expense.split_between)
    return [
        ExpenseShare(
            member_id=member_id,
            amount=share,
            status=payment_status_for_expense(expense.id, member_id, source),
        )
        for member_id in expense.split_between
    ]


def get_expense_payment(user_id: str, expense_id: str, source: "LedgerSource") -> dict:
    """Payment status and outstanding share of `user_id` on one expense."""
    expense = get_expense_or_404(expense_id, source)
    status = payment_status_for_expense(expense_id, user_id, source)

    amount_owed = Decimal("0")
    if status is not PaymentStatus.NOT_APPLICABLE:
        amount_owed = split_amount(expense.amount, expense.split_between)

    return {
        "user_id": user_id,
        "expense_id": expense.id,
        "owed_to": expense.paid_by,
        "status": status.value,
        "amount_owed": round_for_display(amount_owed),
    }
