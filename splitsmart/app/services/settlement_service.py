"""
services/settlement_service.py — Settlement queries and confirmation.

Rules enforced here:
  PAYER_NOT_MEMBER (422)     — from_member must be a group member
  RECIPIENT_NOT_MEMBER (422) — to_member must be a group member
  FORBIDDEN (403)            — only the receiving member confirms
  SETTLEMENT_NOT_FOUND (404)

Confirmation is one-way: confirmed moves false → true and never back.
Confirming an already-confirmed settlement is a no-op.

Payment status for one (expense, member) pair is derived from settlements
whose description carries "Payment for: <expense description>".

Layer rules:
  - No Flask imports. Pure Python with a LedgerSource parameter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from splitsmart.app.errors import AppError, ErrorCode
from splitsmart.app.models.expense import Expense
from splitsmart.app.models.group import Group
from splitsmart.app.models.settlement import PaymentStatus, Settlement
from splitsmart.app.services.expense_service import get_expense_or_404

if TYPE_CHECKING:
    from splitsmart.app.extensions import LedgerSource

logger = logging.getLogger(__name__)

# Prefix the payment flow writes into a settlement's description when it
# pays off one specific expense.
PAYMENT_FOR_PREFIX = "Payment for: "


def validate_settlement_members(settlement: Settlement, group: Group) -> None:
    if not group.has_member(settlement.from_member):
        raise AppError(
            ErrorCode.PAYER_NOT_MEMBER,
            f"Member {settlement.from_member} is not a member of group {group.id}.",
            422,
            field="from_member",
        )
    if not group.has_member(settlement.to_member):
        raise AppError(
            ErrorCode.RECIPIENT_NOT_MEMBER,
            f"Member {settlement.to_member} is not a member of group {group.id}.",
            422,
            field="to_member",
        )


def get_settlement_or_404(settlement_id: str, source: "LedgerSource") -> Settlement:
    settlement = source.get_settlement(settlement_id)
    if settlement is None:
        raise AppError(
            ErrorCode.SETTLEMENT_NOT_FOUND,
            f"Settlement {settlement_id} does not exist.",
            404,
        )
    return settlement


def confirm_settlement(
        settlement_id: str,
        member_id: str,
        source: "LedgerSource",
) -> Settlement:
    """
    Marks a settlement as confirmed by its recipient.

    Raises:
        AppError(SETTLEMENT_NOT_FOUND, 404) -- unknown settlement id.
        AppError(FORBIDDEN, 403)            -- member_id is not the recipient.
    """
    settlement = get_settlement_or_404(settlement_id, source)

    if member_id != settlement.to_member:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "Only the receiving member can confirm a settlement.",
            403,
        )

    if not settlement.confirmed:
        settlement.confirmed = True
        logger.info("Settlement %s confirmed by %s.", settlement_id, member_id)

    return settlement


def _payments_for(
        expense: Expense,
        source: "LedgerSource",
        from_member: str | None = None,
        to_member: str | None = None,
) -> list[Settlement]:
    marker = f"{PAYMENT_FOR_PREFIX}{expense.description}"
    return [
        s for s in source.settlements_for_group(expense.group_id)
        if marker in s.description
        and (from_member is None or s.from_member == from_member)
        and (to_member is None or s.to_member == to_member)
    ]


def settlements_for_expense(
        expense_id: str,
        source: "LedgerSource",
        from_member: str | None = None,
        to_member: str | None = None,
) -> list[Settlement]:
    """
    Returns settlements in the expense's group whose description marks them
    as a payment for that expense. Newest first.

    from_member / to_member narrow the result to one direction of payment.
    """
    expense = get_expense_or_404(expense_id, source)
    return _payments_for(expense, source, from_member, to_member)


def payment_status_for_expense(
        expense_id: str,
        member_id: str,
        source: "LedgerSource",
) -> PaymentStatus:
    """
    Where `member_id` stands on paying their share of one expense.

      NOT_APPLICABLE : member paid the expense, or is not in the split
      UNPAID         : no payment from member to the payer yet
      PENDING        : a payment exists but the payer has not confirmed it
      PAID           : at least one matching payment is confirmed

    Raises:
        AppError(EXPENSE_NOT_FOUND, 404) -- unknown expense id.
    """
    expense = get_expense_or_404(expense_id, source)
    if expense.paid_by == member_id or not expense.involves(member_id):
        return PaymentStatus.NOT_APPLICABLE

    payments = _payments_for(
        expense, source, from_member=member_id, to_member=expense.paid_by,
    )
    if not payments:
        return PaymentStatus.UNPAID
    if any(p.confirmed for p in payments):
        return PaymentStatus.PAID
    return PaymentStatus.PENDING
