"""
models/settlement.py — Settlement record.

A direct payment from one member to another, independent of any expense.

Key design points:
  - `amount` is Decimal when loaded through the schemas. Direct callers
    may pass int or float; the ledger coerces with to_decimal().
  - `confirmed` only moves false → true, and only the receiving member
    moves it (settlement_service.confirm_settlement).
  - PaymentStatus is derived per (expense, member) from matching
    settlements; it is never stored.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal


# ── Enum Definitions ───────────────────────────────────────────────────────

class PaymentStatus(str, enum.Enum):
    NOT_APPLICABLE  = "not_applicable"
    UNPAID          = "unpaid"
    PENDING         = "pending"
    PAID            = "paid"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Settlement:
    id: str
    group_id: str
    from_member: str
    to_member: str
    amount: Decimal
    description: str = ""
    date: datetime = field(default_factory=_utcnow)
    confirmed: bool = False

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Settlement id={self.id} "
            f"group_id={self.group_id} "
            f"from={self.from_member} "
            f"to={self.to_member} "
            f"amount={self.amount} "
            f"confirmed={self.confirmed}>"
        )
