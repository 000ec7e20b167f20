"""
models/expense.py — Expense record.

Plain data. No business logic. No imports from services or routes.

Key design points:
  - `amount` is Decimal when loaded through the schemas. Direct callers
    may pass int or float; the ledger coerces with to_decimal().
  - `split_between` keeps the order the client sent, without duplicates.
  - `settled` is a display flag only; the ledger does not read it.
  - Category is a Python enum so schemas and services never repeat
    string literals.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal


# ── Enum Definitions ───────────────────────────────────────────────────────

class Category(str, enum.Enum):
    FOOD            = "food"
    TRANSPORT       = "transport"
    ACCOMMODATION   = "accommodation"
    ENTERTAINMENT   = "entertainment"
    UTILITIES       = "utilities"
    SHOPPING        = "shopping"
    OTHER           = "other"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Model ──────────────────────────────────────────────────────────────────

@dataclass
class Expense:
    id: str
    group_id: str
    paid_by: str
    amount: Decimal
    split_between: list[str]
    description: str = ""
    category: Category = Category.OTHER
    date: datetime = field(default_factory=_utcnow)
    created_by: str | None = None
    settled: bool = False

    def __post_init__(self) -> None:
        # dict.fromkeys de-duplicates while keeping first-seen order.
        self.split_between = list(dict.fromkeys(self.split_between))

    def involves(self, member_id: str) -> bool:
        return member_id in self.split_between

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Expense id={self.id} "
            f"group_id={self.group_id} "
            f"paid_by={self.paid_by} "
            f"amount={self.amount} "
            f"split={len(self.split_between)}>"
        )
