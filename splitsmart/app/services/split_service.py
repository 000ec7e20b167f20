"""
services/split_service.py — Equal-share split calculator.

Leaf of the ledger: no I/O, no Flask, no store access.

Precision rules:
  - split_amount() returns the share at full Decimal precision. Balance
    summation always uses this value.
  - round_for_display() quantizes to cents (ROUND_HALF_UP). It is applied
    only when building responses, never before summation.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from splitsmart.app.errors import AppError, ErrorCode

_CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """
    Coerces an int, str, float or Decimal amount to Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1"), not
    Decimal("0.1000000000000000055511151231257827...").
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def split_amount(amount, participants: Iterable[str]) -> Decimal:
    """
    Returns the equal per-person share of `amount` across `participants`.

    Duplicate participant ids count once.

    Raises:
        AppError(EMPTY_SPLIT, 400)    -- no participants; never divides by zero.
        AppError(INVALID_AMOUNT, 400) -- amount is zero or negative.
    """
    unique = list(dict.fromkeys(participants))
    if not unique:
        raise AppError(
            ErrorCode.EMPTY_SPLIT,
            "An expense must be split between at least one member.",
            400,
            field="participants",
        )

    value = to_decimal(amount)
    if value <= 0:
        raise AppError(
            ErrorCode.INVALID_AMOUNT,
            "Amount must be greater than zero.",
            400,
            field="amount",
        )

    return value / len(unique)


def round_for_display(value) -> Decimal:
    """Rounds a monetary value to cents, halves away from zero."""
    rounded = to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)
    # Residue like -1E-26 must not render as "-0.00".
    return abs(rounded) if rounded == 0 else rounded


def display_share(amount, participants: Iterable[str]) -> Decimal:
    return round_for_display(split_amount(amount, participants))
