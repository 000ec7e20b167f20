"""
schemas/expense_schema.py — Marshmallow schema for expense records.

Turns a duck-typed expense document (as the persistence layer returns it)
into a typed Expense model.

Validation responsibility:
  - This file:
      - Field types, enum values, decimal precision
      - Positive amount
      - EMPTY_SPLIT (400) — split_between must name at least one member
      - Non-empty-after-trim enforcement for description
      - camelCase / snake_case key aliases
  - services/expense_service.py:
      - PAYER_NOT_MEMBER (422)      — requires the group's member list
      - SPLIT_USER_NOT_MEMBER (422) — requires the group's member list

IMPORTANT: Unknown keys are excluded, not rejected. Stored documents carry
display-only fields (groupName, created_at, ...) the ledger does not need.
"""

from __future__ import annotations

from datetime import timezone
from decimal import Decimal

from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    post_load,
    pre_load,
    validate,
)

from splitsmart.app.errors import ErrorCode
from splitsmart.app.models.expense import Category, Expense


# ── Shared monetary amount validator ──────────────────────────────────────
#
# Input with more than 2 decimal places is REJECTED with
# INVALID_AMOUNT_PRECISION — never rounded or truncated.
# ──────────────────────────────────────────────────────────────────────────

def _validate_monetary_amount(value: Decimal) -> None:
    """
    Validates a monetary Decimal value:
      - Must be strictly greater than zero.
      - Must have at most 2 decimal places.
    """
    if value <= Decimal("0"):
        raise ValidationError(ErrorCode.INVALID_AMOUNT)

    # Decimal("10.123").as_tuple().exponent == -3  → 3 dp → REJECT
    # Decimal("10.12").as_tuple().exponent  == -2  → 2 dp → accept
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or only whitespace."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _validate_non_empty_split(value: list) -> None:
    if not value:
        raise ValidationError(ErrorCode.EMPTY_SPLIT)


# ── Key aliases ───────────────────────────────────────────────────────────
# Stored documents mix camelCase, snake_case and upper-case spellings.
# The first alias present wins; the canonical key always wins over aliases.

_ALIASES: dict[str, tuple[str, ...]] = {
    "id":            ("_id", "ID"),
    "group_id":      ("groupId", "GROUP_ID"),
    "paid_by":       ("paidBy", "PAID_BY"),
    "split_between": ("splitBetween", "SPLIT_BETWEEN"),
    "created_by":    ("createdBy", "CREATED_BY"),
    "date":          ("DATE", "created_at", "createdAt"),
    "amount":        ("AMOUNT",),
    "description":   ("DESCRIPTION",),
    "category":      ("CATEGORY",),
    "settled":       ("SETTLED",),
}


class ExpenseSchema(Schema):
    """
    Loads one expense document into an Expense model.

    Field rules:
      id            : required, non-empty string
      group_id      : required, non-empty string
      paid_by       : required, member id (membership checked in service)
      amount        : required, positive Decimal, max 2 dp
      split_between : required, non-empty list of member ids
      description   : required, non-empty after trim
      category      : optional, Category enum value, default 'other'
      date          : optional ISO-8601 datetime, default now (UTC)
      created_by    : optional member id
      settled       : optional bool, default False
    """

    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True, validate=validate.Length(min=1))
    group_id = fields.Str(required=True, validate=validate.Length(min=1))
    paid_by = fields.Str(required=True, validate=validate.Length(min=1))

    amount = fields.Decimal(
        required=True,
        validate=_validate_monetary_amount,
    )

    split_between = fields.List(
        fields.Str(validate=validate.Length(min=1)),
        required=True,
        validate=_validate_non_empty_split,
    )

    description = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=255,
                error="Description must be between 1 and 255 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    category = fields.Enum(
        Category,
        load_default=Category.OTHER,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_CATEGORY},
    )

    date = fields.AwareDateTime(
        load_default=None,
        default_timezone=timezone.utc,
    )
    created_by = fields.Str(load_default=None, allow_none=True)
    settled = fields.Bool(load_default=False)

    @pre_load
    def normalise_keys(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for canonical, aliases in _ALIASES.items():
            if canonical in data:
                continue
            for alias in aliases:
                if alias in data:
                    data[canonical] = data[alias]
                    break
        # Ids arrive as ints from some stores; the ledger keys on strings.
        for key in ("id", "group_id", "paid_by", "created_by"):
            if isinstance(data.get(key), int) and not isinstance(data.get(key), bool):
                data[key] = str(data[key])
        if isinstance(data.get("split_between"), list):
            data["split_between"] = [
                str(v) if isinstance(v, int) else v for v in data["split_between"]
            ]
        return data

    @post_load
    def make_expense(self, data: dict, **kwargs) -> Expense:
        if data.get("date") is None:
            data.pop("date", None)
        return Expense(**data)
