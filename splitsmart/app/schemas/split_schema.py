"""
schemas/split_schema.py — Marshmallow schema for POST /splits.

Only field shape is checked here. Division itself, including the
EMPTY_SPLIT guard for direct callers, lives in services/split_service.py.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate

from splitsmart.app.errors import ErrorCode


def _validate_positive(value: Decimal) -> None:
    if value <= Decimal("0"):
        raise ValidationError(ErrorCode.INVALID_AMOUNT)


def _validate_non_empty_split(value: list) -> None:
    if not value:
        raise ValidationError(ErrorCode.EMPTY_SPLIT)


class SplitRequestSchema(Schema):
    """
    POST /splits

    Field rules:
      amount       : required, positive Decimal (any precision; the share is
                     returned both exact and rounded for display)
      participants : required, non-empty list of member ids
    """

    amount = fields.Decimal(
        required=True,
        validate=_validate_positive,
    )

    participants = fields.List(
        fields.Str(validate=validate.Length(min=1)),
        required=True,
        validate=_validate_non_empty_split,
    )
