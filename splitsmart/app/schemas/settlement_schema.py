"""
schemas/settlement_schema.py — Marshmallow schema for settlement records.

Validation responsibility:
  - This file: field types, decimal precision, positive amount,
    SELF_SETTLEMENT (from_member == to_member), key aliases.
  - services/settlement_service.py:
      - PAYER_NOT_MEMBER (422)     — requires the group's member list
      - RECIPIENT_NOT_MEMBER (422) — requires the group's member list
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
    validates_schema,
)

from splitsmart.app.errors import ErrorCode
from splitsmart.app.models.settlement import Settlement


# ── Shared monetary amount validator ──────────────────────────────────────
#
# Identical logic to the validator in expense_schema.py. Defined here
# rather than imported to keep each schema file self-contained.
# ──────────────────────────────────────────────────────────────────────────

def _validate_monetary_amount(value: Decimal) -> None:
    if value <= Decimal("0"):
        raise ValidationError(ErrorCode.INVALID_AMOUNT)
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


_ALIASES: dict[str, tuple[str, ...]] = {
    "id":          ("_id", "ID"),
    "group_id":    ("groupId", "GROUP_ID"),
    "from_member": ("fromMember", "from_user", "FROM_USER"),
    "to_member":   ("toMember", "to_user", "TO_USER"),
    "date":        ("DATE", "created_at", "createdAt"),
    "amount":      ("AMOUNT",),
    "description": ("DESCRIPTION",),
    "confirmed":   ("CONFIRMED",),
}


class SettlementSchema(Schema):
    """
    Loads one settlement document into a Settlement model.

    Field rules:
      id          : required, non-empty string
      group_id    : required, non-empty string
      from_member : required, the paying member
      to_member   : required, the receiving member; must differ from from_member
      amount      : required, positive Decimal, max 2 dp
      description : optional, free text
      date        : optional ISO-8601 datetime, default now (UTC)
      confirmed   : optional bool, default False
    """

    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True, validate=validate.Length(min=1))
    group_id = fields.Str(required=True, validate=validate.Length(min=1))
    from_member = fields.Str(required=True, validate=validate.Length(min=1))
    to_member = fields.Str(required=True, validate=validate.Length(min=1))

    amount = fields.Decimal(
        required=True,
        validate=_validate_monetary_amount,
    )

    description = fields.Str(load_default="")
    date = fields.AwareDateTime(load_default=None, default_timezone=timezone.utc)
    confirmed = fields.Bool(load_default=False)

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
        for key in ("id", "group_id", "from_member", "to_member"):
            if isinstance(data.get(key), int) and not isinstance(data.get(key), bool):
                data[key] = str(data[key])
        if data.get("description") is None:
            data.pop("description", None)
        return data

    @validates_schema
    def validate_parties(self, data: dict, **kwargs) -> None:
        if data.get("from_member") and data.get("from_member") == data.get("to_member"):
            raise ValidationError(ErrorCode.SELF_SETTLEMENT, "to_member")

    @post_load
    def make_settlement(self, data: dict, **kwargs) -> Settlement:
        if data.get("date") is None:
            data.pop("date", None)
        return Settlement(**data)
