"""
schemas/group_schema.py — Marshmallow schemas for groups and their members.

Checks in this file:
  - Member ids are non-empty and unique within a group (DUPLICATE_MEMBER).
  - Group name is non-empty after trim.
"""

from __future__ import annotations

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
from splitsmart.app.models.group import Group, Member


def _stringify_id(data):
    if isinstance(data, dict):
        data = dict(data)
        if "id" not in data and "_id" in data:
            data["id"] = data["_id"]
        if isinstance(data.get("id"), int) and not isinstance(data.get("id"), bool):
            data["id"] = str(data["id"])
    return data


class MemberSchema(Schema):

    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True, validate=validate.Length(min=1))
    name = fields.Str(load_default="")
    email = fields.Email(load_default=None)

    @pre_load
    def normalise_keys(self, data, **kwargs):
        data = _stringify_id(data)
        if isinstance(data, dict):
            if data.get("name") is None:
                data.pop("name", None)
            if not data.get("email"):
                data.pop("email", None)
        return data

    @post_load
    def make_member(self, data: dict, **kwargs) -> Member:
        return Member(**data)


class GroupSchema(Schema):
    """
    Loads one group document into a Group model.

    Field rules:
      id         : required, non-empty string
      name       : required, non-empty after trim, max 100 chars
      members    : list of MemberSchema; ids unique (DUPLICATE_MEMBER)
      created_by : optional member id
      color      : optional display colour
    """

    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True, validate=validate.Length(min=1))
    name = fields.Str(
        required=True,
        validate=validate.Length(
            min=1,
            max=100,
            error="Group name must be between 1 and 100 characters.",
        ),
    )
    members = fields.List(fields.Nested(MemberSchema), load_default=list)
    created_by = fields.Str(load_default=None, allow_none=True)
    color = fields.Str(load_default=None, allow_none=True)

    @pre_load
    def normalise_keys(self, data, **kwargs):
        data = _stringify_id(data)
        if isinstance(data, dict):
            if "created_by" not in data and "createdBy" in data:
                data["created_by"] = data["createdBy"]
            if isinstance(data.get("created_by"), int):
                data["created_by"] = str(data["created_by"])
        return data

    @validates_schema
    def validate_members(self, data: dict, **kwargs) -> None:
        if not data.get("name", "x").strip():
            raise ValidationError(
                "This field must not be blank or contain only whitespace.",
                "name",
            )

        seen: set[str] = set()
        for member in data.get("members", []):
            if member.id in seen:
                raise ValidationError(ErrorCode.DUPLICATE_MEMBER, "members")
            seen.add(member.id)

    @post_load
    def make_group(self, data: dict, **kwargs) -> Group:
        return Group(**data)
