"""
routes/params.py — Query-string parsing shared by the route modules.
"""

from __future__ import annotations

from flask import request

from splitsmart.app.errors import AppError, ErrorCode

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def parse_bool_arg(name: str, default: bool) -> bool:
    """
    Reads ?<name>=true|false from the current request.

    Missing → `default`. Anything outside the accepted spellings raises
    AppError(INVALID_FIELD, 400) with `name` as the field.
    """
    raw = request.args.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise AppError(
        ErrorCode.INVALID_FIELD,
        f"'{raw}' is not a valid boolean for {name}. Use true or false.",
        400,
        field=name,
    )
