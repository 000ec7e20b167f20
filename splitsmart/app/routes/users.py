"""
routes/users.py — Per-member debt views.

Endpoints (base url_prefix=/api/v1/users):
  GET /users/:id/debts                → 200  one entry per expense the member owes on
  GET /users/:id/debts?summary=true   → 200  one entry per (group, creditor)
  GET /users/:id/overview             → 200  dashboard totals
  GET /users/:id/expenses/:eid/payment → 200  payment status on one expense
"""

from __future__ import annotations

from decimal import Decimal

from flask import Blueprint, current_app, jsonify

from splitsmart.app.extensions import store
from splitsmart.app.routes.params import parse_bool_arg
from splitsmart.app.services import debt_service
from splitsmart.app.services.split_service import round_for_display

users_bp = Blueprint("users", __name__)


@users_bp.route("/<string:user_id>/debts", methods=["GET"])
def get_debts(user_id: str):
    """
    GET /users/:id/debts

    A member with no groups gets an empty list, not a 404: membership lives
    in the groups, not in a user table.
    """
    debts = debt_service.get_debts(user_id, store)
    if parse_bool_arg("summary", False):
        debts = debt_service.summarize_debts(debts)

    total = sum((d.amount for d in debts), Decimal("0"))
    return jsonify({
        "data": {
            "user_id": user_id,
            "debts": [d.to_dict() for d in debts],
            "total": round_for_display(total),
        },
        "warnings": [],
    }), 200


@users_bp.route("/<string:user_id>/overview", methods=["GET"])
def get_overview(user_id: str):
    """GET /users/:id/overview — you owe / you are owed / net position."""
    include_unconfirmed = parse_bool_arg(
        "include_unconfirmed",
        current_app.config["INCLUDE_UNCONFIRMED_SETTLEMENTS"],
    )
    result = debt_service.get_balance_overview(
        user_id,
        store,
        include_unconfirmed=include_unconfirmed,
    )
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<string:user_id>/expenses/<string:expense_id>/payment", methods=["GET"])
def get_expense_payment(user_id: str, expense_id: str):
    """
    GET /users/:id/expenses/:expense_id/payment

    status is one of not_applicable, unpaid, pending, paid.
    """
    result = debt_service.get_expense_payment(user_id, expense_id, store)
    return jsonify({"data": result, "warnings": []}), 200
