"""
routes/balances.py — Balance route handlers.

Layer rules:
  - Parse query params, call ONE service, return envelope.
  - No business logic. No store queries.

Endpoints (base url_prefix=/api/v1/groups):
  GET /groups/:id/balances                            → 200  per-member balances
  GET /groups/:id/balances?include_unconfirmed=false  → 200  confirmed settlements only
  GET /groups/:id/expenses/:eid/shares                → 200  who owes what on one expense
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from splitsmart.app.extensions import store
from splitsmart.app.routes.params import parse_bool_arg
from splitsmart.app.services import balance_service, debt_service

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/<string:group_id>/balances", methods=["GET"])
def get_balances(group_id: str):
    """
    GET /groups/:id/balances

    Optional query param:
      ?include_unconfirmed=true|false
      Defaults to the INCLUDE_UNCONFIRMED_SETTLEMENTS config value.

    The service asserts sum(balances) == 0 within BALANCE_TOLERANCE and
    raises INTERNAL_ERROR (500) otherwise.
    """
    include_unconfirmed = parse_bool_arg(
        "include_unconfirmed",
        current_app.config["INCLUDE_UNCONFIRMED_SETTLEMENTS"],
    )

    result = balance_service.get_balance_response(
        group_id=group_id,
        source=store,
        include_unconfirmed=include_unconfirmed,
        tolerance=current_app.config["BALANCE_TOLERANCE"],
    )
    return jsonify({"data": result, "warnings": []}), 200


@balances_bp.route("/<string:group_id>/expenses/<string:expense_id>/shares", methods=["GET"])
def get_expense_shares(group_id: str, expense_id: str):
    """GET /groups/:id/expenses/:expense_id/shares — per-participant share and payment status."""
    shares = debt_service.get_expense_shares(group_id, expense_id, store)
    return jsonify({
        "data": {
            "group_id": group_id,
            "expense_id": expense_id,
            "shares": [s.to_dict() for s in shares],
        },
        "warnings": [],
    }), 200
