"""
routes/splits.py — Equal-split preview.

Endpoints (base url_prefix=/api/v1/splits):
  POST /splits  {amount, participants}  → 200  {share, display_share, participant_count}
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from splitsmart.app.schemas.split_schema import SplitRequestSchema
from splitsmart.app.services import split_service

splits_bp = Blueprint("splits", __name__)


@splits_bp.route("", methods=["POST"])
def preview_split():
    """
    POST /splits

    share keeps full precision for callers that accumulate it;
    display_share is rounded to cents.
    """
    data = SplitRequestSchema().load(request.get_json(silent=True) or {})
    participants = list(dict.fromkeys(data["participants"]))

    share = split_service.split_amount(data["amount"], participants)
    return jsonify({
        "data": {
            "amount": data["amount"],
            "participant_count": len(participants),
            "share": share,
            "display_share": split_service.display_share(data["amount"], participants),
        },
        "warnings": [],
    }), 200
