"""
Review Blueprint.

Endpoints:
    POST /api/v1/reviews                                         submit (create or update)
    POST /api/v1/reviews/bulk                                    bulk canonical reviews (admin)
    GET  /api/v1/reviews/<artifact_type>/<artifact_id>/canonical official review or empty shape
    GET  /api/v1/reviews/<artifact_type>/<artifact_id>/mine      caller's own review
    GET  /api/v1/reviews/<artifact_type>/<artifact_id>           every review of the artifact

Layer contract:
    - No ORM calls here; all DB work is delegated to review_service.
    - Service exceptions propagate to the app-level error handlers.
"""

import logging

from flask import Blueprint, g, jsonify, request

from artifact_review.auth import require_auth
from artifact_review.services import review_service
from artifact_review.utils.errors import E, api_error

logger = logging.getLogger(__name__)

review_bp = Blueprint("reviews", __name__, url_prefix="/api/v1/reviews")


@review_bp.route("", methods=["POST"])
@require_auth
def submit_review():
    """Create or update a review.

    Body (JSON):
        artifact_type (str, required)
        artifact_id (int, required)
        rating (number 0-5, required)
        comment (str, optional)
        scores (object, optional): criterion name -> number 0-5 or null
        canonical (bool, optional): write the official review (admin only)
    """
    data = request.get_json(silent=True) or {}

    errors = {}
    if not data.get("artifact_type"):
        errors["artifact_type"] = "required"
    if data.get("artifact_id") is None:
        errors["artifact_id"] = "required"
    elif not isinstance(data["artifact_id"], int) or isinstance(data["artifact_id"], bool):
        errors["artifact_id"] = "must be an integer"
    if not isinstance(data.get("canonical", False), bool):
        errors["canonical"] = "must be a boolean"
    if errors:
        return api_error(E.VALIDATION_REQUIRED, "Invalid review payload", details=errors)

    review, created = review_service.submit_review(
        g.current_user,
        data["artifact_type"],
        data["artifact_id"],
        data.get("rating"),
        comment=data.get("comment"),
        scores=data.get("scores"),
        canonical=data.get("canonical", False),
    )
    return jsonify(review), 201 if created else 200


@review_bp.route("/bulk", methods=["POST"])
@require_auth
def submit_bulk_reviews():
    """Bulk canonical review upsert.

    Body (JSON):
        reviews (list, required): items shaped like the single-review body.
    """
    data = request.get_json(silent=True) or {}
    results = review_service.submit_bulk_reviews(g.current_user, data.get("reviews"))
    saved = sum(1 for r in results if r["success"])
    return jsonify({"results": results, "saved": saved, "failed": len(results) - saved}), 200


@review_bp.route("/<artifact_type>/<int:artifact_id>/canonical", methods=["GET"])
@require_auth
def get_canonical_review(artifact_type, artifact_id):
    return jsonify(
        review_service.canonical_review_payload(g.current_user, artifact_type, artifact_id)
    ), 200


@review_bp.route("/<artifact_type>/<int:artifact_id>/mine", methods=["GET"])
@require_auth
def get_my_review(artifact_type, artifact_id):
    return jsonify(review_service.get_my_review(g.current_user, artifact_type, artifact_id)), 200


@review_bp.route("/<artifact_type>/<int:artifact_id>", methods=["GET"])
@require_auth
def list_reviews(artifact_type, artifact_id):
    items = review_service.list_artifact_reviews(g.current_user, artifact_type, artifact_id)
    return jsonify({"items": items, "total": len(items)}), 200
