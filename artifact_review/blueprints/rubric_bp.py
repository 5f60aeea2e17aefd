"""
Rubric Blueprint: per-project rubric data for one artifact type.

Endpoints:
    GET      /api/v1/projects/<pid>/rubrics/<artifact_type>/aggregate
    GET/PUT  /api/v1/projects/<pid>/rubrics/<rubric_type>/evaluation
    GET/PUT  /api/v1/projects/<pid>/general-comments/<artifact_type>
    GET      /api/v1/projects/<pid>/review-sheet/<artifact_type>
"""

import logging

from flask import Blueprint, g, jsonify, request

from artifact_review.auth import require_auth
from artifact_review.services import general_comment_service, review_sheet_service, rubric_service

logger = logging.getLogger(__name__)

rubric_bp = Blueprint("rubrics", __name__, url_prefix="/api/v1/projects")


@rubric_bp.route("/<int:project_id>/rubrics/<artifact_type>/aggregate", methods=["GET"])
@require_auth
def get_aggregate(project_id, artifact_type):
    return jsonify(
        rubric_service.get_aggregate_rubric(g.current_user, project_id, artifact_type)
    ), 200


@rubric_bp.route("/<int:project_id>/rubrics/<rubric_type>/evaluation", methods=["GET"])
@require_auth
def get_evaluation(project_id, rubric_type):
    return jsonify(
        rubric_service.get_rubric_evaluation(g.current_user, project_id, rubric_type)
    ), 200


@rubric_bp.route("/<int:project_id>/rubrics/<rubric_type>/evaluation", methods=["PUT"])
@require_auth
def save_evaluation(project_id, rubric_type):
    """Create or replace the caller's rubric evaluation.

    Body (JSON):
        criteria (list, required): [{name, description?, score, comment?}]
        general_comment (str, optional)
    """
    data = request.get_json(silent=True) or {}
    evaluation, created = rubric_service.save_rubric_evaluation(
        g.current_user,
        project_id,
        rubric_type,
        data.get("criteria"),
        general_comment=data.get("general_comment"),
    )
    return jsonify(evaluation), 201 if created else 200


@rubric_bp.route("/<int:project_id>/general-comments/<artifact_type>", methods=["GET"])
@require_auth
def get_general_comment(project_id, artifact_type):
    return jsonify(
        general_comment_service.get_general_comment(g.current_user, project_id, artifact_type)
    ), 200


@rubric_bp.route("/<int:project_id>/general-comments/<artifact_type>", methods=["PUT"])
@require_auth
def save_general_comment(project_id, artifact_type):
    data = request.get_json(silent=True) or {}
    comment, created = general_comment_service.save_general_comment(
        g.current_user, project_id, artifact_type, data.get("comment"),
    )
    return jsonify(comment), 201 if created else 200


@rubric_bp.route("/<int:project_id>/review-sheet/<artifact_type>", methods=["GET"])
@require_auth
def get_review_sheet(project_id, artifact_type):
    return jsonify(
        review_sheet_service.get_review_sheet(g.current_user, project_id, artifact_type)
    ), 200
