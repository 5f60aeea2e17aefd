"""
Project statistics Blueprint.

Endpoints:
    GET /api/v1/projects/stats                paginated listing with stats
    GET /api/v1/projects/<project_id>/stats   one project

Query params (listing):
    page   (int, default 1)
    limit  (int, default 10, max 100)
    sort   (name | created_at | updated_at | overall_average_grade, '-' prefix = desc)
    search (str, matches name or description, case-insensitive)
"""

import logging

from flask import Blueprint, g, jsonify, request

from artifact_review.auth import require_auth
from artifact_review.services import project_stats
from artifact_review.utils.helpers import int_arg

logger = logging.getLogger(__name__)

project_bp = Blueprint("projects", __name__, url_prefix="/api/v1/projects")


@project_bp.route("/stats", methods=["GET"])
@require_auth
def list_projects_stats():
    result = project_stats.get_projects_stats(
        page=int_arg("page", 1),
        limit=int_arg("limit", 10, maximum=project_stats.MAX_PAGE_SIZE),
        sort=request.args.get("sort") or project_stats.DEFAULT_SORT,
        search=(request.args.get("search") or "").strip() or None,
        actor=g.current_user,
    )
    return jsonify(result), 200


@project_bp.route("/<int:project_id>/stats", methods=["GET"])
@require_auth
def get_project_stats(project_id):
    return jsonify(project_stats.get_project_stats(project_id, actor=g.current_user)), 200
