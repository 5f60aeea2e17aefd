"""General comment per (user, project, artifact type)."""

from __future__ import annotations

import logging

from artifact_review.core.exceptions import ValidationError
from artifact_review.models import db
from artifact_review.models.rubric import GeneralComment
from artifact_review.services.access import validate_project_access
from artifact_review.services.artifact_kinds import get_kind
from artifact_review.utils.helpers import upsert

logger = logging.getLogger(__name__)


def find_general_comment(user_id: int, project_id: int, artifact_type: str):
    return GeneralComment.query.filter_by(
        user_id=user_id, project_id=project_id, artifact_type=artifact_type,
    ).first()


def get_general_comment(actor, project_id: int, artifact_type: str) -> dict:
    kind = get_kind(artifact_type)
    validate_project_access(actor, project_id)
    gc = find_general_comment(actor.id, project_id, kind.key)
    if gc is None:
        return {
            "project_id": project_id,
            "artifact_type": kind.key,
            "user_id": actor.id,
            "comment": "",
            "updated_at": None,
        }
    return gc.to_dict()


def save_general_comment(actor, project_id: int, artifact_type: str, comment) -> tuple[dict, bool]:
    """Create or replace the actor's comment. Returns (comment, created).

    Raises:
        ValidationError: comment missing, not a string or blank.
    """
    kind = get_kind(artifact_type)
    validate_project_access(actor, project_id)
    if not isinstance(comment, str) or not comment.strip():
        raise ValidationError("comment is required", details={"comment": "required"})

    gc, created = upsert(
        GeneralComment,
        {"user_id": actor.id, "project_id": project_id, "artifact_type": kind.key},
        {"comment": comment.strip()},
    )
    db.session.commit()
    logger.info(
        "General comment %s by user %s",
        "created" if created else "updated", actor.id,
        extra={"project_id": project_id, "artifact_type": kind.key},
    )
    return gc.to_dict(), created
