"""
Review sheet: everything a reviewer needs for one project and artifact type
in a single payload.

    artifacts          ordered by seq, each with its canonical review state
    rubric_criteria    the actor's personal rubric evaluation criteria
    general_comment    the actor's general comment for the type
    aggregate_rubric   stored aggregate (or the empty shape)
"""

from __future__ import annotations

import logging

from artifact_review.services import rubric_service
from artifact_review.services.access import system_reviewer_id, validate_project_access
from artifact_review.services.artifact_kinds import get_kind
from artifact_review.services.general_comment_service import find_general_comment

logger = logging.getLogger(__name__)


def _artifact_row(artifact, review, editable: bool) -> dict:
    row = artifact.to_dict()
    if review is None:
        row.update(reviewed=False, rating=0, comment="", scores={})
    else:
        row.update(
            reviewed=True,
            rating=review.rating,
            comment=review.comment or "",
            scores=review.scores(),
        )
    row["is_editable"] = editable
    return row


def get_review_sheet(actor, project_id: int, artifact_type: str) -> dict:
    kind = get_kind(artifact_type)
    project = validate_project_access(actor, project_id)
    Artifact, Review = kind.artifact_model, kind.review_model

    artifacts = (
        Artifact.query.filter_by(project_id=project.id)
        .order_by(Artifact.seq.asc())
        .all()
    )
    canonical = {
        r.artifact_id: r
        for r in Review.query.filter(
            Review.project_id == project.id,
            Review.reviewer_id == system_reviewer_id(),
        ).all()
    }

    evaluation = rubric_service.find_rubric_evaluation(project.id, kind.key, actor.id)
    gc = find_general_comment(actor.id, project.id, kind.key)

    logger.debug(
        "Review sheet: %d artifacts, %d canonical reviews",
        len(artifacts), len(canonical),
        extra={"project_id": project.id, "artifact_type": kind.key},
    )
    return {
        "project_id": project.id,
        "project_name": project.name,
        "artifact_type": kind.key,
        "label": kind.label,
        "criteria": list(kind.criteria),
        "artifacts": [
            _artifact_row(a, canonical.get(a.id), actor.is_admin) for a in artifacts
        ],
        "rubric_criteria": evaluation.criteria if evaluation else [],
        "general_comment": gc.comment if gc else "",
        "aggregate_rubric": rubric_service.aggregate_payload(project.id, kind.key),
    }
