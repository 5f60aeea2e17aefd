"""
Review service: review submission and the canonical review resolver.

Canonical review
    For every artifact there is at most one "official" review: the one
    stored under the reserved system-reviewer id. Only admins may write it.
    Its absence is the normal "not yet reviewed" state, not an error.

Submission
    1. validate type, rating and scores; resolve the artifact
    2. authorise (admin for canonical, project membership otherwise)
    3. upsert on (artifact, reviewer) and commit
    4. recompute the (project, type) aggregate rubric (canonical writes only)

Step 4 is isolated from the write: if the recompute fails the error is
logged and the saved review is still returned.
"""

from __future__ import annotations

import logging

from artifact_review.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from artifact_review.models import db
from artifact_review.models.user import User
from artifact_review.services import rubric_service
from artifact_review.services.access import (
    is_system_reviewer,
    require_admin,
    system_reviewer_id,
    validate_project_access,
)
from artifact_review.services.artifact_kinds import get_kind
from artifact_review.services.scoring import coerce_score, coerce_scores
from artifact_review.utils.helpers import get_or_raise, upsert

logger = logging.getLogger(__name__)

SYSTEM_REVIEWER_NAME = "System reviewer"


# ── Private helpers ────────────────────────────────────────────────────────────


def _review_dict(kind, review) -> dict:
    d = review.to_dict()
    d["artifact_type"] = kind.key
    d["canonical"] = is_system_reviewer(review.reviewer_id)
    return d


def _empty_review(kind, artifact_id: int) -> dict:
    return {
        "artifact_type": kind.key,
        "artifact_id": artifact_id,
        "rating": 0,
        "comment": "",
        "scores": {},
        "reviewed": False,
    }


def _write_review(kind, artifact, reviewer_id: int, rating, comment, scores):
    """Validate and upsert one review row. Does not commit."""
    values = {
        "project_id": artifact.project_id,
        "rating": coerce_score(rating, "rating", required=True),
    }
    if comment is not None:
        if not isinstance(comment, str):
            raise ValidationError("comment must be a string", details={"comment": "not a string"})
        values["comment"] = comment.strip()
    values.update(coerce_scores(scores, kind.criteria))

    review, created = upsert(
        kind.review_model,
        {"artifact_id": artifact.id, "reviewer_id": reviewer_id},
        values,
    )
    return review, created


def _recompute_quietly(project_id: int, artifact_type: str) -> bool:
    """Run the aggregate recompute; log and swallow failures."""
    try:
        rubric_service.recompute_aggregate(project_id, artifact_type)
        return True
    except Exception:
        db.session.rollback()
        logger.exception(
            "Aggregate rubric recompute failed; aggregate left stale",
            extra={"project_id": project_id, "artifact_type": artifact_type},
        )
        return False


# ── Canonical review resolver ─────────────────────────────────────────────────


def get_canonical_review(artifact_type: str, artifact_id: int):
    """Return the system reviewer's review for the artifact, or None.

    Raises:
        InvalidArtifactTypeError: unknown artifact_type.
    """
    kind = get_kind(artifact_type)
    return kind.review_model.query.filter_by(
        artifact_id=artifact_id, reviewer_id=system_reviewer_id(),
    ).first()


def canonical_review_payload(actor, artifact_type: str, artifact_id: int) -> dict:
    """Canonical review as API payload, or the default empty shape."""
    kind = get_kind(artifact_type)
    artifact = get_or_raise(kind.artifact_model, artifact_id, kind.label)
    validate_project_access(actor, artifact.project_id)

    review = get_canonical_review(kind.key, artifact_id)
    if review is None:
        return _empty_review(kind, artifact_id)
    d = _review_dict(kind, review)
    d["reviewed"] = True
    return d


# ── Submission ────────────────────────────────────────────────────────────────


def submit_review(
    actor,
    artifact_type: str,
    artifact_id: int,
    rating,
    comment: str | None = None,
    scores: dict | None = None,
    canonical: bool = False,
) -> tuple[dict, bool]:
    """Create or update a review and refresh the aggregate rubric.

    Args:
        actor: Authenticated User.
        canonical: Write under the system reviewer identity (admin only).

    Returns:
        (review_dict, created)

    Raises:
        InvalidArtifactTypeError, ValidationError, NotFoundError, ForbiddenError
    """
    kind = get_kind(artifact_type)
    artifact = get_or_raise(kind.artifact_model, artifact_id, kind.label)

    if canonical:
        require_admin(actor, "submit official reviews")
        reviewer_id = system_reviewer_id()
    else:
        reviewer_id = actor.id
    validate_project_access(actor, artifact.project_id)

    review, created = _write_review(kind, artifact, reviewer_id, rating, comment, scores)
    db.session.commit()

    logger.info(
        "Review %s by user %s%s",
        "created" if created else "updated", actor.id,
        " (canonical)" if canonical else "",
        extra={
            "project_id": artifact.project_id,
            "artifact_type": kind.key,
            "artifact_id": artifact.id,
            "reviewer_id": reviewer_id,
        },
    )

    if reviewer_id == system_reviewer_id():
        _recompute_quietly(artifact.project_id, kind.key)
    return _review_dict(kind, review), created


def submit_bulk_reviews(actor, items) -> list[dict]:
    """Upsert many canonical reviews in one call (admin only).

    Each item is validated and written independently; a bad item yields a
    failed result entry instead of aborting the batch. Every affected
    (project, type) aggregate is recomputed once at the end.

    Returns:
        [{"artifact_type", "artifact_id", "success", "message"?}, ...]
    """
    require_admin(actor, "submit official reviews")
    if not isinstance(items, list) or not items:
        raise ValidationError("reviews must be a non-empty list", details={"reviews": "required"})

    reviewer_id = system_reviewer_id()
    results = []
    touched: set[tuple[int, str]] = set()

    for item in items:
        if not isinstance(item, dict):
            results.append({"artifact_id": None, "success": False, "message": "Invalid review entry"})
            continue
        artifact_type = item.get("artifact_type")
        artifact_id = item.get("artifact_id")
        try:
            if artifact_id is None:
                raise ValidationError("artifact_id is required")
            kind = get_kind(artifact_type)
            artifact = get_or_raise(kind.artifact_model, artifact_id, kind.label)
            validate_project_access(actor, artifact.project_id)
            _write_review(
                kind, artifact, reviewer_id,
                item.get("rating"), item.get("comment"), item.get("scores"),
            )
        except (ValidationError, NotFoundError, ForbiddenError, ConflictError) as exc:
            results.append({
                "artifact_type": artifact_type,
                "artifact_id": artifact_id,
                "success": False,
                "message": str(exc),
            })
            continue
        touched.add((artifact.project_id, kind.key))
        results.append({"artifact_type": kind.key, "artifact_id": artifact.id, "success": True})

    db.session.commit()
    succeeded = sum(1 for r in results if r["success"])
    logger.info("Bulk review by user %s: %d/%d saved", actor.id, succeeded, len(results))

    for project_id, key in sorted(touched):
        _recompute_quietly(project_id, key)
    return results


# ── Per-user views ────────────────────────────────────────────────────────────


def get_my_review(actor, artifact_type: str, artifact_id: int) -> dict:
    """The actor's own review, with their rubric-evaluation scores attached."""
    kind = get_kind(artifact_type)
    artifact = get_or_raise(kind.artifact_model, artifact_id, kind.label)
    validate_project_access(actor, artifact.project_id)

    review = kind.review_model.query.filter_by(
        artifact_id=artifact_id, reviewer_id=actor.id,
    ).first()
    if review is None:
        return _empty_review(kind, artifact_id)

    d = _review_dict(kind, review)
    d["reviewed"] = True
    evaluation = rubric_service.find_rubric_evaluation(artifact.project_id, kind.key, actor.id)
    if evaluation is not None:
        d["rubric_scores"] = {
            c["name"].replace(" ", ""): c.get("score") for c in evaluation.criteria or []
        }
        d["overall_rubric_score"] = evaluation.overall_score
    return d


def list_artifact_reviews(actor, artifact_type: str, artifact_id: int) -> list[dict]:
    """Every review of one artifact, canonical and per-user, oldest first."""
    kind = get_kind(artifact_type)
    artifact = get_or_raise(kind.artifact_model, artifact_id, kind.label)
    validate_project_access(actor, artifact.project_id)

    reviews = (
        kind.review_model.query
        .filter_by(artifact_id=artifact_id)
        .order_by(kind.review_model.created_at, kind.review_model.id)
        .all()
    )
    user_ids = {r.reviewer_id for r in reviews if not is_system_reviewer(r.reviewer_id)}
    names = (
        {u.id: u.full_name for u in User.query.filter(User.id.in_(user_ids)).all()}
        if user_ids else {}
    )

    out = []
    for review in reviews:
        d = _review_dict(kind, review)
        d["reviewer_name"] = (
            SYSTEM_REVIEWER_NAME if d["canonical"] else names.get(review.reviewer_id)
        )
        out.append(d)
    return out
