"""
Rubric service: aggregate rubric engine and personal rubric evaluations.

Aggregate rubric
    ``recompute_aggregate`` rebuilds the AggregateRubric row for one
    (project, artifact_type) from the canonical reviews alone. It is a full
    recompute every time (no incremental merge), so repeated calls with no
    intervening review writes yield the same result, and the last of several
    racing recomputes leaves the correct value.

    Averaging policy:
        - per criterion, average the non-null values of reviews whose
          artifact the kind's contribution hook accepts; no values → 0
        - overall score = mean of the per-criterion averages, criteria with
          no values included as 0

Rubric evaluation
    One evaluator's own criteria list for a (project, rubric_type); overall
    score is the mean of its criterion scores.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from artifact_review.core.exceptions import ValidationError
from artifact_review.models import db
from artifact_review.models.rubric import AggregateRubric, RubricEvaluation
from artifact_review.models.user import Project
from artifact_review.services.access import system_reviewer_id, validate_project_access
from artifact_review.services.artifact_kinds import get_kind
from artifact_review.services.scoring import coerce_score
from artifact_review.utils.helpers import get_or_raise, upsert

logger = logging.getLogger(__name__)


# ── Aggregate rubric ─────────────────────────────────────────────────────────


def _canonical_rows(kind, project_id: int) -> list[tuple]:
    """(review, artifact) pairs for every canonical review of ``kind`` in the project."""
    Review, Artifact = kind.review_model, kind.artifact_model
    return (
        db.session.query(Review, Artifact)
        .join(Artifact, Review.artifact_id == Artifact.id)
        .filter(
            Artifact.project_id == project_id,
            Review.reviewer_id == system_reviewer_id(),
        )
        .order_by(Review.id)
        .all()
    )


def compute_criteria_averages(kind, rows) -> tuple[dict[str, float], float]:
    """Return (criterion → average, overall score) for the given review rows."""
    if not rows:
        return {}, 0.0

    averages: dict[str, float] = {}
    for criterion in kind.criteria:
        values = [
            getattr(review, criterion)
            for review, artifact in rows
            if getattr(review, criterion) is not None
            and kind.counts_toward(criterion, artifact)
        ]
        averages[criterion] = sum(values) / len(values) if values else 0.0

    overall = sum(averages.values()) / len(averages)
    return averages, overall


def recompute_aggregate(project_id: int, artifact_type: str) -> dict:
    """Rebuild and persist the aggregate rubric for (project, artifact_type).

    Raises:
        InvalidArtifactTypeError: unknown artifact_type.
        NotFoundError: project does not exist.
    """
    kind = get_kind(artifact_type)
    get_or_raise(Project, project_id)

    rows = _canonical_rows(kind, project_id)
    averages, overall = compute_criteria_averages(kind, rows)

    aggregate, created = upsert(
        AggregateRubric,
        {"project_id": project_id, "artifact_type": kind.key},
        {
            "criteria_averages": averages,
            "overall_score": overall,
            "review_count": len(rows),
            "last_updated": datetime.now(timezone.utc),
        },
    )
    db.session.commit()

    logger.info(
        "Aggregate rubric %s: %d canonical reviews, overall=%.2f",
        "created" if created else "recomputed", len(rows), overall,
        extra={"project_id": project_id, "artifact_type": kind.key},
    )
    return aggregate.to_dict()


def aggregate_payload(project_id: int, artifact_type: str) -> dict:
    """Stored aggregate for (project, type), or the empty shape if never computed."""
    aggregate = AggregateRubric.query.filter_by(
        project_id=project_id, artifact_type=artifact_type,
    ).first()
    if aggregate is None:
        return {
            "project_id": project_id,
            "artifact_type": artifact_type,
            "criteria_averages": {},
            "overall_score": 0,
            "review_count": 0,
            "last_updated": None,
        }
    return aggregate.to_dict()


def get_aggregate_rubric(actor, project_id: int, artifact_type: str) -> dict:
    kind = get_kind(artifact_type)
    validate_project_access(actor, project_id)
    return aggregate_payload(project_id, kind.key)


# ── Rubric evaluation (personal) ─────────────────────────────────────────────


def _clean_criteria(criteria) -> list[dict]:
    if not isinstance(criteria, list):
        raise ValidationError("criteria must be a list", details={"criteria": "not a list"})
    cleaned = []
    for idx, item in enumerate(criteria):
        if not isinstance(item, dict):
            raise ValidationError(
                f"criteria[{idx}] must be an object", details={f"criteria[{idx}]": "not an object"},
            )
        name = (item.get("name") or "").strip() if isinstance(item.get("name"), str) else ""
        if not name:
            raise ValidationError(
                f"criteria[{idx}].name is required", details={f"criteria[{idx}].name": "required"},
            )
        cleaned.append({
            "name": name,
            "description": item.get("description") or "",
            "score": coerce_score(item.get("score"), f"criteria[{idx}].score", required=True),
            "comment": item.get("comment") or "",
        })
    return cleaned


def evaluation_overall(criteria: list[dict]) -> float:
    scores = [c["score"] for c in criteria if c.get("score") is not None]
    return sum(scores) / len(scores) if scores else 0.0


def find_rubric_evaluation(project_id: int, rubric_type: str, evaluator_id: int):
    return RubricEvaluation.query.filter_by(
        project_id=project_id, rubric_type=rubric_type, evaluator_id=evaluator_id,
    ).first()


def get_rubric_evaluation(actor, project_id: int, rubric_type: str) -> dict:
    kind = get_kind(rubric_type)
    validate_project_access(actor, project_id)
    evaluation = find_rubric_evaluation(project_id, kind.key, actor.id)
    if evaluation is None:
        return {
            "project_id": project_id,
            "rubric_type": kind.key,
            "evaluator_id": actor.id,
            "criteria": [],
            "overall_score": 0,
            "general_comment": "",
        }
    return evaluation.to_dict()


def save_rubric_evaluation(
    actor,
    project_id: int,
    rubric_type: str,
    criteria,
    general_comment: str | None = None,
) -> tuple[dict, bool]:
    """Create or replace the actor's evaluation. Returns (evaluation, created)."""
    kind = get_kind(rubric_type)
    validate_project_access(actor, project_id)
    cleaned = _clean_criteria(criteria)

    values = {"criteria": cleaned, "overall_score": evaluation_overall(cleaned)}
    if general_comment is not None:
        values["general_comment"] = str(general_comment).strip()

    evaluation, created = upsert(
        RubricEvaluation,
        {"project_id": project_id, "rubric_type": kind.key, "evaluator_id": actor.id},
        values,
    )
    db.session.commit()
    logger.info(
        "Rubric evaluation %s by user %s (%d criteria)",
        "created" if created else "updated", actor.id, len(cleaned),
        extra={"project_id": project_id, "artifact_type": kind.key},
    )
    return evaluation.to_dict(), created
