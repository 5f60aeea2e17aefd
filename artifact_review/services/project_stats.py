"""
Project statistics engine.

Computed fresh on every call from the artifact and review tables; it never
reads AggregateRubric. For each artifact kind:

    total           artifacts of that kind in the project
    reviewed        distinct artifacts with a canonical review
    average_rating  mean canonical ``rating`` (2 dp), 0 when none

Project roll-up:

    total_artifacts        Σ total
    total_reviews          Σ reviewed
    overall_average_grade  mean of average_rating over kinds that have at
                           least one canonical review (unreviewed kinds are
                           left out, unlike the aggregate rubric's overall
                           score which keeps zero criteria)
    completion_percentage  total_reviews / total_artifacts × 100 (2 dp), 0 if empty

Both the single-project and the listing variant go through
``_stats_for_projects``, which issues grouped queries per kind for a whole
set of project ids.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_

from artifact_review.core.exceptions import ValidationError
from artifact_review.models import db
from artifact_review.models.user import Project, User
from artifact_review.services.access import system_reviewer_id, validate_project_access
from artifact_review.services.artifact_kinds import ARTIFACT_KINDS
from artifact_review.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

STORED_SORT_KEYS = {
    "name": Project.name,
    "created_at": Project.created_at,
    "updated_at": Project.updated_at,
}
DERIVED_SORT_KEYS = {"overall_average_grade"}
DEFAULT_SORT = "-created_at"


def _round2(value: float) -> float:
    return round(value, 2)


def _kind_counts(kind, project_ids: list[int]) -> tuple[dict, dict]:
    """Grouped totals and canonical-review stats for one kind across projects."""
    Artifact, Review = kind.artifact_model, kind.review_model

    totals = dict(
        db.session.query(Artifact.project_id, func.count(Artifact.id))
        .filter(Artifact.project_id.in_(project_ids))
        .group_by(Artifact.project_id)
        .all()
    )
    reviewed = {
        project_id: (count, avg)
        for project_id, count, avg in (
            db.session.query(
                Artifact.project_id,
                func.count(func.distinct(Review.artifact_id)),
                func.avg(Review.rating),
            )
            .join(Review, Review.artifact_id == Artifact.id)
            .filter(
                Artifact.project_id.in_(project_ids),
                Review.reviewer_id == system_reviewer_id(),
            )
            .group_by(Artifact.project_id)
            .all()
        )
    }
    return totals, reviewed


def summarise(per_kind: dict[str, dict]) -> dict:
    """Derive the project-level roll-up from per-kind stats."""
    total_artifacts = sum(s["total"] for s in per_kind.values())
    total_reviews = sum(s["reviewed"] for s in per_kind.values())
    graded = [s["average_rating"] for s in per_kind.values() if s["reviewed"] > 0]

    return {
        "stats": per_kind,
        "total_artifacts": total_artifacts,
        "total_reviews": total_reviews,
        "overall_average_grade": _round2(sum(graded) / len(graded)) if graded else 0,
        "completion_percentage": (
            _round2(total_reviews / total_artifacts * 100) if total_artifacts else 0
        ),
    }


def _stats_for_projects(project_ids: list[int]) -> dict[int, dict]:
    if not project_ids:
        return {}
    per_project: dict[int, dict[str, dict]] = {pid: {} for pid in project_ids}

    for key, kind in ARTIFACT_KINDS.items():
        totals, reviewed = _kind_counts(kind, project_ids)
        for pid in project_ids:
            count, avg = reviewed.get(pid, (0, None))
            per_project[pid][key] = {
                "total": totals.get(pid, 0),
                "reviewed": count,
                "average_rating": _round2(float(avg)) if avg is not None else 0,
            }

    return {pid: summarise(per_kind) for pid, per_kind in per_project.items()}


# ── Public API ─────────────────────────────────────────────────────────────────


def get_project_stats(project_id: int, actor=None) -> dict:
    """Statistics for one project.

    Raises:
        NotFoundError: project does not exist.
        ForbiddenError: ``actor`` given and may not access the project.
    """
    if actor is not None:
        project = validate_project_access(actor, project_id)
    else:
        project = get_or_raise(Project, project_id)

    result = _stats_for_projects([project.id])[project.id]
    return {
        "project": {
            "id": project.id,
            "name": project.name,
            "description": project.description,
        },
        **result,
    }


def _parse_sort(sort: str | None) -> tuple[str, bool]:
    sort = (sort or DEFAULT_SORT).strip()
    descending = sort.startswith("-")
    key = sort.lstrip("-")
    if key not in STORED_SORT_KEYS and key not in DERIVED_SORT_KEYS:
        raise ValidationError(
            f"Invalid sort key '{key}'",
            details={"valid_sort_keys": sorted(set(STORED_SORT_KEYS) | DERIVED_SORT_KEYS)},
        )
    return key, descending


def get_projects_stats(
    page: int = 1,
    limit: int = 10,
    sort: str | None = None,
    search: str | None = None,
    actor=None,
) -> dict:
    """Paginated project listing with statistics.

    Stored sort keys are ordered in SQL before pagination. The derived
    ``overall_average_grade`` key re-sorts the fetched page in memory, so it
    orders within a page only.

    Non-admin actors only see projects they belong to.
    """
    key, descending = _parse_sort(sort)
    page = max(int(page), 1)
    limit = min(max(int(limit), 1), MAX_PAGE_SIZE)

    q = Project.query
    if actor is not None and not actor.is_admin:
        q = q.filter(Project.members.any(User.id == actor.id))
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Project.name.ilike(like), Project.description.ilike(like)))

    if key in STORED_SORT_KEYS:
        col = STORED_SORT_KEYS[key]
        q = q.order_by(col.desc() if descending else col.asc(), Project.id)
    else:
        q = q.order_by(Project.created_at.desc(), Project.id)

    paginated = q.paginate(page=page, per_page=limit, error_out=False)
    projects = paginated.items
    stats = _stats_for_projects([p.id for p in projects])

    items = [{"project": p.to_dict(), **stats[p.id]} for p in projects]
    if key in DERIVED_SORT_KEYS:
        items.sort(key=lambda item: item[key], reverse=descending)

    logger.debug(
        "Projects stats page=%s limit=%s sort=%s search=%r → %d items",
        page, limit, key, search, len(items),
    )
    return {
        "items": items,
        "total": paginated.total,
        "page": paginated.page,
        "pages": paginated.pages,
        "limit": limit,
    }
