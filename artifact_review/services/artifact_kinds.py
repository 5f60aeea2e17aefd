"""
Artifact kind registry.

The eight artifact kinds are a closed enumeration. Every place that takes a
type string from a caller resolves it here, and every per-kind difference
(artifact table, review table, rubric criteria, criterion exceptions) is a
field of the ``ArtifactKind`` descriptor rather than a branch in shared code.

    kind = get_kind("requirements")
    kind.review_model.query.filter_by(project_id=pid)

Keys are the plural snake_case collection names; ``stories`` is the one
spelling of the story key throughout the platform.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from artifact_review.core.exceptions import InvalidArtifactTypeError
from artifact_review.models.artifact import (
    ActivityDiagram,
    ClassDiagram,
    DesignPattern,
    Mockup,
    Requirement,
    SequenceDiagram,
    Story,
    UseCaseDiagram,
)
from artifact_review.models.review import (
    ActivityDiagramReview,
    ClassDiagramReview,
    DesignPatternReview,
    MockupReview,
    RequirementReview,
    SequenceDiagramReview,
    StoryReview,
    UseCaseDiagramReview,
)

logger = logging.getLogger(__name__)

# (criterion, artifact) -> should this review's value count for the criterion?
ContributionHook = Callable[[str, object], bool]


@dataclass(frozen=True)
class ArtifactKind:
    key: str
    label: str
    artifact_model: type
    review_model: type
    criteria: tuple[str, ...]
    contributes: ContributionHook | None = None

    def counts_toward(self, criterion: str, artifact) -> bool:
        if self.contributes is None:
            return True
        return self.contributes(criterion, artifact)


def _quantification_only_for_non_functional(criterion: str, requirement) -> bool:
    """Quantifying a quality attribute only makes sense for non-functional requirements."""
    if criterion != "quantification_score":
        return True
    return requirement.req_type == "non_functional"


ARTIFACT_KINDS: dict[str, ArtifactKind] = {
    kind.key: kind
    for kind in (
        ArtifactKind(
            key="requirements",
            label="Requirement",
            artifact_model=Requirement,
            review_model=RequirementReview,
            criteria=RequirementReview.CRITERIA,
            contributes=_quantification_only_for_non_functional,
        ),
        ArtifactKind("stories", "Story", Story, StoryReview, StoryReview.CRITERIA),
        ArtifactKind(
            "activity_diagrams", "Activity diagram",
            ActivityDiagram, ActivityDiagramReview, ActivityDiagramReview.CRITERIA,
        ),
        ArtifactKind(
            "use_case_diagrams", "Use case diagram",
            UseCaseDiagram, UseCaseDiagramReview, UseCaseDiagramReview.CRITERIA,
        ),
        ArtifactKind(
            "sequence_diagrams", "Sequence diagram",
            SequenceDiagram, SequenceDiagramReview, SequenceDiagramReview.CRITERIA,
        ),
        ArtifactKind(
            "class_diagrams", "Class diagram",
            ClassDiagram, ClassDiagramReview, ClassDiagramReview.CRITERIA,
        ),
        ArtifactKind(
            "design_patterns", "Design pattern",
            DesignPattern, DesignPatternReview, DesignPatternReview.CRITERIA,
        ),
        ArtifactKind("mockups", "Mockup", Mockup, MockupReview, MockupReview.CRITERIA),
    )
}

ARTIFACT_TYPES = frozenset(ARTIFACT_KINDS)


def get_kind(artifact_type: str) -> ArtifactKind:
    """Resolve a caller-supplied type key, raising InvalidArtifactTypeError if unknown."""
    kind = ARTIFACT_KINDS.get(artifact_type) if isinstance(artifact_type, str) else None
    if kind is None:
        raise InvalidArtifactTypeError(artifact_type, ARTIFACT_TYPES)
    return kind


def validate_registry() -> None:
    """Startup check: every kind's tables and criterion columns line up.

    Raises:
        RuntimeError: on any mismatch, so a broken registry never serves traffic.
    """
    problems = []
    for key, kind in ARTIFACT_KINDS.items():
        review_cols = set(kind.review_model.__table__.columns.keys())
        missing = [c for c in kind.criteria if c not in review_cols]
        if missing:
            problems.append(f"{key}: review table lacks criteria {missing}")
        if not 3 <= len(kind.criteria) <= 5:
            problems.append(f"{key}: expected 3-5 criteria, got {len(kind.criteria)}")
        fk_targets = {
            fk.column.table.name
            for fk in kind.review_model.__table__.c.artifact_id.foreign_keys
        }
        if fk_targets != {kind.artifact_model.__tablename__}:
            problems.append(
                f"{key}: review artifact_id points at {sorted(fk_targets)}, "
                f"expected {kind.artifact_model.__tablename__}"
            )
    if problems:
        raise RuntimeError("Artifact kind registry is inconsistent: " + "; ".join(problems))
    logger.debug("Artifact kind registry validated (%d kinds)", len(ARTIFACT_KINDS))
