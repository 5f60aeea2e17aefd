"""
Review models: one table per artifact kind, parallel structure.

A review row is scoped to (artifact, reviewer):
    - at most one row per pair, enforced by a unique constraint so that two
      concurrent first submissions cannot both insert
    - ``reviewer_id`` is either a user id or the reserved system-reviewer id
      (config SYSTEM_REVIEWER_ID), so it carries no FK to ``users``
    - ``project_id`` is denormalised from the artifact at write time

Each subclass declares its rubric criterion columns and lists them in
``CRITERIA`` (order preserved in API output).
"""

from datetime import datetime, timezone

from sqlalchemy.orm import declared_attr

from artifact_review.models import db

SCORE_MIN = 0
SCORE_MAX = 5


def _score_column():
    return db.Column(db.Float, nullable=True)


class ReviewModel(db.Model):
    """Abstract base for all review tables."""

    __abstract__ = True

    CRITERIA: tuple[str, ...] = ()

    id = db.Column(db.Integer, primary_key=True)
    reviewer_id = db.Column(
        db.Integer, nullable=False, index=True,
        comment="users.id, or the reserved system reviewer id",
    )
    rating = db.Column(db.Float, nullable=False)
    comment = db.Column(db.Text, default="")
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @declared_attr
    def project_id(cls):
        return db.Column(
            db.Integer,
            db.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    @declared_attr
    def __table_args__(cls):
        return (
            db.UniqueConstraint(
                "artifact_id", "reviewer_id",
                name=f"uq_{cls.__tablename__}_artifact_reviewer",
            ),
            db.CheckConstraint(
                f"rating >= {SCORE_MIN} AND rating <= {SCORE_MAX}",
                name=f"ck_{cls.__tablename__}_rating_range",
            ),
            db.Index(f"ix_{cls.__tablename__}_project_reviewer", "project_id", "reviewer_id"),
        )

    def scores(self) -> dict:
        return {name: getattr(self, name) for name in self.CRITERIA}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "artifact_id": self.artifact_id,
            "project_id": self.project_id,
            "reviewer_id": self.reviewer_id,
            "rating": self.rating,
            "comment": self.comment or "",
            "scores": self.scores(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} #{self.id} artifact={self.artifact_id} "
            f"reviewer={self.reviewer_id} rating={self.rating}>"
        )


class RequirementReview(ReviewModel):
    __tablename__ = "requirement_reviews"

    CRITERIA = (
        "syntax_score",
        "categorization_score",
        "scope_definition_score",
        "quantification_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("requirements.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    syntax_score = _score_column()
    categorization_score = _score_column()
    scope_definition_score = _score_column()
    quantification_score = _score_column()

    artifact = db.relationship("Requirement")


class StoryReview(ReviewModel):
    __tablename__ = "story_reviews"

    CRITERIA = (
        "story_format_score",
        "feature_completion_score",
        "acceptance_criteria_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("stories.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    story_format_score = _score_column()
    feature_completion_score = _score_column()
    acceptance_criteria_score = _score_column()

    artifact = db.relationship("Story")


class ActivityDiagramReview(ReviewModel):
    __tablename__ = "activity_diagram_reviews"

    CRITERIA = (
        "uml_syntax_score",
        "scenario_comprehensive_score",
        "gherkin_alignment_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("activity_diagrams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    uml_syntax_score = _score_column()
    scenario_comprehensive_score = _score_column()
    gherkin_alignment_score = _score_column()

    artifact = db.relationship("ActivityDiagram")


class UseCaseDiagramReview(ReviewModel):
    __tablename__ = "use_case_diagram_reviews"

    CRITERIA = (
        "uml_syntax_score",
        "use_case_package_score",
        "gherkin_specification_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("use_case_diagrams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    uml_syntax_score = _score_column()
    use_case_package_score = _score_column()
    gherkin_specification_score = _score_column()

    artifact = db.relationship("UseCaseDiagram")


class SequenceDiagramReview(ReviewModel):
    __tablename__ = "sequence_diagram_reviews"

    CRITERIA = (
        "uml_correctness_score",
        "message_flow_score",
        "return_values_score",
        "completeness_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("sequence_diagrams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    uml_correctness_score = _score_column()
    message_flow_score = _score_column()
    return_values_score = _score_column()
    completeness_score = _score_column()

    artifact = db.relationship("SequenceDiagram")


class ClassDiagramReview(ReviewModel):
    __tablename__ = "class_diagram_reviews"

    CRITERIA = (
        "class_structure_score",
        "relationship_modeling_score",
        "completeness_score",
        "clarity_score",
        "design_principles_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("class_diagrams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    class_structure_score = _score_column()
    relationship_modeling_score = _score_column()
    completeness_score = _score_column()
    clarity_score = _score_column()
    design_principles_score = _score_column()

    artifact = db.relationship("ClassDiagram")


class DesignPatternReview(ReviewModel):
    __tablename__ = "design_pattern_reviews"

    CRITERIA = (
        "pattern_selection_score",
        "implementation_score",
        "flexibility_score",
        "documentation_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("design_patterns.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    pattern_selection_score = _score_column()
    implementation_score = _score_column()
    flexibility_score = _score_column()
    documentation_score = _score_column()

    artifact = db.relationship("DesignPattern")


class MockupReview(ReviewModel):
    __tablename__ = "mockup_reviews"

    CRITERIA = (
        "ui_ux_design_score",
        "consistency_score",
        "flow_score",
        "completeness_score",
        "user_friendliness_score",
    )

    artifact_id = db.Column(
        db.Integer, db.ForeignKey("mockups.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    ui_ux_design_score = _score_column()
    consistency_score = _score_column()
    flow_score = _score_column()
    completeness_score = _score_column()
    user_friendliness_score = _score_column()

    artifact = db.relationship("Mockup")
