"""
Rubric models.

AggregateRubric
    Denormalised per-(project, artifact_type) rollup of the canonical
    reviews' criterion scores. Fully recomputable from the review tables;
    rewritten wholesale by services.rubric_service.recompute_aggregate.

RubricEvaluation
    One evaluator's own structured assessment for a (project, rubric_type).
    Linked to reviews/aggregates only by sharing the artifact-type key.

GeneralComment
    Free-text remark a user leaves on a whole artifact collection.
"""

from datetime import datetime, timezone

from artifact_review.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class AggregateRubric(db.Model):
    __tablename__ = "aggregate_rubrics"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    artifact_type = db.Column(db.String(40), nullable=False)
    criteria_averages = db.Column(db.JSON, nullable=False, default=dict)
    overall_score = db.Column(db.Float, nullable=False, default=0)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("project_id", "artifact_type", name="uq_aggregate_rubric_project_type"),
    )

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "artifact_type": self.artifact_type,
            "criteria_averages": dict(self.criteria_averages or {}),
            "overall_score": self.overall_score,
            "review_count": self.review_count,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    def __repr__(self) -> str:
        return (
            f"<AggregateRubric p={self.project_id} {self.artifact_type} "
            f"overall={self.overall_score} n={self.review_count}>"
        )


class RubricEvaluation(db.Model):
    __tablename__ = "rubric_evaluations"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rubric_type = db.Column(db.String(40), nullable=False)
    evaluator_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    criteria = db.Column(
        db.JSON, nullable=False, default=list,
        comment="[{name, description, score, comment}]",
    )
    overall_score = db.Column(db.Float, nullable=False, default=0)
    general_comment = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        db.UniqueConstraint(
            "project_id", "rubric_type", "evaluator_id",
            name="uq_rubric_evaluation_project_type_evaluator",
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "rubric_type": self.rubric_type,
            "evaluator_id": self.evaluator_id,
            "criteria": list(self.criteria or []),
            "overall_score": self.overall_score,
            "general_comment": self.general_comment or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class GeneralComment(db.Model):
    __tablename__ = "general_comments"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    artifact_type = db.Column(db.String(40), nullable=False)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    comment = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "project_id", "artifact_type",
            name="uq_general_comment_user_project_type",
        ),
    )

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "artifact_type": self.artifact_type,
            "user_id": self.user_id,
            "comment": self.comment or "",
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
