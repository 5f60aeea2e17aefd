"""
Artifact models: the eight design-artifact collections of a Project.

Every artifact:
    - belongs to exactly one Project (project_id, cascade on delete)
    - carries a per-project ``seq`` assigned once on insert (see
      ``_seq_assign``) and never reused
    - has type-specific content fields edited by the CRUD layer

Only Requirement.req_type is read by the review core (quantification
criterion, see services.artifact_kinds).
"""

from datetime import datetime, timezone

from sqlalchemy.orm import declared_attr

from artifact_review.models import db, sql_in

# ── Constants ────────────────────────────────────────────────────────────────

REQUIREMENT_TYPES = {"functional", "non_functional", "other"}
REQUIREMENT_PRIORITIES = {"low", "medium", "high"}


class ArtifactModel(db.Model):
    """Abstract base for all artifact tables."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    seq = db.Column(
        db.Integer, nullable=True,
        comment="Per-project sequence number, assigned on insert",
    )
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
                "project_id", "seq", name=f"uq_{cls.__tablename__}_project_seq",
            ),
        )

    def base_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "seq": self.seq,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict(self) -> dict:
        return self.base_dict()


class DocumentArtifactModel(ArtifactModel):
    """Abstract base for file-backed artifacts (diagrams, patterns, mockups)."""

    __abstract__ = True

    title = db.Column(db.String(300), nullable=False, default="")
    description = db.Column(db.Text, default="")
    url = db.Column(db.String(1000), default="", comment="Uploaded file location")

    def to_dict(self) -> dict:
        d = self.base_dict()
        d.update(title=self.title, description=self.description, url=self.url)
        return d


class Requirement(ArtifactModel):
    """Project requirement. ``req_type`` drives the quantification criterion."""

    __tablename__ = "requirements"

    text = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, default="")
    req_type = db.Column(
        db.String(20), nullable=True,
        comment="functional | non_functional | other",
    )
    user_priority = db.Column(db.String(10), nullable=True, comment="low | medium | high")
    system_priority = db.Column(db.String(10), nullable=True, comment="low | medium | high")

    __table_args__ = (
        db.UniqueConstraint("project_id", "seq", name="uq_requirements_project_seq"),
        db.CheckConstraint(sql_in("req_type", REQUIREMENT_TYPES), name="ck_requirements_req_type"),
        db.CheckConstraint(
            sql_in("user_priority", REQUIREMENT_PRIORITIES), name="ck_requirements_user_priority",
        ),
        db.CheckConstraint(
            sql_in("system_priority", REQUIREMENT_PRIORITIES), name="ck_requirements_system_priority",
        ),
    )

    def to_dict(self) -> dict:
        d = self.base_dict()
        d.update(
            text=self.text,
            description=self.description,
            req_type=self.req_type,
            user_priority=self.user_priority,
            system_priority=self.system_priority,
        )
        return d

    def __repr__(self) -> str:
        return f"<Requirement #{self.id} p={self.project_id} seq={self.seq}>"


class Story(ArtifactModel):
    __tablename__ = "stories"

    title = db.Column(db.String(300), nullable=False, default="")
    text = db.Column(db.Text, nullable=False, default="")

    def to_dict(self) -> dict:
        d = self.base_dict()
        d.update(title=self.title, text=self.text)
        return d


class ActivityDiagram(DocumentArtifactModel):
    __tablename__ = "activity_diagrams"


class UseCaseDiagram(DocumentArtifactModel):
    __tablename__ = "use_case_diagrams"


class SequenceDiagram(DocumentArtifactModel):
    __tablename__ = "sequence_diagrams"


class ClassDiagram(DocumentArtifactModel):
    __tablename__ = "class_diagrams"


class DesignPattern(DocumentArtifactModel):
    __tablename__ = "design_patterns"


class Mockup(DocumentArtifactModel):
    __tablename__ = "mockups"


class ArtifactSequence(db.Model):
    """Per-(project, artifact table) counter backing ``seq`` assignment."""

    __tablename__ = "artifact_sequences"

    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    )
    artifact_table = db.Column(db.String(50), primary_key=True)
    last_seq = db.Column(db.Integer, nullable=False, default=0)


ARTIFACT_MODELS = (
    Requirement,
    Story,
    ActivityDiagram,
    UseCaseDiagram,
    SequenceDiagram,
    ClassDiagram,
    DesignPattern,
    Mockup,
)
