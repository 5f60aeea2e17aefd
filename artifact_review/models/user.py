"""User and Project models.

Account lifecycle (sign-up, OAuth, password hashing) lives outside this
service; the review core only reads users to resolve the acting identity
and project membership.
"""

from datetime import datetime, timezone

from artifact_review.models import db, sql_in

# ── Constants ────────────────────────────────────────────────────────────────

USER_ROLES = {"admin", "team_lead", "user"}

project_members = db.Table(
    "project_members",
    db.Column(
        "project_id", db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True,
    ),
    db.Column(
        "user_id", db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
    ),
)


class User(db.Model):
    """Platform user. ``role == "admin"`` is the elevated grading role."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    full_name = db.Column(db.String(255), nullable=False, default="")
    role = db.Column(
        db.String(20), nullable=False, default="user",
        comment="admin | team_lead | user",
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (db.CheckConstraint(sql_in("role", USER_ROLES), name="ck_users_role"),)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
        }

    def __repr__(self) -> str:
        return f"<User #{self.id} {self.email} ({self.role})>"


class Project(db.Model):
    """A student/team project owning the eight artifact collections."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    creator_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
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

    members = db.relationship("User", secondary=project_members, lazy="select")

    # One collection per artifact kind
    requirements = db.relationship(
        "Requirement", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )
    stories = db.relationship(
        "Story", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )
    activity_diagrams = db.relationship(
        "ActivityDiagram", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )
    use_case_diagrams = db.relationship(
        "UseCaseDiagram", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )
    sequence_diagrams = db.relationship(
        "SequenceDiagram", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )
    class_diagrams = db.relationship(
        "ClassDiagram", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )
    design_patterns = db.relationship(
        "DesignPattern", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )
    mockups = db.relationship(
        "Mockup", backref="project", lazy="dynamic", cascade="all, delete-orphan",
    )

    def has_member(self, user_id: int) -> bool:
        return any(m.id == user_id for m in self.members)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "creator_id": self.creator_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Project #{self.id} {self.name}>"
