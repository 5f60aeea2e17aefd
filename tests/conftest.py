"""
Shared pytest fixtures for the Artifact Review Platform test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: table creation/teardown (session-scoped)
    - session: per-test rollback + recreate (autouse)
    - client: Flask test client
    - admin / member / outsider: users with different access to ``project``
    - project: a project with ``member`` on its roster
    - auth_headers: factory returning a Bearer header for a user
    - make_user / make_project / make_requirement / make_story / make_class_diagram:
      factories that add and commit one row
"""

import pytest

from artifact_review import create_app
from artifact_review.models import db as _db
from artifact_review.models.artifact import ClassDiagram, Requirement, Story
from artifact_review.models.user import Project, User
from artifact_review.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


def _make_user(email, role="user", full_name=None):
    user = User(email=email, role=role, full_name=full_name or email.split("@")[0])
    _db.session.add(user)
    _db.session.commit()
    return user


def _make_project(name="Library System", members=(), description=""):
    project = Project(name=name, description=description)
    project.members.extend(members)
    _db.session.add(project)
    _db.session.commit()
    return project


def _make_requirement(project, req_type="functional", text="The system shall log in users"):
    req = Requirement(project_id=project.id, text=text, req_type=req_type)
    _db.session.add(req)
    _db.session.commit()
    return req


def _make_story(project, title="Borrow a book"):
    story = Story(project_id=project.id, title=title, text="As a member I want to borrow")
    _db.session.add(story)
    _db.session.commit()
    return story


def _make_class_diagram(project, title="Domain model"):
    diagram = ClassDiagram(project_id=project.id, title=title)
    _db.session.add(diagram)
    _db.session.commit()
    return diagram


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def admin():
    return _make_user("grader@example.com", role="admin", full_name="Grader")


@pytest.fixture()
def member():
    return _make_user("student@example.com", full_name="Student One")


@pytest.fixture()
def outsider():
    return _make_user("other@example.com", full_name="Other Student")


@pytest.fixture()
def project(member):
    return _make_project(members=[member])


@pytest.fixture()
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {generate_access_token(user.id, user.role)}"}
    return _headers


@pytest.fixture()
def make_user():
    return _make_user


@pytest.fixture()
def make_project():
    return _make_project


@pytest.fixture()
def make_requirement():
    return _make_requirement


@pytest.fixture()
def make_story():
    return _make_story


@pytest.fixture()
def make_class_diagram():
    return _make_class_diagram
