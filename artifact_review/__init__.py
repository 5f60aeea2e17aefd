"""
Artifact Review Platform
Flask Application Factory.

Usage:
    from artifact_review import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from artifact_review.config import config
from artifact_review.middleware.jwt_auth import init_jwt_middleware
from artifact_review.middleware.logging_config import configure_logging
from artifact_review.middleware.rate_limiter import init_rate_limits
from artifact_review.middleware.timing import init_request_timing
from artifact_review.models import db
from artifact_review.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # no global limit; applied per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to the APP_ENV env var, or "development".

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request middleware ───────────────────────────────────────────────
    init_request_timing(app)
    init_jwt_middleware(app)

    # ── Models, seq listeners, kind registry ─────────────────────────────
    from artifact_review.models import _seq_assign
    from artifact_review.models import artifact as _artifact_models  # noqa: F401
    from artifact_review.models import review as _review_models      # noqa: F401
    from artifact_review.models import rubric as _rubric_models      # noqa: F401
    from artifact_review.models import user as _user_models          # noqa: F401
    from artifact_review.services.artifact_kinds import validate_registry

    _seq_assign.register_all()
    validate_registry()

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
        if uri.startswith("sqlite:///") and not uri.endswith(":memory:"):
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or ".", exist_ok=True)
        db.create_all()
        app.logger.info("db.create_all() completed")

    # ── Blueprints ───────────────────────────────────────────────────────
    from artifact_review.blueprints.health_bp import health_bp
    from artifact_review.blueprints.project_bp import project_bp
    from artifact_review.blueprints.review_bp import review_bp
    from artifact_review.blueprints.rubric_bp import rubric_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(review_bp)
    app.register_blueprint(rubric_bp)
    app.register_blueprint(project_bp)

    init_rate_limits(app, limiter)
    register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("recompute-aggregates")
    def recompute_aggregates_cmd():
        """Recompute every (project, artifact type) aggregate rubric."""
        from artifact_review.models.user import Project
        from artifact_review.services.artifact_kinds import ARTIFACT_TYPES
        from artifact_review.services.rubric_service import recompute_aggregate

        count = 0
        for project in Project.query.order_by(Project.id).all():
            for artifact_type in sorted(ARTIFACT_TYPES):
                recompute_aggregate(project.id, artifact_type)
                count += 1
        logger.info("Recomputed %d aggregate rubrics.", count)

    return app
