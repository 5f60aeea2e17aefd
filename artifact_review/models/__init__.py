"""
Artifact Review Platform: SQLAlchemy models.

The shared ``db`` handle lives here so every model module (and the app
factory) imports the same instance:

    from artifact_review.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def sql_in(column: str, values) -> str:
    """CHECK constraint body restricting ``column`` to a fixed value set."""
    return f"{column} IN ({', '.join(repr(v) for v in sorted(values))})"
