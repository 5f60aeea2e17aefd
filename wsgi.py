"""
WSGI and Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi recompute-aggregates
"""

from artifact_review import create_app

app = create_app()
