"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in artifact_review/__init__.py with no default limits; this module
applies granular limits per route category.

Usage:
    from artifact_review.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Review submission:      60/minute
        - Rubric / comments:      60/minute
        - Project statistics:     200/minute (read-only)
        - Health check:           exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in ("reviews", "rubrics"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("projects")
    if bp:
        limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: write %s, read %s", WRITE_LIMIT, READ_LIMIT)
