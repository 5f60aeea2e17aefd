"""Identity and project-access checks shared by the review services.

The canonical ("system") reviewer is a reserved id from app config, not a
row in ``users``. Only two places compare against it: aggregate computation
and the "reviewed" status/statistics.
"""

import logging

from flask import current_app

from artifact_review.core.exceptions import ForbiddenError
from artifact_review.models.user import Project
from artifact_review.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)


def system_reviewer_id() -> int:
    return int(current_app.config["SYSTEM_REVIEWER_ID"])


def is_system_reviewer(reviewer_id: int) -> bool:
    return reviewer_id == system_reviewer_id()


def validate_project_access(actor, project_id: int) -> Project:
    """Return the project if ``actor`` may read/write it.

    Admins reach every project; everyone else must be a member.

    Raises:
        NotFoundError: project does not exist.
        ForbiddenError: actor is neither admin nor member.
    """
    project = get_or_raise(Project, project_id)
    if actor.is_admin or project.has_member(actor.id):
        return project
    logger.warning(
        "User %s denied access to project %s", actor.id, project_id,
        extra={"project_id": project_id},
    )
    raise ForbiddenError("Not authorized to access this project")


def require_admin(actor, action: str) -> None:
    if not actor.is_admin:
        logger.warning("User %s (role=%s) denied: %s", actor.id, actor.role, action)
        raise ForbiddenError(f"Only administrators can {action}")
