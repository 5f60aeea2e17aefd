"""Shared helpers for services and blueprints.

get_or_raise:   PK lookup that raises NotFoundError instead of returning None
upsert:         insert-or-update keyed on a unique constraint, race safe
int_arg:        lenient integer query-string parsing with bounds
"""

import logging

from flask import request
from sqlalchemy.exc import IntegrityError

from artifact_review.core.exceptions import ConflictError, NotFoundError
from artifact_review.models import db

logger = logging.getLogger(__name__)


def get_or_raise(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError."""
    obj = db.session.get(model, pk)
    if obj is None:
        raise NotFoundError(resource=label or model.__name__, resource_id=pk)
    return obj


def upsert(model, keys: dict, values: dict):
    """Create or update the single ``model`` row identified by ``keys``.

    ``keys`` must match a unique constraint on the table. The insert runs in
    a SAVEPOINT; if a concurrent writer inserted the same key first, the
    IntegrityError is caught, the savepoint rolled back, and the existing
    row updated instead (read-modify-write retry). The caller commits.

    Returns:
        (instance, created) tuple.
    """
    obj = model.query.filter_by(**keys).first()
    if obj is not None:
        for field, value in values.items():
            setattr(obj, field, value)
        db.session.flush()
        return obj, False

    obj = model(**keys, **values)
    try:
        with db.session.begin_nested():
            db.session.add(obj)
    except IntegrityError as exc:
        logger.info(
            "Concurrent insert on %s %s, retrying as update: %s",
            model.__tablename__, keys, exc.orig,
        )
        obj = model.query.filter_by(**keys).first()
        if obj is None:
            # Violation came from another constraint, not the upsert key
            raise ConflictError(model.__name__, ",".join(keys), str(keys)) from exc
        for field, value in values.items():
            setattr(obj, field, value)
        db.session.flush()
        return obj, False
    return obj, True


def int_arg(name: str, default: int, *, minimum: int = 1, maximum: int | None = None) -> int:
    """Parse an integer query parameter, falling back to ``default`` on bad input."""
    try:
        value = int(request.args.get(name, default))
    except (ValueError, TypeError):
        value = default
    value = max(value, minimum)
    if maximum is not None:
        value = min(value, maximum)
    return value
