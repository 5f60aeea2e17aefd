"""Assign per-project ``seq`` numbers to artifacts on insert.

The counter lives in ``artifact_sequences`` rather than being derived from
max(seq), so a number freed by a deleted artifact is never handed out again.
The (project_id, seq) unique constraint on every artifact table backs this up
if two writers race on the same counter row. An explicitly numbered artifact
raises the counter to its own seq so later numbers stay above it.
"""

import logging

from sqlalchemy import case, event, insert, select, update

logger = logging.getLogger(__name__)

_registered = False


def _counter_where(counters, project_id: int, artifact_table: str):
    return (
        (counters.c.project_id == project_id)
        & (counters.c.artifact_table == artifact_table)
    )


def _next_seq(connection, project_id: int, artifact_table: str) -> int:
    from artifact_review.models.artifact import ArtifactSequence

    counters = ArtifactSequence.__table__
    where = _counter_where(counters, project_id, artifact_table)
    result = connection.execute(
        update(counters).where(where).values(last_seq=counters.c.last_seq + 1)
    )
    if result.rowcount == 0:
        connection.execute(
            insert(counters).values(
                project_id=project_id, artifact_table=artifact_table, last_seq=1,
            )
        )
        return 1
    return connection.execute(select(counters.c.last_seq).where(where)).scalar_one()


def _claim_seq(connection, project_id: int, artifact_table: str, seq: int) -> None:
    """Raise the counter to at least ``seq`` for an explicitly numbered artifact."""
    from artifact_review.models.artifact import ArtifactSequence

    counters = ArtifactSequence.__table__
    where = _counter_where(counters, project_id, artifact_table)
    result = connection.execute(
        update(counters).where(where).values(
            last_seq=case((counters.c.last_seq < seq, seq), else_=counters.c.last_seq)
        )
    )
    if result.rowcount == 0:
        connection.execute(
            insert(counters).values(
                project_id=project_id, artifact_table=artifact_table, last_seq=seq,
            )
        )


def _register_seq_assign(model_cls):
    @event.listens_for(model_cls, "before_insert")
    def _assign_seq(mapper, connection, target):
        if target.seq is not None:
            _claim_seq(connection, target.project_id, model_cls.__tablename__, target.seq)
            return
        target.seq = _next_seq(connection, target.project_id, model_cls.__tablename__)
        logger.debug(
            "Assigned seq=%s to new %s in project %s",
            target.seq, model_cls.__name__, target.project_id,
        )


def register_all():
    """Register seq assignment for all eight artifact models (once per process)."""
    global _registered
    if _registered:
        return
    from artifact_review.models.artifact import ARTIFACT_MODELS

    for model in ARTIFACT_MODELS:
        _register_seq_assign(model)
    _registered = True
