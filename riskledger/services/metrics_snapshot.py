"""Snapshot writer: append a metrics row only when the aggregate changed, otherwise extend the current row.

The dependency_metrics table is a run-length encoding of each component's metrics: a row covers
[first_occurrence, last_occurrence] during which every counter stayed the same.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from riskledger.models import Component, DependencyMetrics
from riskledger.models.types import ensure_utc
from riskledger.schemas.metrics import ComponentMetricsAggregate, SnapshotRef

logger = logging.getLogger(__name__)


class SnapshotTimestampError(Exception):
    """Raised when a reconcile time is earlier than the current snapshot's last_occurrence."""

    def __init__(self, message: str, component_id: int) -> None:
        self.message = message
        self.component_id = component_id
        super().__init__(message)


def get_most_recent_metrics(session: Session, component_id: int) -> DependencyMetrics | None:
    """Return the current snapshot (greatest first_occurrence, then greatest id), or None."""
    return (
        session.query(DependencyMetrics)
        .filter(DependencyMetrics.component_id == component_id)
        .order_by(DependencyMetrics.first_occurrence.desc(), DependencyMetrics.id.desc())
        .first()
    )


def get_metrics_history(
    session: Session,
    component_id: int,
    since: datetime | None = None,
) -> list[DependencyMetrics]:
    """
    Return a component's snapshots oldest first.

    When since is given, only rows whose validity window ends at or after it are returned.
    """
    query = session.query(DependencyMetrics).filter(DependencyMetrics.component_id == component_id)
    if since is not None:
        query = query.filter(DependencyMetrics.last_occurrence >= since)
    return query.order_by(DependencyMetrics.first_occurrence.asc(), DependencyMetrics.id.asc()).all()


def changed_fields(current: DependencyMetrics, aggregate: ComponentMetricsAggregate) -> list[str]:
    """Names of every counter (and the risk score) whose stored value differs from the aggregate."""
    return [
        name
        for name, value in aggregate.metric_values().items()
        if getattr(current, name) != value
    ]


def reconcile(
    session: Session,
    component: Component,
    aggregate: ComponentMetricsAggregate,
    now: datetime,
) -> SnapshotRef:
    """
    Record aggregate as the component's current metrics at time now.

    - No current row: insert one with first_occurrence = last_occurrence = now.
    - Current row equal on every field: set its last_occurrence = now, nothing else.
    - Any field differs: insert a new row; the previous row is left as is.

    now must not be earlier than the current row's last_occurrence (SnapshotTimestampError);
    naive values are taken to be UTC.
    The component's cached risk score is set to the written or touched row's score on every call.
    Flushes but does not commit; the caller owns the transaction and must hold the component lock.
    """
    now = ensure_utc(now)
    current = get_most_recent_metrics(session, component.id)
    if current is not None and now < ensure_utc(current.last_occurrence):
        raise SnapshotTimestampError(
            f"Reconcile time {now.isoformat()} is earlier than last_occurrence "
            f"{current.last_occurrence.isoformat()} for component_id={component.id}",
            component_id=component.id,
        )
    diff = changed_fields(current, aggregate) if current is not None else []

    if current is None or diff:
        row = DependencyMetrics(
            component_id=component.id,
            first_occurrence=now,
            last_occurrence=now,
            **aggregate.metric_values(),
        )
        session.add(row)
        created = True
        if current is None:
            logger.info("First metrics snapshot for component_id=%s", component.id)
        else:
            logger.info(
                "Metrics changed for component_id=%s: fields=%s",
                component.id,
                ",".join(diff),
            )
    else:
        current.last_occurrence = now
        row = current
        created = False
        logger.debug("Metrics unchanged for component_id=%s; last_occurrence=%s", component.id, now.isoformat())

    component.last_inherited_risk_score = row.inherited_risk_score
    session.flush()

    return SnapshotRef(
        metrics_id=row.id,
        component_id=component.id,
        created=created,
        inherited_risk_score=row.inherited_risk_score,
        first_occurrence=row.first_occurrence,
        last_occurrence=row.last_occurrence,
    )
