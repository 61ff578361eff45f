"""Component metrics update: lock one component, recompute its metrics from current state, record a snapshot.

Invocations for different components are independent. Invocations for the same component are
serialized by a row lock on the component (SELECT ... FOR UPDATE) held until commit, so two
concurrent triggers cannot both insert a first snapshot or both append divergent rows.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.orm import Session

from riskledger.models import Component, Finding, PolicyViolation
from riskledger.schemas.metrics import SnapshotRef
from riskledger.services.metrics_aggregator import aggregate
from riskledger.services.metrics_snapshot import reconcile

if TYPE_CHECKING:
    from riskledger.core.config import Settings

logger = logging.getLogger(__name__)


class ComponentNotFoundError(Exception):
    """Raised when a metrics update is triggered for a component that does not exist."""

    def __init__(self, message: str, component_id: int | None = None) -> None:
        self.message = message
        self.component_id = component_id
        super().__init__(message)


def _apply_lock_timeout(session: Session, timeout_ms: int) -> None:
    """Bound the wait for the component lock (Postgres only; 0 means wait indefinitely)."""
    if timeout_ms <= 0:
        return
    if session.get_bind().dialect.name != "postgresql":
        return
    session.execute(text(f"SET LOCAL lock_timeout = {int(timeout_ms)}"))


def _lock_component(session: Session, component_id: int) -> Component:
    component = (
        session.query(Component)
        .filter(Component.id == component_id)
        .with_for_update()
        .one_or_none()
    )
    if component is None:
        raise ComponentNotFoundError(
            f"Component {component_id} does not exist", component_id=component_id
        )
    return component


def update_component_metrics(
    session: Session,
    component_id: int,
    settings: "Settings",
    now: datetime | None = None,
) -> SnapshotRef:
    """
    Recompute and record metrics for one component in a single transaction.

    Reads the component's findings and policy violations, aggregates them, reconciles the result
    against the current snapshot, and commits. On any failure the transaction is rolled back and
    the error propagates; a retry recomputes from current state and is safe to repeat.
    """
    timestamp = now or datetime.now(timezone.utc)
    try:
        _apply_lock_timeout(session, settings.METRICS_LOCK_TIMEOUT_MS)
        component = _lock_component(session, component_id)

        findings = session.query(Finding).filter(Finding.component_id == component.id).all()
        violations = (
            session.query(PolicyViolation)
            .filter(PolicyViolation.component_id == component.id)
            .all()
        )
        metrics = aggregate(
            findings,
            violations,
            weights=settings.risk_weights(),
            verify=settings.METRICS_VERIFY_INVARIANTS,
        )
        ref = reconcile(session, component, metrics, timestamp)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Component metrics updated: component_id=%s, created=%s, risk_score=%s, findings=%s, violations=%s",
        component_id,
        ref.created,
        ref.inherited_risk_score,
        metrics.findings_total,
        metrics.policy_violations_total,
    )
    return ref


def list_component_ids(session: Session) -> list[int]:
    """Return every component id in ascending order."""
    return [row[0] for row in session.query(Component.id).order_by(Component.id.asc()).all()]


def update_all_component_metrics(
    session_factory: Callable[[], Session],
    settings: "Settings",
    component_ids: list[int] | None = None,
    now: datetime | None = None,
) -> tuple[int, int]:
    """
    Update metrics for the given components (all components when None), one transaction each.

    A failure for one component is logged and counted; the rest still run.
    Returns (succeeded, failed).
    """
    if component_ids is None:
        db = session_factory()
        try:
            component_ids = list_component_ids(db)
        finally:
            db.close()

    succeeded = 0
    failed = 0
    for component_id in component_ids:
        db = session_factory()
        try:
            update_component_metrics(db, component_id, settings, now=now)
            succeeded += 1
        except Exception as e:
            failed += 1
            logger.exception("Metrics update failed for component_id=%s: %s", component_id, e)
        finally:
            db.close()
    return (succeeded, failed)
