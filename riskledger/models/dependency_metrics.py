"""ORM model for per-component metrics snapshots (a run-length encoded time series)."""

from datetime import timedelta

from sqlalchemy import Column, Float, ForeignKey, Index, Integer

from riskledger.models.base import Base
from riskledger.models.types import UTCDateTime


def _counter() -> Column:
    return Column(Integer, nullable=False, default=0)


class DependencyMetrics(Base):
    """
    One row per component per distinct observed aggregate state.

    first_occurrence is when this exact state was first observed; last_occurrence is the most
    recent time it was re-observed. The row with the greatest first_occurrence is current.
    Rows are never deleted by the metrics update.
    """

    __tablename__ = "dependency_metrics"
    __table_args__ = (
        Index("ix_dependency_metrics_component_first_occurrence", "component_id", "first_occurrence"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    component_id = Column(
        Integer,
        ForeignKey("components.id", ondelete="CASCADE"),
        nullable=False,
    )

    critical = _counter()
    high = _counter()
    medium = _counter()
    low = _counter()
    unassigned = _counter()
    vulnerabilities = _counter()
    suppressed = _counter()
    findings_total = _counter()
    findings_audited = _counter()
    findings_unaudited = _counter()
    inherited_risk_score = Column(Float, nullable=False, default=0.0)

    policy_violations_fail = _counter()
    policy_violations_warn = _counter()
    policy_violations_info = _counter()
    policy_violations_total = _counter()
    policy_violations_audited = _counter()
    policy_violations_unaudited = _counter()
    policy_violations_security_total = _counter()
    policy_violations_security_audited = _counter()
    policy_violations_security_unaudited = _counter()
    policy_violations_license_total = _counter()
    policy_violations_license_audited = _counter()
    policy_violations_license_unaudited = _counter()
    policy_violations_operational_total = _counter()
    policy_violations_operational_audited = _counter()
    policy_violations_operational_unaudited = _counter()

    first_occurrence = Column(UTCDateTime, nullable=False)
    last_occurrence = Column(UTCDateTime, nullable=False)

    def duration(self) -> timedelta:
        """How long this state has held, as last confirmed."""
        return self.last_occurrence - self.first_occurrence
