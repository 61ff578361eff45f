"""Pydantic schemas for component metrics: severity weights, the aggregate of one component, and snapshot references."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Every integer counter carried by an aggregate and persisted on a snapshot row.
# Order matches the column order of the dependency_metrics table.
COUNTER_FIELDS: tuple[str, ...] = (
    "critical",
    "high",
    "medium",
    "low",
    "unassigned",
    "vulnerabilities",
    "suppressed",
    "findings_total",
    "findings_audited",
    "findings_unaudited",
    "policy_violations_fail",
    "policy_violations_warn",
    "policy_violations_info",
    "policy_violations_total",
    "policy_violations_audited",
    "policy_violations_unaudited",
    "policy_violations_security_total",
    "policy_violations_security_audited",
    "policy_violations_security_unaudited",
    "policy_violations_license_total",
    "policy_violations_license_audited",
    "policy_violations_license_unaudited",
    "policy_violations_operational_total",
    "policy_violations_operational_audited",
    "policy_violations_operational_unaudited",
)

# Fields compared when deciding whether a snapshot changed.
METRIC_FIELDS: tuple[str, ...] = COUNTER_FIELDS + ("inherited_risk_score",)


class RiskScoreWeights(BaseModel):
    """Per-severity weights for the inherited risk score. Defaults are the canonical weights; every weight is positive."""

    model_config = ConfigDict(frozen=True)

    critical: float = Field(default=10.0, gt=0)
    high: float = Field(default=5.0, gt=0)
    medium: float = Field(default=3.0, gt=0)
    low: float = Field(default=1.0, gt=0)
    unassigned: float = Field(default=5.0, gt=0)


DEFAULT_RISK_WEIGHTS = RiskScoreWeights()


class ComponentMetricsAggregate(BaseModel):
    """
    Point-in-time security posture of one component.

    Suppressed findings and violations are excluded from every counter except `suppressed`.
    Policy violation state buckets (fail/warn/info) and type buckets (security/license/operational)
    are two views of the same non-suppressed set.
    """

    model_config = ConfigDict(frozen=True)

    critical: int = Field(default=0, ge=0)
    high: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    low: int = Field(default=0, ge=0)
    unassigned: int = Field(default=0, ge=0)
    vulnerabilities: int = Field(default=0, ge=0, description="Non-suppressed findings.")
    suppressed: int = Field(default=0, ge=0, description="Suppressed findings, counted separately.")
    findings_total: int = Field(default=0, ge=0)
    findings_audited: int = Field(default=0, ge=0)
    findings_unaudited: int = Field(default=0, ge=0)
    inherited_risk_score: float = Field(default=0.0, ge=0)

    policy_violations_fail: int = Field(default=0, ge=0)
    policy_violations_warn: int = Field(default=0, ge=0)
    policy_violations_info: int = Field(default=0, ge=0)
    policy_violations_total: int = Field(default=0, ge=0)
    policy_violations_audited: int = Field(default=0, ge=0)
    policy_violations_unaudited: int = Field(default=0, ge=0)
    policy_violations_security_total: int = Field(default=0, ge=0)
    policy_violations_security_audited: int = Field(default=0, ge=0)
    policy_violations_security_unaudited: int = Field(default=0, ge=0)
    policy_violations_license_total: int = Field(default=0, ge=0)
    policy_violations_license_audited: int = Field(default=0, ge=0)
    policy_violations_license_unaudited: int = Field(default=0, ge=0)
    policy_violations_operational_total: int = Field(default=0, ge=0)
    policy_violations_operational_audited: int = Field(default=0, ge=0)
    policy_violations_operational_unaudited: int = Field(default=0, ge=0)

    def metric_values(self) -> dict[str, int | float]:
        """Return every compared field (counters and risk score) keyed by column name."""
        return {name: getattr(self, name) for name in METRIC_FIELDS}


class SnapshotRef(BaseModel):
    """Reference to the snapshot row written or touched by one reconcile call."""

    metrics_id: int = Field(..., description="Primary key of the dependency_metrics row.")
    component_id: int = Field(..., description="Component the snapshot belongs to.")
    created: bool = Field(
        ...,
        description="True when a new row was inserted; False when the current row was touched.",
    )
    inherited_risk_score: float = Field(..., ge=0)
    first_occurrence: datetime
    last_occurrence: datetime
