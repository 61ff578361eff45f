"""Aggregate a component's findings and policy violations into metrics counters and a risk score.

Pure: reads only its arguments. Suppressed findings and violations are excluded from every
counter except the separate `suppressed` count. Unknown or missing taxonomy values fold into a
defined bucket so per-bucket sums always equal the totals.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING, Union

from riskledger.schemas.findings import (
    ANALYSIS_STATE_VALUES,
    NOT_SET,
    SEVERITY_ORDER,
    VIOLATION_ANALYSIS_STATE_VALUES,
    VIOLATION_STATE_ORDER,
    VIOLATION_TYPE_VALUES,
    FindingRecord,
    PolicyViolationRecord,
    SeverityLevel,
    ViolationState,
    ViolationType,
)
from riskledger.schemas.metrics import (
    DEFAULT_RISK_WEIGHTS,
    ComponentMetricsAggregate,
    RiskScoreWeights,
)
from riskledger.services.risk_score import inherited_risk_score

if TYPE_CHECKING:
    from riskledger.models.finding import Finding
    from riskledger.models.policy_violation import PolicyViolation

logger = logging.getLogger(__name__)

FindingLike = Union["Finding", FindingRecord]
ViolationLike = Union["PolicyViolation", PolicyViolationRecord]

# Buckets used when a value is missing or unrecognized.
DEFAULT_SEVERITY: SeverityLevel = "unassigned"
DEFAULT_VIOLATION_STATE: ViolationState = "info"
DEFAULT_VIOLATION_TYPE: ViolationType = "operational"

# Severity aliases (case-insensitive) -> canonical level.
_SEVERITY_ALIASES: dict[str, SeverityLevel] = {
    "critical": "critical",
    "crit": "critical",
    "high": "high",
    "medium": "medium",
    "med": "medium",
    "moderate": "medium",
    "low": "low",
    "info": "unassigned",
    "informational": "unassigned",
    "none": "unassigned",
    "unknown": "unassigned",
    "unassigned": "unassigned",
}

_VIOLATION_STATE_ALIASES: dict[str, ViolationState] = {
    "fail": "fail",
    "failure": "fail",
    "warn": "warn",
    "warning": "warn",
    "info": "info",
    "informational": "info",
}


class MetricsInvariantError(Exception):
    """Raised when aggregate bucket sums disagree with their totals (a counting bug, not bad data)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


def _canonical(value: str | None) -> str | None:
    """Lowercase and strip a taxonomy value; None for missing or blank."""
    if value is None or not isinstance(value, str) or not value.strip():
        return None
    return value.strip().lower().replace("-", "_").replace(" ", "_")


def normalize_severity(raw: str | None) -> SeverityLevel:
    """Map a raw severity to its bucket; unknown or missing -> unassigned."""
    canonical = _canonical(raw)
    if canonical is None:
        return DEFAULT_SEVERITY
    severity = _SEVERITY_ALIASES.get(canonical)
    if severity is None:
        logger.warning("Unrecognized severity %r counted as %s", raw, DEFAULT_SEVERITY)
        return DEFAULT_SEVERITY
    return severity


def normalize_violation_state(raw: str | None) -> ViolationState:
    """Map a raw violation state to its bucket; unknown or missing -> info."""
    canonical = _canonical(raw)
    state = _VIOLATION_STATE_ALIASES.get(canonical) if canonical else None
    if state is None:
        logger.warning("Unrecognized violation state %r counted as %s", raw, DEFAULT_VIOLATION_STATE)
        return DEFAULT_VIOLATION_STATE
    return state


def normalize_violation_type(raw: str | None) -> ViolationType:
    """Map a raw violation type to its bucket; unknown or missing -> operational."""
    canonical = _canonical(raw)
    if canonical not in VIOLATION_TYPE_VALUES:
        logger.warning("Unrecognized violation type %r counted as %s", raw, DEFAULT_VIOLATION_TYPE)
        return DEFAULT_VIOLATION_TYPE
    return canonical  # type: ignore[return-value]


def is_finding_audited(analysis_state: str | None) -> bool:
    """True when a recognized triage decision other than not_set has been recorded."""
    canonical = _canonical(analysis_state)
    return canonical in ANALYSIS_STATE_VALUES and canonical != NOT_SET


def is_violation_audited(analysis_state: str | None) -> bool:
    """True when a recognized violation analysis decision other than not_set has been recorded."""
    canonical = _canonical(analysis_state)
    return canonical in VIOLATION_ANALYSIS_STATE_VALUES and canonical != NOT_SET


def _count_findings(findings: Iterable[FindingLike]) -> dict[str, int]:
    counts: dict[str, int] = defaultdict(int)
    for finding in findings:
        if finding.suppressed:
            counts["suppressed"] += 1
            continue
        counts[normalize_severity(finding.severity)] += 1
        counts["findings_total"] += 1
        if is_finding_audited(finding.analysis_state):
            counts["findings_audited"] += 1
        else:
            counts["findings_unaudited"] += 1
    counts["vulnerabilities"] = counts["findings_total"]
    return counts


def _count_violations(violations: Iterable[ViolationLike]) -> dict[str, int]:
    counts: dict[str, int] = defaultdict(int)
    for violation in violations:
        if violation.suppressed:
            continue
        audit_suffix = "audited" if is_violation_audited(violation.analysis_state) else "unaudited"
        violation_type = normalize_violation_type(violation.type)

        counts[f"policy_violations_{normalize_violation_state(violation.state)}"] += 1
        counts["policy_violations_total"] += 1
        counts[f"policy_violations_{audit_suffix}"] += 1
        counts[f"policy_violations_{violation_type}_total"] += 1
        counts[f"policy_violations_{violation_type}_{audit_suffix}"] += 1
    return counts


def _require_equal(field: str, expected: int, actual: int, description: str) -> None:
    if expected != actual:
        raise MetricsInvariantError(
            f"{description}: {field}={expected} but buckets sum to {actual}",
            field=field,
        )


def verify_invariants(metrics: ComponentMetricsAggregate) -> None:
    """
    Check that every bucket view of the same set sums to its total.

    Raises MetricsInvariantError on the first mismatch.
    """
    severity_sum = sum(getattr(metrics, s) for s in SEVERITY_ORDER)
    _require_equal("findings_total", metrics.findings_total, severity_sum, "Severity buckets")
    _require_equal("vulnerabilities", metrics.vulnerabilities, metrics.findings_total, "Vulnerability count")
    _require_equal(
        "findings_total",
        metrics.findings_total,
        metrics.findings_audited + metrics.findings_unaudited,
        "Finding audit split",
    )

    total = metrics.policy_violations_total
    state_sum = sum(getattr(metrics, f"policy_violations_{s}") for s in VIOLATION_STATE_ORDER)
    _require_equal("policy_violations_total", total, state_sum, "Violation state buckets")
    type_sum = sum(
        getattr(metrics, f"policy_violations_{t}_total") for t in sorted(VIOLATION_TYPE_VALUES)
    )
    _require_equal("policy_violations_total", total, type_sum, "Violation type buckets")
    _require_equal(
        "policy_violations_total",
        total,
        metrics.policy_violations_audited + metrics.policy_violations_unaudited,
        "Violation audit split",
    )
    for violation_type in sorted(VIOLATION_TYPE_VALUES):
        prefix = f"policy_violations_{violation_type}"
        _require_equal(
            f"{prefix}_total",
            getattr(metrics, f"{prefix}_total"),
            getattr(metrics, f"{prefix}_audited") + getattr(metrics, f"{prefix}_unaudited"),
            f"{violation_type.capitalize()} violation audit split",
        )

    if metrics.findings_total == 0 and metrics.inherited_risk_score != 0:
        raise MetricsInvariantError(
            "Risk score must be zero when there are no non-suppressed findings",
            field="inherited_risk_score",
        )
    if metrics.findings_total > 0 and metrics.inherited_risk_score == 0:
        raise MetricsInvariantError(
            "Risk score must be positive when there are non-suppressed findings",
            field="inherited_risk_score",
        )


def aggregate(
    findings: Iterable[FindingLike],
    violations: Iterable[ViolationLike],
    weights: RiskScoreWeights = DEFAULT_RISK_WEIGHTS,
    verify: bool = True,
) -> ComponentMetricsAggregate:
    """
    Count findings and violations along their taxonomies and compute the inherited risk score.

    - findings: objects with severity, analysis_state, suppressed (ORM rows or FindingRecord).
    - violations: objects with state, type, analysis_state, suppressed.
    - weights: severity weights for the risk score.
    - verify: run verify_invariants on the result.

    Empty inputs yield all-zero counters and a zero score.
    """
    counts: dict[str, int] = {}
    counts.update(_count_findings(findings))
    counts.update(_count_violations(violations))

    score = inherited_risk_score(
        critical=counts.get("critical", 0),
        high=counts.get("high", 0),
        medium=counts.get("medium", 0),
        low=counts.get("low", 0),
        unassigned=counts.get("unassigned", 0),
        weights=weights,
    )
    result = ComponentMetricsAggregate(inherited_risk_score=score, **counts)
    if verify:
        verify_invariants(result)
    return result
