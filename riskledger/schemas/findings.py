"""Pydantic schemas for the current-state view of findings and policy violations, plus their taxonomies."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Vulnerability severity, ordered least to most severe.
SeverityLevel = Literal["unassigned", "low", "medium", "high", "critical"]

SEVERITY_ORDER: tuple[SeverityLevel, ...] = (
    "unassigned",
    "low",
    "medium",
    "high",
    "critical",
)

# Triage decision recorded against a finding. "not_set" means no decision yet.
AnalysisState = Literal[
    "not_set",
    "exploitable",
    "in_triage",
    "resolved",
    "false_positive",
    "not_affected",
]

ANALYSIS_STATE_VALUES: frozenset[str] = frozenset(
    {"not_set", "exploitable", "in_triage", "resolved", "false_positive", "not_affected"}
)

# Policy enforcement level of a violation, ordered least to most enforcing.
ViolationState = Literal["info", "warn", "fail"]

VIOLATION_STATE_ORDER: tuple[ViolationState, ...] = ("info", "warn", "fail")

# Mutually exclusive violation categories.
ViolationType = Literal["license", "security", "operational"]

VIOLATION_TYPE_VALUES: frozenset[str] = frozenset({"license", "security", "operational"})

# Audit decision recorded against a violation. "not_set" means no decision yet.
ViolationAnalysisState = Literal["not_set", "approved", "rejected"]

VIOLATION_ANALYSIS_STATE_VALUES: frozenset[str] = frozenset({"not_set", "approved", "rejected"})

NOT_SET = "not_set"


class FindingRecord(BaseModel):
    """
    Current state of one (component, vulnerability) finding as read from the store.

    Taxonomy fields are plain strings; the aggregator folds unknown values into defined buckets.
    """

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    severity: str | None = Field(
        default=None,
        description="Severity: critical, high, medium, low, or unassigned.",
    )
    analysis_state: str | None = Field(
        default=NOT_SET,
        description="Triage decision; not_set when the finding has not been audited.",
    )
    suppressed: bool = Field(
        default=False,
        description="True when the finding is excluded from active risk accounting.",
    )


class PolicyViolationRecord(BaseModel):
    """Current state of one (component, policy condition) violation as read from the store."""

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    state: str | None = Field(
        default=None,
        description="Enforcement level: fail, warn, or info.",
    )
    type: str | None = Field(
        default=None,
        description="Violation category: license, security, or operational.",
    )
    analysis_state: str | None = Field(
        default=NOT_SET,
        description="Violation audit decision; not_set when no decision has been recorded.",
    )
    suppressed: bool = Field(
        default=False,
        description="True when the violation is excluded from every count.",
    )
