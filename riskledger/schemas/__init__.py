"""Pydantic schemas for findings, violations, and metrics."""

from riskledger.schemas.findings import (
    AnalysisState,
    FindingRecord,
    PolicyViolationRecord,
    SeverityLevel,
    ViolationAnalysisState,
    ViolationState,
    ViolationType,
)
from riskledger.schemas.metrics import (
    DEFAULT_RISK_WEIGHTS,
    ComponentMetricsAggregate,
    RiskScoreWeights,
    SnapshotRef,
)

__all__ = [
    "AnalysisState",
    "ComponentMetricsAggregate",
    "DEFAULT_RISK_WEIGHTS",
    "FindingRecord",
    "PolicyViolationRecord",
    "RiskScoreWeights",
    "SeverityLevel",
    "SnapshotRef",
    "ViolationAnalysisState",
    "ViolationState",
    "ViolationType",
]
