"""Inherited risk score: severity-weighted count of non-suppressed findings."""

from riskledger.schemas.metrics import DEFAULT_RISK_WEIGHTS, RiskScoreWeights


def inherited_risk_score(
    critical: int,
    high: int,
    medium: int,
    low: int,
    unassigned: int,
    weights: RiskScoreWeights = DEFAULT_RISK_WEIGHTS,
) -> float:
    """
    Weighted sum of severity counts. With default weights:
    critical*10 + high*5 + medium*3 + low*1 + unassigned*5.

    Counts must already exclude suppressed findings.
    """
    return float(
        critical * weights.critical
        + high * weights.high
        + medium * weights.medium
        + low * weights.low
        + unassigned * weights.unassigned
    )
