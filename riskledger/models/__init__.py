"""SQLAlchemy ORM models."""

from riskledger.models.base import Base
from riskledger.models.component import Component
from riskledger.models.dependency_metrics import DependencyMetrics
from riskledger.models.finding import Finding
from riskledger.models.policy_violation import PolicyViolation

__all__ = ["Base", "Component", "DependencyMetrics", "Finding", "PolicyViolation"]
