"""ORM model for policy violations raised against components."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from riskledger.models.base import Base


class PolicyViolation(Base):
    """
    One policy condition violated by one component.

    state: fail, warn, or info. type: license, security, or operational.
    analysis_state: not_set, approved, or rejected (set by the violation audit workflow).
    """

    __tablename__ = "policy_violations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    component_id = Column(
        Integer,
        ForeignKey("components.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    policy_condition = Column(String(255), nullable=False, default="")
    state = Column(String(16), nullable=True)
    type = Column(String(16), nullable=True)
    analysis_state = Column(String(32), nullable=False, default="not_set")
    suppressed = Column(Boolean, nullable=False, default=False)
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
