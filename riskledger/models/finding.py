"""ORM model for persisted vulnerability findings (component/vulnerability pairings)."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from riskledger.models.base import Base


class Finding(Base):
    """
    One vulnerability affecting one component, with its triage state.

    analysis_state and suppressed are set by the triage workflow; metrics code only reads them.
    """

    __tablename__ = "findings"
    __table_args__ = (
        UniqueConstraint("component_id", "vulnerability_id", name="uq_findings_component_vulnerability"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    component_id = Column(
        Integer,
        ForeignKey("components.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    vulnerability_id = Column(String(255), nullable=False, index=True)
    severity = Column(String(32), nullable=True)
    analysis_state = Column(String(32), nullable=False, default="not_set")
    suppressed = Column(Boolean, nullable=False, default=False)
    attributed_on = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
