"""ORM model for tracked components (software artifacts with metrics)."""

from sqlalchemy import Column, DateTime, Float, Integer, String, func

from riskledger.models.base import Base


class Component(Base):
    """
    A tracked software artifact.

    last_inherited_risk_score caches the risk score of the component's current metrics
    snapshot; it is written only by the snapshot writer.
    """

    __tablename__ = "components"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(36), nullable=False, unique=True, index=True)
    group = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False, index=True)
    version = Column(String(255), nullable=True)
    purl = Column(String(1024), nullable=True)
    last_inherited_risk_score = Column(Float, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
