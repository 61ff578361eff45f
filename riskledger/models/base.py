"""SQLAlchemy declarative Base shared by the riskledger ORM models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for components, findings, violations, and metrics snapshots."""

    pass
