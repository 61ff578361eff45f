"""Add dependency_metrics table for per-component metrics snapshots.

Revision ID: 20250301100000
Revises: 20250301000000
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20250301100000"
down_revision: Union[str, None] = "20250301000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

COUNTER_COLUMNS = (
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


def upgrade() -> None:
    op.create_table(
        "dependency_metrics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("component_id", sa.Integer(), nullable=False),
        *[
            sa.Column(name, sa.Integer(), nullable=False, server_default="0")
            for name in COUNTER_COLUMNS
        ],
        sa.Column("inherited_risk_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("first_occurrence", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_occurrence", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["component_id"], ["components.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_dependency_metrics_component_first_occurrence",
        "dependency_metrics",
        ["component_id", "first_occurrence"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_dependency_metrics_component_first_occurrence",
        table_name="dependency_metrics",
    )
    op.drop_table("dependency_metrics")
