"""Initial components, findings, and policy_violations tables.

Revision ID: 20250301000000
Revises:
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20250301000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "components",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("group", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("version", sa.String(length=255), nullable=True),
        sa.Column("purl", sa.String(length=1024), nullable=True),
        sa.Column("last_inherited_risk_score", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_components_uuid"), "components", ["uuid"], unique=True)
    op.create_index(op.f("ix_components_name"), "components", ["name"], unique=False)

    op.create_table(
        "findings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("component_id", sa.Integer(), nullable=False),
        sa.Column("vulnerability_id", sa.String(length=255), nullable=False),
        sa.Column("severity", sa.String(length=32), nullable=True),
        sa.Column("analysis_state", sa.String(length=32), nullable=False, server_default="not_set"),
        sa.Column("suppressed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "attributed_on",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["component_id"], ["components.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "component_id", "vulnerability_id", name="uq_findings_component_vulnerability"
        ),
    )
    op.create_index(op.f("ix_findings_component_id"), "findings", ["component_id"], unique=False)
    op.create_index(
        op.f("ix_findings_vulnerability_id"), "findings", ["vulnerability_id"], unique=False
    )

    op.create_table(
        "policy_violations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("component_id", sa.Integer(), nullable=False),
        sa.Column("policy_condition", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("state", sa.String(length=16), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=True),
        sa.Column("analysis_state", sa.String(length=32), nullable=False, server_default="not_set"),
        sa.Column("suppressed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["component_id"], ["components.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_policy_violations_component_id"),
        "policy_violations",
        ["component_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_policy_violations_component_id"), table_name="policy_violations")
    op.drop_table("policy_violations")
    op.drop_index(op.f("ix_findings_vulnerability_id"), table_name="findings")
    op.drop_index(op.f("ix_findings_component_id"), table_name="findings")
    op.drop_table("findings")
    op.drop_index(op.f("ix_components_name"), table_name="components")
    op.drop_index(op.f("ix_components_uuid"), table_name="components")
    op.drop_table("components")
