"""Create table_b referencing table_a

Revision ID: 002_create_table_b
Revises: 001_create_table_a
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = "002_create_table_b"
down_revision = "001_create_table_a"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "table_b",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("a_id", sa.Integer(), sa.ForeignKey("table_a.id"), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("table_b")
