"""Evaluation insertion order - per-application sequence.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("evaluations", sa.Column("sequence", sa.Integer(), nullable=True))
    # Existing rows: number them by creation time, evaluation_id breaking ties
    op.execute(
        """
        UPDATE evaluations AS e
        SET sequence = ordered.position
        FROM (
            SELECT evaluation_id,
                   ROW_NUMBER() OVER (
                       PARTITION BY application_id ORDER BY created_at, evaluation_id
                   ) AS position
            FROM evaluations
        ) AS ordered
        WHERE e.evaluation_id = ordered.evaluation_id
        """
    )
    op.alter_column("evaluations", "sequence", nullable=False)
    op.create_unique_constraint(
        "uq_evaluations_sequence", "evaluations", ["application_id", "sequence"]
    )


def downgrade() -> None:
    op.drop_constraint("uq_evaluations_sequence", "evaluations", type_="unique")
    op.drop_column("evaluations", "sequence")
