"""add unique constraint submission assignment student

Resubmissions overwrite the existing row, so there is at most one
submission per (assignment, student).

Revision ID: 8e41b05c6a2d
Revises: 1c2f9a7d3e10
Create Date: 2026-10-12 11:02:47.915302

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '8e41b05c6a2d'
down_revision: Union[str, Sequence[str], None] = '1c2f9a7d3e10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table("submissions", recreate="always") as batch_op:
        batch_op.create_unique_constraint(
            "uq_submission_assignment_student",
            ["assignment_id", "student_id"],
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("submissions", recreate="always") as batch_op:
        batch_op.drop_constraint(
            "uq_submission_assignment_student",
            type_="unique",
        )
