"""visitors.source: record whether a visitor was pre-approved or logged at the gate

Revision ID: 0002_visitor_source
Revises: 0001_initial
Create Date: 2026-10-20 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0002_visitor_source"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "visitors",
        sa.Column("source", sa.String(20), nullable=False, server_default="gate_entry"),
    )
    # Only owner pre-approvals ever carried a QR gate pass.
    op.execute("UPDATE visitors SET source = 'pre_approval' WHERE qr_code IS NOT NULL")


def downgrade() -> None:
    op.drop_column("visitors", "source")
