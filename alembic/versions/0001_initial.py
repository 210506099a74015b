"""initial schema: flats, users, profiles, auth sessions, visitors, audit trail

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "flats",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("wing", sa.String(1), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=False),
        sa.Column("unit", sa.Integer(), nullable=False),
        sa.Column("flat_number", sa.String(20), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("wing", "floor", "unit", name="uq_flats_wing_floor_unit"),
    )
    op.create_index("ix_flats_flat_number", "flats", ["flat_number"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("flat_id", sa.String(36), sa.ForeignKey("flats.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_profiles_flat_id", "profiles", ["flat_id"])

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_auth_sessions_token", "auth_sessions", ["token"], unique=True)
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "visitors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("qr_code", sa.Text(), nullable=True),
        sa.Column("flat_id", sa.String(36), sa.ForeignKey("flats.id"), nullable=True),
        sa.Column("registered_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("arrival_time", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_visitors_name_type", "visitors", ["name", "type"])
    op.create_index("ix_visitors_status", "visitors", ["status"])
    op.create_index("ix_visitors_flat_id", "visitors", ["flat_id"])
    op.create_index("ix_visitors_registered_by", "visitors", ["registered_by"])

    op.create_table(
        "audit_trail",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("old_value", sa.JSON(), nullable=True),
        sa.Column("new_value", sa.JSON(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_trail_user_id", "audit_trail", ["user_id"])
    op.create_index("ix_audit_trail_action", "audit_trail", ["action"])
    op.create_index("ix_audit_trail_entity_type", "audit_trail", ["entity_type"])
    op.create_index("ix_audit_trail_entity_id", "audit_trail", ["entity_id"])
    op.create_index("ix_audit_trail_created_at", "audit_trail", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_trail")
    op.drop_table("visitors")
    op.drop_table("auth_sessions")
    op.drop_table("profiles")
    op.drop_table("users")
    op.drop_table("flats")
