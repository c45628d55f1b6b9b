"""initial coaching schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

OPEN_ENROLLMENT = sa.text("status NOT IN ('cancelled', 'completed')")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("terms_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("terms_accepted_at", sa.DateTime(), nullable=True),
        sa.Column("disclaimer_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("disclaimer_accepted_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("login_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "coaching_clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="enrolled"),
        sa.Column("coaching_type", sa.String(length=40), nullable=False, server_default="pregnancy_coaching"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("plan_duration_weeks", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("health_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_coaching_clients_user_id", "coaching_clients", ["user_id"])
    op.create_index(
        "uq_coaching_client_open",
        "coaching_clients",
        ["user_id"],
        unique=True,
        postgresql_where=OPEN_ENROLLMENT,
        sqlite_where=OPEN_ENROLLMENT,
    )

    op.create_table(
        "coaching_form_responses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("coaching_clients.id"), nullable=False),
        sa.Column("form_type", sa.String(length=60), nullable=False),
        sa.Column("responses", sa.JSON(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_coaching_form_responses_client_id", "coaching_form_responses", ["client_id"])

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "admin_action_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("coaching_clients.id"), nullable=True),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_admin_action_logs_actor_user_id", "admin_action_logs", ["actor_user_id"])
    op.create_index("ix_admin_action_logs_client_id", "admin_action_logs", ["client_id"])


def downgrade() -> None:
    op.drop_table("admin_action_logs")
    op.drop_table("auth_sessions")
    op.drop_table("coaching_form_responses")
    op.drop_index("uq_coaching_client_open", table_name="coaching_clients")
    op.drop_table("coaching_clients")
    op.drop_table("users")
