"""add auth sessions and audit events

Revision ID: 8e1f5b3c6a47
Revises: 4a7c2e9b1d30
Create Date: 2026-10-05

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "8e1f5b3c6a47"
down_revision: Union[str, Sequence[str], None] = "4a7c2e9b1d30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "auth_sessions" not in existing_tables:
        op.create_table(
            "auth_sessions",
            sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
            sa.Column("broker_id", sa.String(length=36), nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.Column("expires_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("revoked_at", sa.DateTime(timezone=False), nullable=True),
            sa.ForeignKeyConstraint(["broker_id"], ["brokers.id"], ondelete="CASCADE"),
        )
        op.create_index("idx_auth_sessions_broker_id", "auth_sessions", ["broker_id"])

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.Column("request_id", sa.String(length=64), nullable=True),
            sa.Column("actor_broker_id", sa.String(length=36), nullable=True),
            sa.Column("actor_email", sa.String(length=320), nullable=True),
            sa.Column("action", sa.String(length=128), nullable=False),
            sa.Column("entity_type", sa.String(length=128), nullable=True),
            sa.Column("entity_id", sa.String(length=128), nullable=True),
            sa.Column("reason", sa.String(length=512), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.Column("client_ip", sa.String(length=64), nullable=True),
            sa.ForeignKeyConstraint(["actor_broker_id"], ["brokers.id"], ondelete="SET NULL"),
        )
        op.create_index("idx_audit_events_created_at", "audit_events", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_audit_events_created_at", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("idx_auth_sessions_broker_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
