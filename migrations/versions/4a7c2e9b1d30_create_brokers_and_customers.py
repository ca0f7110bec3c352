"""create brokers and customers

Revision ID: 4a7c2e9b1d30
Revises:
Create Date: 2026-09-28

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "4a7c2e9b1d30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "brokers" not in existing_tables:
        op.create_table(
            "brokers",
            sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("company_name", sa.Text(), nullable=True),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.UniqueConstraint("email", name="uq_brokers_email"),
        )

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("email", sa.Text(), nullable=False),
            sa.Column("gstin", sa.String(length=15), nullable=False),
            sa.Column("type", sa.String(length=16), nullable=False),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
            sa.Column("broker_id", sa.String(length=36), nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.ForeignKeyConstraint(["broker_id"], ["brokers.id"]),
            sa.CheckConstraint("status IN ('active', 'pending', 'inactive')", name="ck_customers_status"),
            sa.CheckConstraint("type IN ('exporter', 'importer')", name="ck_customers_type"),
        )
        op.create_index("idx_customers_broker_id", "customers", ["broker_id", "created_at"])
        op.create_index("idx_customers_status", "customers", ["status"])


def downgrade() -> None:
    op.drop_index("idx_customers_status", table_name="customers")
    op.drop_index("idx_customers_broker_id", table_name="customers")
    op.drop_table("customers")
    op.drop_table("brokers")
