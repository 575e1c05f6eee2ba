"""Create provisioned accounts table."""

import sqlalchemy as sa

from alembic import op

revision = "3c1d9e7a4b20"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the accounts table keyed by operator-chosen title."""
    op.create_table(
        "accounts",
        sa.Column("title", sa.String(length=255), primary_key=True),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("card_number", sa.String(length=64), nullable=False),
        sa.Column("external_customer_id", sa.String(length=255), nullable=False),
        sa.Column("auth_token", sa.Text(), nullable=False),
        sa.Column("session_token_a", sa.Text(), nullable=False),
        sa.Column("session_token_b", sa.Text(), nullable=False),
        sa.Column("csrf_token", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )


def downgrade() -> None:
    """Drop the accounts table."""
    op.drop_table("accounts")
