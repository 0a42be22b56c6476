"""initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    roles = op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
    )
    op.bulk_insert(roles, [{"name": "admin"}, {"name": "user"}])

    op.create_table(
        "user_profile",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_user_profile_email", "user_profile", ["email"], unique=True)
    op.create_index("ix_user_profile_created_at", "user_profile", ["created_at"])

    op.create_table(
        "swap_limits",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user_profile.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("total_swaps", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("used_swaps", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("earned_swaps", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user_profile.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", sa.String(500), nullable=True),
        sa.Column("redemption_type", sa.String(20), nullable=False),
        sa.Column("product_link", sa.String(1000), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("moderated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_products_user_id", "products", ["user_id"])
    op.create_index("ix_products_status", "products", ["status"])
    op.create_index("ix_products_created_at", "products", ["created_at"])

    op.create_table(
        "swaps",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("sender_id", sa.Uuid(), sa.ForeignKey("user_profile.id"), nullable=False),
        sa.Column("receiver_id", sa.Uuid(), sa.ForeignKey("user_profile.id"), nullable=False),
        sa.Column("product_id", sa.Uuid(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("offered_product_id", sa.Uuid(), sa.ForeignKey("products.id"), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_swaps_sender_id", "swaps", ["sender_id"])
    op.create_index("ix_swaps_receiver_id", "swaps", ["receiver_id"])
    op.create_index("ix_swaps_product_id", "swaps", ["product_id"])
    op.create_index("ix_swaps_status", "swaps", ["status"])
    op.create_index("ix_swaps_created_at", "swaps", ["created_at"])
    op.create_index(
        "uq_swaps_pending_request",
        "swaps",
        ["sender_id", "product_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "shoutouts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user_profile.id"), nullable=False),
        sa.Column("product_id", sa.Uuid(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("swap_id", sa.Uuid(), sa.ForeignKey("swaps.id"), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "product_id", name="uq_shoutouts_user_product"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_shoutouts_rating"),
    )
    op.create_index("ix_shoutouts_user_id", "shoutouts", ["user_id"])
    op.create_index("ix_shoutouts_product_id", "shoutouts", ["product_id"])
    op.create_index("ix_shoutouts_created_at", "shoutouts", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user_profile.id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("category", sa.String(30), nullable=False, server_default="general"),
        sa.Column("read_status", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_read_status", "notifications", ["read_status"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "notification_preferences",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user_profile.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("email_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("push_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("product_updates", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("swap_events", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("shoutouts", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("digest", sa.String(10), nullable=False, server_default="daily"),
        sa.Column("last_digest_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")
    op.drop_table("notifications")
    op.drop_table("shoutouts")
    op.drop_table("swaps")
    op.drop_table("products")
    op.drop_table("swap_limits")
    op.drop_table("user_profile")
    op.drop_table("roles")
