"""initial schema: admins, otp codes, sessions, suggestions, activity log

Revision ID: 3a1f0c2b9d41
Revises:
Create Date: 2026-10-17 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a1f0c2b9d41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "adminuser",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.Uuid(), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("department", sa.String(128), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_adminuser_public_id", "adminuser", ["public_id"], unique=True)
    op.create_index("ix_adminuser_phone", "adminuser", ["phone"], unique=True)
    op.create_index("ix_adminuser_role", "adminuser", ["role"])
    op.create_index("ix_adminuser_is_active", "adminuser", ["is_active"])

    op.create_table(
        "otpcode",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("code_hash", sa.String(128), nullable=False),
        sa.Column("attempts_remaining", sa.Integer(), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_otpcode_phone", "otpcode", ["phone"], unique=True)
    op.create_index("ix_otpcode_expires_at", "otpcode", ["expires_at"])

    op.create_table(
        "adminsession",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.Uuid(), nullable=False),
        sa.Column("session_token_hash", sa.String(128), nullable=False),
        sa.Column("admin_user_id", sa.Integer(), sa.ForeignKey("adminuser.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_adminsession_public_id", "adminsession", ["public_id"], unique=True)
    op.create_index("ix_adminsession_session_token_hash", "adminsession", ["session_token_hash"], unique=True)
    op.create_index("ix_adminsession_admin_user_id", "adminsession", ["admin_user_id"])

    op.create_table(
        "suggestioncategory",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_suggestioncategory_slug", "suggestioncategory", ["slug"], unique=True)
    op.create_index("ix_suggestioncategory_is_active", "suggestioncategory", ["is_active"])

    # no column derived from the submitter, by design of the suggestion box
    op.create_table(
        "suggestion",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("suggestioncategory.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_by_id", sa.Integer(), sa.ForeignKey("adminuser.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_suggestion_public_id", "suggestion", ["public_id"], unique=True)
    op.create_index("ix_suggestion_category_id", "suggestion", ["category_id"])
    op.create_index("ix_suggestion_status_created_at", "suggestion", ["status", "created_at"])
    op.create_index("ix_suggestion_category_status", "suggestion", ["category_id", "status"])

    op.create_table(
        "activitylog",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("admin_user_id", sa.Integer(), sa.ForeignKey("adminuser.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(16), nullable=False),
        sa.Column("resource", sa.String(64), nullable=False),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_activitylog_admin_user_id", "activitylog", ["admin_user_id"])
    op.create_index("ix_activitylog_action", "activitylog", ["action"])
    op.create_index("ix_activitylog_resource", "activitylog", ["resource"])
    op.create_index("ix_activitylog_created_at", "activitylog", ["created_at"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("activitylog")
    op.drop_table("suggestion")
    op.drop_table("suggestioncategory")
    op.drop_table("adminsession")
    op.drop_table("otpcode")
    op.drop_table("adminuser")
