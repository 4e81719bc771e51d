"""Initial schema: users, sessions, resources, media, comments, coupons, gift card redemptions.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("nickname", sa.String(64), nullable=False),
        sa.Column("is_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("role", sa.String(16), server_default="free", nullable=False),
        sa.Column("points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("login_count", sa.Integer(), server_default="0", nullable=False),
        sa.CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
        sa.CheckConstraint("role IN ('free', 'premium', 'admin')", name="ck_users_role_valid"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "user_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_revoked", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])

    # --- media & resources ---
    op.create_table(
        "media_assets",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("filename", sa.String(512), nullable=False),
        sa.Column("mime_type", sa.String(128), nullable=True),
        sa.Column("filesize", sa.Integer(), nullable=True),
        sa.Column("language", sa.String(8), nullable=True),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("kind IN ('audio', 'subtitle', 'image')", name="ck_media_assets_kind_valid"),
        sa.UniqueConstraint("filename", name="uq_media_assets_filename"),
    )

    op.create_table(
        "asmr_resources",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer(), server_default="0", nullable=False),
        sa.Column("public", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("visibility", sa.JSON(), nullable=False),
        sa.Column(
            "cover_id",
            sa.BigInteger(),
            sa.ForeignKey("media_assets.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("price >= 0", name="ck_asmr_resources_price_non_negative"),
    )

    op.create_table(
        "resource_audios",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "resource_id",
            sa.BigInteger(),
            sa.ForeignKey("asmr_resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("track_order", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("media_id", sa.BigInteger(), sa.ForeignKey("media_assets.id"), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
    )
    op.create_index("ix_resource_audios_resource_id", "resource_audios", ["resource_id"])

    op.create_table(
        "resource_subtitles",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "resource_id",
            sa.BigInteger(),
            sa.ForeignKey("asmr_resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("language", sa.String(8), nullable=False),
        sa.Column("media_id", sa.BigInteger(), sa.ForeignKey("media_assets.id"), nullable=False),
    )
    op.create_index("ix_resource_subtitles_resource_id", "resource_subtitles", ["resource_id"])

    op.create_table(
        "resource_images",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "resource_id",
            sa.BigInteger(),
            sa.ForeignKey("asmr_resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("media_id", sa.BigInteger(), sa.ForeignKey("media_assets.id"), nullable=False),
        sa.Column("caption", sa.String(256), nullable=True),
    )
    op.create_index("ix_resource_images_resource_id", "resource_images", ["resource_id"])

    # --- comments ---
    op.create_table(
        "comments",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "resource_id",
            sa.BigInteger(),
            sa.ForeignKey("asmr_resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("parent_id", sa.BigInteger(), sa.ForeignKey("comments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_comments_status_valid"),
    )
    op.create_index("ix_comments_resource_id", "comments", ["resource_id"])

    # --- ownership & playlist sets ---
    op.create_table(
        "user_owned_resources",
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "resource_id",
            sa.BigInteger(),
            sa.ForeignKey("asmr_resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("price_paid", sa.Integer(), nullable=False),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "resource_id", name="pk_user_owned_resources"),
    )

    op.create_table(
        "user_playlist",
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "resource_id",
            sa.BigInteger(),
            sa.ForeignKey("asmr_resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "resource_id", name="pk_user_playlist"),
    )

    # --- coupons & gift cards ---
    op.create_table(
        "coupons",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("value", sa.Integer(), server_default="10", nullable=False),
        sa.Column("used", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("batch_id", sa.String(64), nullable=True),
        sa.Column("redeemed_by", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_coupons_code", "coupons", ["code"], unique=True)
    op.create_index("ix_coupons_batch_id", "coupons", ["batch_id"])

    op.create_table(
        "gift_card_redemptions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "code", name="uq_gift_card_redemptions_user_code"),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("gift_card_redemptions")
    op.drop_index("ix_coupons_batch_id", table_name="coupons")
    op.drop_index("ix_coupons_code", table_name="coupons")
    op.drop_table("coupons")
    op.drop_table("user_playlist")
    op.drop_table("user_owned_resources")
    op.drop_index("ix_comments_resource_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_resource_images_resource_id", table_name="resource_images")
    op.drop_table("resource_images")
    op.drop_index("ix_resource_subtitles_resource_id", table_name="resource_subtitles")
    op.drop_table("resource_subtitles")
    op.drop_index("ix_resource_audios_resource_id", table_name="resource_audios")
    op.drop_table("resource_audios")
    op.drop_table("asmr_resources")
    op.drop_table("media_assets")
    op.drop_index("ix_user_sessions_user_id", table_name="user_sessions")
    op.drop_table("user_sessions")
    op.drop_table("users")
