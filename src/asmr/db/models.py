"""ORM models for users, sessions, ASMR resources, media assets and coupons.

The schema is created by Alembic (``001_initial``); tests build it directly
from this metadata.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from asmr.db.base import Base, BigIntId


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A platform account with a points balance."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("points >= 0", name="points_non_negative"),
        CheckConstraint("role IN ('free', 'premium', 'admin')", name="role_valid"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    nickname: Mapped[str] = mapped_column(String(64), nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="free", server_default="free")
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    login_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    sessions: Mapped[list[UserSession]] = relationship("UserSession", back_populates="user")


class UserSession(Base):
    """Server-side record of an issued session token, keyed by the token's JTI."""

    __tablename__ = "user_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="sessions")


class UserOwnedResource(Base):
    """Ownership set: one row per (user, resource) the user has paid for."""

    __tablename__ = "user_owned_resources"

    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    resource_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("asmr_resources.id", ondelete="CASCADE"), primary_key=True
    )
    price_paid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    purchased_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    resource: Mapped[AsmrResource] = relationship("AsmrResource", lazy="joined")


class PlaylistEntry(Base):
    """Playlist set: one row per (user, resource) saved for later listening."""

    __tablename__ = "user_playlist"

    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    resource_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("asmr_resources.id", ondelete="CASCADE"), primary_key=True
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    resource: Mapped[AsmrResource] = relationship("AsmrResource", lazy="joined")


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------


class MediaAsset(Base):
    """An uploaded binary (audio, subtitle or image) stored under ``filename`` in the bucket."""

    __tablename__ = "media_assets"
    __table_args__ = (CheckConstraint("kind IN ('audio', 'subtitle', 'image')", name="kind_valid"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    filename: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    filesize: Mapped[int | None] = mapped_column(Integer, nullable=True)
    language: Mapped[str | None] = mapped_column(String(8), nullable=True)
    title: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# ASMR resources
# ---------------------------------------------------------------------------


class AsmrResource(Base):
    """A purchasable ASMR work with its audio tracks, subtitles and gallery."""

    __tablename__ = "asmr_resources"
    __table_args__ = (CheckConstraint("price >= 0", name="price_non_negative"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    visibility: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    cover_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("media_assets.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    cover: Mapped[MediaAsset | None] = relationship("MediaAsset", lazy="joined")
    audios: Mapped[list[ResourceAudio]] = relationship(
        "ResourceAudio",
        order_by="ResourceAudio.order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    subtitles: Mapped[list[ResourceSubtitle]] = relationship(
        "ResourceSubtitle",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    images: Mapped[list[ResourceImage]] = relationship(
        "ResourceImage",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ResourceAudio(Base):
    """One audio track of a resource."""

    __tablename__ = "resource_audios"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("asmr_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order: Mapped[int] = mapped_column("track_order", Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    media_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("media_assets.id"), nullable=False)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds

    media: Mapped[MediaAsset] = relationship("MediaAsset", lazy="joined")


class ResourceSubtitle(Base):
    """A subtitle file attached to a resource."""

    __tablename__ = "resource_subtitles"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("asmr_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    language: Mapped[str] = mapped_column(String(8), nullable=False)
    media_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("media_assets.id"), nullable=False)

    media: Mapped[MediaAsset] = relationship("MediaAsset", lazy="joined")


class ResourceImage(Base):
    """A gallery image attached to a resource."""

    __tablename__ = "resource_images"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("asmr_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("media_assets.id"), nullable=False)
    caption: Mapped[str | None] = mapped_column(String(256), nullable=True)

    media: Mapped[MediaAsset] = relationship("MediaAsset", lazy="joined")


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


class Comment(Base):
    """A listener comment on a resource; ``parent_id`` makes it a reply. Only approved ones are shown."""

    __tablename__ = "comments"
    __table_args__ = (CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="status_valid"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    resource_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("asmr_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("comments.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    author: Mapped[User] = relationship("User", lazy="joined")


# ---------------------------------------------------------------------------
# Coupons & gift cards
# ---------------------------------------------------------------------------


class Coupon(Base):
    """A single-use points coupon generated in batches."""

    __tablename__ = "coupons"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=10, server_default="10")
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    batch_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    redeemed_by: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    redeemed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class GiftCardRedemption(Base):
    """Record of a user redeeming a static gift card code."""

    __tablename__ = "gift_card_redemptions"
    __table_args__ = (UniqueConstraint("user_id", "code", name="uq_gift_card_redemptions_user_code"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    redeemed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

