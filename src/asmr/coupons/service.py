"""Coupon batches and single-use redemption."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from asmr.config import get_settings
from asmr.coupons.codes import generate_coupon_code, normalize_coupon_code
from asmr.db.models import Coupon, User
from asmr.exceptions import Conflict, Gone, NotFound, ServerError, ValidationFailed

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 1000
DEFAULT_BATCH_SIZE = 10


class CouponValidationError(ValueError):
    """Rejected batch request; nothing was persisted."""


@dataclass(frozen=True)
class CouponBatch:
    """Outcome of a generation run. ``generated`` may be below the requested count."""

    generated: int
    batch_id: str


@dataclass(frozen=True)
class CouponRedemption:
    """Outcome of a successful redemption."""

    code: str
    value: int
    points_added: int
    new_balance: int


def default_batch_id() -> str:
    """Current epoch time in milliseconds, as a string."""
    return str(int(time.time() * 1000))


def validate_batch_size(count: int) -> None:
    """Raise ``CouponValidationError`` unless 1 <= count <= 1000."""
    if count < MIN_BATCH_SIZE:
        msg = f"count must be at least {MIN_BATCH_SIZE}"
        raise CouponValidationError(msg)
    if count > MAX_BATCH_SIZE:
        msg = f"count cannot exceed {MAX_BATCH_SIZE}"
        raise CouponValidationError(msg)


async def generate_coupons(
    db: AsyncSession,
    count: int,
    batch_id: str | None = None,
) -> CouponBatch:
    """
    Create up to ``count`` unused coupons under one batch id.

    Each coupon is committed on its own. A code that collides with an
    existing one is logged and skipped, without a retry.

    Raises:
        CouponValidationError: ``count`` out of range.
        ServerError: Any database error other than a code collision.
    """
    validate_batch_size(count)
    batch = (batch_id or "").strip() or default_batch_id()
    value = get_settings().coupon_default_value

    generated = 0
    for _ in range(count):
        code = generate_coupon_code()
        db.add(
            Coupon(
                code=code,
                value=value,
                used=False,
                batch_id=batch,
                created_at=datetime.now(timezone.utc),
            )
        )
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("coupon_duplicate_skipped", code=code, batch_id=batch)
            continue
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("coupon_generation_failed", batch_id=batch, generated=generated, error=str(e))
            msg = "Failed to generate coupons"
            raise ServerError(msg) from e
        generated += 1

    logger.info("coupons_generated", batch_id=batch, requested=count, generated=generated)
    return CouponBatch(generated=generated, batch_id=batch)


async def get_batch(db: AsyncSession, batch_id: str) -> list[Coupon]:
    """All coupons of a batch, in creation order."""
    result = await db.execute(select(Coupon).where(Coupon.batch_id == batch_id).order_by(Coupon.id))
    return list(result.scalars().all())


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


async def redeem_coupon(db: AsyncSession, user_id: int, code: str | None) -> CouponRedemption:
    """
    Consume a coupon and credit its value to the user.

    The ``used`` flag is flipped by a conditional UPDATE, and the credit is
    an in-database increment, both in one transaction.

    Raises:
        ValidationFailed: Blank code.
        NotFound: Unknown code.
        Conflict: Already used.
        Gone: Expired.
    """
    normalized = normalize_coupon_code(code or "")
    if not normalized:
        msg = "Invalid coupon code"
        raise ValidationFailed(msg)

    coupon = await db.scalar(select(Coupon).where(Coupon.code == normalized))
    if coupon is None:
        msg = "Coupon not found"
        raise NotFound(msg)
    if coupon.used:
        msg = "Coupon already used"
        raise Conflict(msg)

    now = datetime.now(timezone.utc)
    if coupon.expires_at is not None and _as_utc(coupon.expires_at) <= now:
        msg = "Coupon has expired"
        raise Gone(msg)

    coupon_id, value = coupon.id, coupon.value
    claimed = await db.execute(
        update(Coupon)
        .where(Coupon.id == coupon_id)
        .where(Coupon.used.is_(False))
        .where(or_(Coupon.expires_at.is_(None), Coupon.expires_at > now))
        .values(used=True, redeemed_by=user_id, redeemed_at=now)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        await db.rollback()
        msg = "Coupon already used"
        raise Conflict(msg)

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(points=User.points + value)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    new_balance = await db.scalar(select(User.points).where(User.id == user_id))
    logger.info("coupon_redeemed", user_id=user_id, code=normalized, points_added=value)
    return CouponRedemption(
        code=normalized,
        value=value,
        points_added=value,
        new_balance=int(new_balance or 0),
    )
