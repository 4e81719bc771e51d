"""Gift card redemption."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from asmr.config import get_settings
from asmr.db.models import GiftCardRedemption, User
from asmr.exceptions import Conflict, NotFound, ValidationFailed
from asmr.giftcards.catalog import GiftCard, find_gift_card

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(frozen=True)
class GiftCardResult:
    card: GiftCard
    points_added: int
    new_balance: int


async def redeem_gift_card(db: AsyncSession, user_id: int, code: str | None) -> GiftCardResult:
    """
    Credit a gift card's points to the user.

    With ``gift_card_once_per_user`` enabled, each user can redeem a given
    card once; the redemption row and the credit commit together.

    Raises:
        ValidationFailed: Blank code.
        NotFound: Code not in the catalog.
        Conflict: Already redeemed by this user.
    """
    if not code or not code.strip():
        msg = "Invalid gift card code"
        raise ValidationFailed(msg)

    card = find_gift_card(code)
    if card is None:
        msg = "Gift card not found"
        raise NotFound(msg)

    if get_settings().gift_card_once_per_user:
        db.add(
            GiftCardRedemption(
                user_id=user_id,
                code=card.code,
                points=card.points,
                redeemed_at=datetime.now(timezone.utc),
            )
        )
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            logger.info("gift_card_rejected", user_id=user_id, code=card.code, reason="already_redeemed")
            msg = "Gift card already redeemed"
            raise Conflict(msg) from e

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(points=User.points + card.points)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    new_balance = await db.scalar(select(User.points).where(User.id == user_id))
    logger.info("gift_card_redeemed", user_id=user_id, code=card.code, points_added=card.points)
    return GiftCardResult(card=card, points_added=card.points, new_balance=int(new_balance or 0))
