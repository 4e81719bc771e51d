"""Gift card endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.auth.dependencies import get_current_user
from asmr.database import get_session
from asmr.db.models import User
from asmr.giftcards.schemas import GiftCardSummary, RedeemGiftCardRequest, RedeemGiftCardResponse
from asmr.giftcards.service import redeem_gift_card
from asmr.schemas import Envelope, ok

router = APIRouter(prefix="/gift-cards", tags=["Gift cards"])


@router.post("/redeem", response_model=Envelope[RedeemGiftCardResponse])
async def redeem(
    body: RedeemGiftCardRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[RedeemGiftCardResponse]:
    """Redeem a gift card code for points."""
    result = await redeem_gift_card(db, user.id, body.code)
    return ok(
        RedeemGiftCardResponse(
            gift_card=GiftCardSummary(code=result.card.code, description=result.card.description),
            new_balance=result.new_balance,
            points_added=result.points_added,
        )
    )
