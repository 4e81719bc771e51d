"""Request/response schemas for gift card redemption."""

from __future__ import annotations

from asmr.schemas import CamelModel


class RedeemGiftCardRequest(CamelModel):
    code: str | None = None


class GiftCardSummary(CamelModel):
    code: str
    description: str


class RedeemGiftCardResponse(CamelModel):
    gift_card: GiftCardSummary
    new_balance: int
    points_added: int
