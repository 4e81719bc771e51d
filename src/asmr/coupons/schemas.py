"""Request/response schemas for coupon endpoints."""

from __future__ import annotations

from datetime import datetime

from asmr.schemas import CamelModel


class GenerateCouponsRequest(CamelModel):
    """Body of ``POST /generate-coupons``."""

    count: int | None = None
    batch_id: str | None = None


class GenerateCouponsResponse(CamelModel):
    generated: int
    batch_id: str


class CouponItem(CamelModel):
    code: str
    value: int
    used: bool
    expires_at: datetime | None = None
    redeemed_at: datetime | None = None
    created_at: datetime | None = None


class CouponBatchResponse(CamelModel):
    """Coupons of one batch, for distribution."""

    batch_id: str
    total: int
    used: int
    coupons: list[CouponItem]


class RedeemCouponRequest(CamelModel):
    code: str | None = None


class CouponSummary(CamelModel):
    code: str
    value: int


class RedeemCouponResponse(CamelModel):
    points_added: int
    new_balance: int
    coupon: CouponSummary
