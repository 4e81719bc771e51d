"""Coupon endpoints: batch generation, batch listing and redemption."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.auth.dependencies import get_current_user, require_admin_or_server
from asmr.coupons.schemas import (
    CouponBatchResponse,
    CouponItem,
    CouponSummary,
    GenerateCouponsRequest,
    GenerateCouponsResponse,
    RedeemCouponRequest,
    RedeemCouponResponse,
)
from asmr.coupons.service import (
    DEFAULT_BATCH_SIZE,
    CouponValidationError,
    generate_coupons,
    get_batch,
    redeem_coupon,
)
from asmr.database import get_session
from asmr.db.models import User
from asmr.exceptions import NotFound, ValidationFailed
from asmr.schemas import Envelope, ok

router = APIRouter(tags=["Coupons"])


@router.post(
    "/generate-coupons",
    response_model=Envelope[GenerateCouponsResponse],
    dependencies=[Depends(require_admin_or_server)],
)
async def create_coupons(
    body: GenerateCouponsRequest,
    db: AsyncSession = Depends(get_session),
) -> Envelope[GenerateCouponsResponse]:
    """Generate a batch of single-use coupons (admin session or server token)."""
    count = body.count if body.count is not None else DEFAULT_BATCH_SIZE
    try:
        batch = await generate_coupons(db, count, body.batch_id)
    except CouponValidationError as e:
        raise ValidationFailed(str(e)) from e
    return ok(GenerateCouponsResponse(generated=batch.generated, batch_id=batch.batch_id))


@router.get(
    "/coupons/batches/{batch_id}",
    response_model=Envelope[CouponBatchResponse],
    dependencies=[Depends(require_admin_or_server)],
)
async def list_batch(
    batch_id: str,
    db: AsyncSession = Depends(get_session),
) -> Envelope[CouponBatchResponse]:
    """List the coupons of one batch."""
    coupons = await get_batch(db, batch_id)
    if not coupons:
        msg = "Coupon batch not found"
        raise NotFound(msg)
    return ok(
        CouponBatchResponse(
            batch_id=batch_id,
            total=len(coupons),
            used=sum(1 for c in coupons if c.used),
            coupons=[CouponItem.model_validate(c) for c in coupons],
        )
    )


@router.post("/coupons/redeem", response_model=Envelope[RedeemCouponResponse])
async def redeem(
    body: RedeemCouponRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[RedeemCouponResponse]:
    """Redeem a coupon code for points."""
    redemption = await redeem_coupon(db, user.id, body.code)
    return ok(
        RedeemCouponResponse(
            points_added=redemption.points_added,
            new_balance=redemption.new_balance,
            coupon=CouponSummary(code=redemption.code, value=redemption.value),
        )
    )
