"""Integration tests for redeeming coupons."""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient

from asmr.db.models import Coupon


async def _add_coupon(db_factory, code: str, *, value: int = 10, used: bool = False, expires_at=None) -> None:
    async with db_factory() as db:
        db.add(Coupon(code=code, value=value, used=used, expires_at=expires_at, batch_id="t"))
        await db.commit()


class TestRedeemCoupon:
    async def test_redeem_credits_points(self, client: AsyncClient, register, db_factory, points_of):
        await _add_coupon(db_factory, "ABCD-EFGH-JKLM-NPQR", value=10)
        user = await register(points=5)

        response = await client.post("/coupons/redeem", json={"code": " abcd-efgh-jklm-npqr "}, headers=user.headers)
        assert response.status_code == 200
        assert response.json()["data"] == {
            "pointsAdded": 10,
            "newBalance": 15,
            "coupon": {"code": "ABCD-EFGH-JKLM-NPQR", "value": 10},
        }
        assert await points_of(user.id) == 15

        async with db_factory() as db:
            coupon = await db.get(Coupon, 1)
        assert coupon.used is True
        assert coupon.redeemed_by == user.id
        assert coupon.redeemed_at is not None

    async def test_single_use_across_users(self, client: AsyncClient, register, db_factory, points_of):
        await _add_coupon(db_factory, "ABCD-EFGH-JKLM-NPQR")
        first = await register("one@example.com")
        second = await register("two@example.com")

        await client.post("/coupons/redeem", json={"code": "ABCD-EFGH-JKLM-NPQR"}, headers=first.headers)
        response = await client.post("/coupons/redeem", json={"code": "ABCD-EFGH-JKLM-NPQR"}, headers=second.headers)
        assert response.status_code == 409
        assert await points_of(second.id) == 0

    async def test_unknown_code(self, client: AsyncClient, register):
        user = await register()
        response = await client.post("/coupons/redeem", json={"code": "ZZZZ-ZZZZ-ZZZZ-ZZZZ"}, headers=user.headers)
        assert response.status_code == 404

    async def test_blank_code(self, client: AsyncClient, register):
        user = await register()
        response = await client.post("/coupons/redeem", json={"code": "   "}, headers=user.headers)
        assert response.status_code == 400

    async def test_expired_coupon(self, client: AsyncClient, register, db_factory, points_of):
        await _add_coupon(
            db_factory, "ABCD-EFGH-JKLM-NPQR", expires_at=datetime.now(timezone.utc) - timedelta(days=1)
        )
        user = await register()
        response = await client.post("/coupons/redeem", json={"code": "ABCD-EFGH-JKLM-NPQR"}, headers=user.headers)
        assert response.status_code == 410
        assert await points_of(user.id) == 0

    async def test_future_expiry_is_redeemable(self, client: AsyncClient, register, db_factory):
        await _add_coupon(
            db_factory, "ABCD-EFGH-JKLM-NPQR", expires_at=datetime.now(timezone.utc) + timedelta(days=1)
        )
        user = await register()
        response = await client.post("/coupons/redeem", json={"code": "ABCD-EFGH-JKLM-NPQR"}, headers=user.headers)
        assert response.status_code == 200

    async def test_requires_session(self, client: AsyncClient):
        response = await client.post("/coupons/redeem", json={"code": "ABCD-EFGH-JKLM-NPQR"})
        assert response.status_code == 401
