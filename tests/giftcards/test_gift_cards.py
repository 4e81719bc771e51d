"""Integration tests for gift card redemption."""

import pytest
from httpx import AsyncClient

from asmr.config import get_settings


class TestRedeemGiftCard:
    async def test_welcome_card(self, client: AsyncClient, register, points_of):
        user = await register(points=20)
        response = await client.post("/gift-cards/redeem", json={"code": " welcome100 "}, headers=user.headers)
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {
                "giftCard": {"code": "WELCOME100", "description": "Welcome bonus card"},
                "newBalance": 120,
                "pointsAdded": 100,
            },
        }
        assert await points_of(user.id) == 120

    @pytest.mark.parametrize(("code", "points"), [("MEGA1000", 1000), ("PREMIUM500", 500), ("SPECIAL250", 250)])
    async def test_catalog_values(self, client: AsyncClient, register, code, points):
        user = await register()
        response = await client.post("/gift-cards/redeem", json={"code": code}, headers=user.headers)
        assert response.json()["data"]["pointsAdded"] == points
        assert response.json()["data"]["newBalance"] == points

    async def test_unknown_code_leaves_balance(self, client: AsyncClient, register, points_of):
        user = await register(points=20)
        response = await client.post("/gift-cards/redeem", json={"code": "FREE9999"}, headers=user.headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Gift card not found"
        assert await points_of(user.id) == 20

    @pytest.mark.parametrize("body", [{}, {"code": ""}, {"code": "   "}])
    async def test_blank_code(self, client: AsyncClient, register, body):
        user = await register()
        response = await client.post("/gift-cards/redeem", json=body, headers=user.headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid gift card code"

    async def test_requires_session(self, client: AsyncClient):
        response = await client.post("/gift-cards/redeem", json={"code": "WELCOME100"})
        assert response.status_code == 401

    async def test_once_per_user(self, client: AsyncClient, register, points_of):
        first = await register("one@example.com")
        second = await register("two@example.com")
        await client.post("/gift-cards/redeem", json={"code": "WELCOME100"}, headers=first.headers)

        again = await client.post("/gift-cards/redeem", json={"code": "welcome100"}, headers=first.headers)
        assert again.status_code == 409
        assert again.json()["message"] == "Gift card already redeemed"
        assert await points_of(first.id) == 100

        other = await client.post("/gift-cards/redeem", json={"code": "WELCOME100"}, headers=second.headers)
        assert other.status_code == 200

    async def test_repeatable_when_policy_disabled(self, client: AsyncClient, register, points_of, monkeypatch):
        monkeypatch.setenv("ASMR_GIFT_CARD_ONCE_PER_USER", "false")
        get_settings.cache_clear()
        user = await register()
        for _ in range(2):
            response = await client.post("/gift-cards/redeem", json={"code": "WELCOME100"}, headers=user.headers)
            assert response.status_code == 200
        assert await points_of(user.id) == 200
