"""Integration tests for signed audio URLs and the media listing."""

from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient

from asmr.config import get_settings
from asmr.media.storage import reset_storage_client


@pytest.fixture
def storage_configured(test_settings, monkeypatch):
    """Dummy R2 credentials; presigning is local so nothing is contacted."""
    monkeypatch.setenv("ASMR_STORAGE_ENDPOINT", "https://account.r2.example.com")
    monkeypatch.setenv("ASMR_STORAGE_ACCESS_KEY_ID", "AKIDEXAMPLE")
    monkeypatch.setenv("ASMR_STORAGE_SECRET_ACCESS_KEY", "secret-example")
    monkeypatch.setenv("ASMR_STORAGE_BUCKET", "asmr-audio")
    get_settings.cache_clear()
    reset_storage_client()


class TestAudioUrl:
    async def test_owner_gets_signed_url(
        self, client: AsyncClient, storage_configured, register, seed_resource
    ):
        rid = await seed_resource(price=100, audio_files=("rain/track-01.mp3", "rain/track-02.mp3"))
        user = await register(points=100)
        await client.post(f"/content/purchase/{rid}", headers=user.headers)

        response = await client.get(
            f"/media/audio/{rid}", params={"filename": "rain/track-02.mp3"}, headers=user.headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["expiresIn"] == 300
        url = urlparse(data["url"])
        assert url.path.endswith("rain/track-02.mp3")
        assert parse_qs(url.query)["X-Amz-Expires"] == ["300"]

    async def test_non_owner_denied(self, client: AsyncClient, storage_configured, register, seed_resource):
        rid = await seed_resource(price=100)
        user = await register(points=1000)
        response = await client.get(
            f"/media/audio/{rid}", params={"filename": "rain/track-01.mp3"}, headers=user.headers
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied"

    async def test_purchase_unlocks_audio(
        self, client: AsyncClient, storage_configured, register, seed_resource, points_of
    ):
        rid = await seed_resource(price=100, audio_files=("rain/track-01.mp3",))
        user = await register(points=150)
        params = {"filename": "rain/track-01.mp3"}

        before = await client.get(f"/media/audio/{rid}", params=params, headers=user.headers)
        assert before.status_code == 403

        bought = await client.post(f"/content/purchase/{rid}", headers=user.headers)
        assert bought.status_code == 201
        assert await points_of(user.id) == 50

        after = await client.get(f"/media/audio/{rid}", params=params, headers=user.headers)
        assert after.status_code == 200
        assert urlparse(after.json()["data"]["url"]).path.endswith("rain/track-01.mp3")

    async def test_free_resource_open(self, client: AsyncClient, storage_configured, register, seed_resource):
        rid = await seed_resource(price=0)
        user = await register()
        response = await client.get(
            f"/media/audio/{rid}", params={"filename": "rain/track-01.mp3"}, headers=user.headers
        )
        assert response.status_code == 200

    async def test_admin_bypasses_ownership(self, client: AsyncClient, storage_configured, register, seed_resource):
        rid = await seed_resource(price=999)
        admin = await register("admin@example.com", role="admin")
        response = await client.get(
            f"/media/audio/{rid}", params={"filename": "rain/track-01.mp3"}, headers=admin.headers
        )
        assert response.status_code == 200

    async def test_unknown_filename(self, client: AsyncClient, storage_configured, register, seed_resource):
        rid = await seed_resource(price=0)
        user = await register()
        response = await client.get(f"/media/audio/{rid}", params={"filename": "other.mp3"}, headers=user.headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Audio file not found"

    async def test_missing_filename(self, client: AsyncClient, register, seed_resource):
        rid = await seed_resource(price=0)
        user = await register()
        response = await client.get(f"/media/audio/{rid}", headers=user.headers)
        assert response.status_code == 400

    async def test_unknown_resource(self, client: AsyncClient, register):
        user = await register()
        response = await client.get("/media/audio/777", params={"filename": "x.mp3"}, headers=user.headers)
        assert response.status_code == 404

    async def test_id_beyond_bigint(self, client: AsyncClient, register):
        user = await register()
        response = await client.get(
            "/media/audio/99999999999999999999", params={"filename": "x.mp3"}, headers=user.headers
        )
        assert response.status_code == 404

    async def test_requires_session(self, client: AsyncClient, seed_resource):
        rid = await seed_resource(price=0)
        response = await client.get(f"/media/audio/{rid}", params={"filename": "rain/track-01.mp3"})
        assert response.status_code == 401

    async def test_storage_not_configured(self, client: AsyncClient, register, seed_resource):
        rid = await seed_resource(price=0)
        user = await register()
        response = await client.get(
            f"/media/audio/{rid}", params={"filename": "rain/track-01.mp3"}, headers=user.headers
        )
        assert response.status_code == 500
        assert response.json()["message"] == "Failed to generate audio URL"


class TestMediaListing:
    async def test_admin_lists_media(self, client: AsyncClient, register, seed_resource):
        await seed_resource(audio_files=("a.mp3",), subtitle_files=("a.vtt",))
        admin = await register("admin@example.com", role="admin")

        everything = (await client.get("/media", headers=admin.headers)).json()["data"]
        assert everything["totalDocs"] == 2

        subtitles = (await client.get("/media", params={"kind": "subtitle"}, headers=admin.headers)).json()["data"]
        assert [m["filename"] for m in subtitles["docs"]] == ["a.vtt"]

    async def test_non_admin_forbidden(self, client: AsyncClient, register):
        user = await register(role="premium")
        response = await client.get("/media", headers=user.headers)
        assert response.status_code == 403

    async def test_anonymous_rejected(self, client: AsyncClient):
        response = await client.get("/media")
        assert response.status_code == 401
