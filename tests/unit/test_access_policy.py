"""Unit tests for role/visibility access decisions."""

import pytest

from asmr.access.policy import (
    can_list_media,
    can_read_resources,
    can_read_sensitive,
    can_stream_audio,
    verify_server_token,
)


class TestCanReadSensitive:
    @pytest.mark.parametrize("visibility", [None, [], ["premium"], ["free"]])
    def test_admin_always_allowed(self, visibility):
        assert can_read_sensitive("admin", visibility) is True

    @pytest.mark.parametrize("role", [None, "free", "premium"])
    def test_empty_visibility_is_public(self, role):
        assert can_read_sensitive(role, []) is True
        assert can_read_sensitive(role, None) is True

    @pytest.mark.parametrize("role", [None, "free", "premium"])
    def test_free_sentinel_allows_everyone(self, role):
        assert can_read_sensitive(role, ["premium", "free"]) is True

    def test_listed_role_allowed(self):
        assert can_read_sensitive("premium", ["premium"]) is True

    def test_unlisted_role_denied(self):
        assert can_read_sensitive("free", ["premium"]) is False

    def test_anonymous_denied_on_restricted(self):
        assert can_read_sensitive(None, ["premium"]) is False


class TestCollectionAndMedia:
    @pytest.mark.parametrize("role", [None, "free", "premium", "admin"])
    def test_resources_readable_by_anyone(self, role):
        assert can_read_resources(role) is True

    def test_media_listing_admin_only(self):
        assert can_list_media("admin") is True
        assert can_list_media("premium") is False
        assert can_list_media(None) is False


class TestStreamAudio:
    def test_admin_streams_paid_unowned(self):
        assert can_stream_audio("admin", 500, owned=False) is True

    def test_free_resource_streams_for_anyone(self):
        assert can_stream_audio("free", 0, owned=False) is True

    def test_owner_streams_paid(self):
        assert can_stream_audio("free", 500, owned=True) is True

    def test_non_owner_denied(self):
        assert can_stream_audio("premium", 500, owned=False) is False


class TestServerToken:
    def test_matching_token(self):
        assert verify_server_token("s3cret", "s3cret") is True

    def test_mismatch(self):
        assert verify_server_token("s3cret", "other") is False

    def test_missing_supplied(self):
        assert verify_server_token(None, "s3cret") is False
        assert verify_server_token("", "s3cret") is False

    def test_unset_secret_never_matches(self):
        assert verify_server_token("", "") is False
        assert verify_server_token("anything", "") is False
