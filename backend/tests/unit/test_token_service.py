"""
Tests for TokenService - signing and verifying session tokens.
"""

from datetime import timedelta

import pytest

from backend.src.services.token_service import REFRESH_TOKEN_TYPE, TokenService


SECRET = "unit-test-secret-key-0123456789abcdef"


class TestTokenService:

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            TokenService("")

    def test_access_token_round_trip(self, planner_user):
        service = TokenService(SECRET)
        claims = service.verify_token(service.create_access_token(planner_user))

        assert claims is not None
        assert claims.user_guid == planner_user.guid
        assert claims.role == "PLANNER"
        assert claims.token_type == "access"

    def test_refresh_token_not_accepted_as_access(self, planner_user):
        service = TokenService(SECRET)
        refresh = service.create_refresh_token(planner_user)

        assert service.verify_token(refresh) is None
        assert service.verify_token(refresh, expected_type=REFRESH_TOKEN_TYPE) is not None

    def test_expired_token_rejected(self, planner_user):
        service = TokenService(SECRET, access_expires=timedelta(seconds=-10))
        assert service.verify_token(service.create_access_token(planner_user)) is None

    def test_wrong_key_rejected(self, planner_user):
        token = TokenService(SECRET).create_access_token(planner_user)
        other = TokenService("another-secret-key-0123456789abcdef")
        assert other.verify_token(token) is None

    @pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
    def test_malformed_token_rejected(self, token):
        assert TokenService(SECRET).verify_token(token) is None

    def test_from_settings_uses_configured_lifetimes(self):
        class _Settings:
            jwt_secret_key = SECRET
            jwt_expires_in_hours = 2
            jwt_refresh_expires_in_days = 3

        service = TokenService.from_settings(_Settings())
        assert service.access_expires == timedelta(hours=2)
        assert service.refresh_expires == timedelta(days=3)
