"""Property-based tests for bearer tokens.

**Feature: backstage-auth, Property 2: Token Validity**
"""

from datetime import timedelta

import pytest
from hypothesis import given, settings, strategies as st
from jose import jwt

from backstage.core.config import settings as app_settings
from backstage.modules.auth.exceptions import (
    MalformedTokenError,
    TokenExpiredError,
    UnauthenticatedError,
)
from backstage.modules.auth.jwt import create_token, issue_access_token, verify_access_token

user_id_strategy = st.integers(min_value=1, max_value=2**31 - 1)
name_strategy = st.text(min_size=1, max_size=50)
role_strategy = st.sampled_from(["user", "admin"])


class TestTokenValidity:
    """Property tests for token issue and verification."""

    @given(user_id=user_id_strategy, name=name_strategy, role=role_strategy)
    @settings(max_examples=100)
    def test_token_round_trips_identity(self, user_id: int, name: str, role: str) -> None:
        """**Feature: backstage-auth, Property 2: Token Validity**

        For any user, verifying a freshly issued token SHALL return the
        same id, display name and role.
        """
        issued = issue_access_token(user_id, name, role)
        payload = verify_access_token(issued.token)

        assert payload.user_id == user_id
        assert payload.name == name
        assert payload.role == role
        assert payload.type == "access"
        assert payload.jti == issued.jti

    @given(user_id=user_id_strategy)
    @settings(max_examples=50)
    def test_token_lifetime_matches_settings(self, user_id: int) -> None:
        """**Feature: backstage-auth, Property 2: Token Validity**"""
        issued = issue_access_token(user_id, "n", "user")
        payload = verify_access_token(issued.token)

        assert issued.expires_in == app_settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        assert payload.exp - payload.iat == timedelta(minutes=app_settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    @given(user_id=user_id_strategy)
    @settings(max_examples=50)
    def test_each_token_has_unique_jti(self, user_id: int) -> None:
        """**Feature: backstage-auth, Property 2: Token Validity**"""
        first = issue_access_token(user_id, "n", "user")
        second = issue_access_token(user_id, "n", "user")
        assert first.jti != second.jti

    def test_expired_token_is_rejected(self) -> None:
        issued = issue_access_token(1, "alice", "user", expires_minutes=-1)
        with pytest.raises(TokenExpiredError):
            verify_access_token(issued.token)

    def test_expired_token_is_unauthenticated(self) -> None:
        issued = issue_access_token(1, "alice", "user", expires_minutes=-1)
        with pytest.raises(UnauthenticatedError) as exc_info:
            verify_access_token(issued.token)
        assert exc_info.value.kind == "Unauthenticated"

    @pytest.mark.parametrize("token", ["", "garbage", "a.b", "not.a.jwt"])
    def test_malformed_token_is_rejected(self, token: str) -> None:
        with pytest.raises(MalformedTokenError):
            verify_access_token(token)

    def test_token_signed_with_other_key_is_rejected(self) -> None:
        forged = jwt.encode(
            {"sub": "1", "name": "x", "role": "admin", "type": "access", "jti": "j"},
            "some-other-secret",
            algorithm=app_settings.JWT_ALGORITHM,
        )
        with pytest.raises(UnauthenticatedError):
            verify_access_token(forged)

    def test_tampered_token_is_rejected(self) -> None:
        issued = issue_access_token(1, "alice", "user")
        header, payload, signature = issued.token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        with pytest.raises(UnauthenticatedError):
            verify_access_token(tampered)

    def test_non_access_token_is_rejected(self) -> None:
        token, _ = create_token(1, "alice", "user", "refresh", timedelta(minutes=5))
        with pytest.raises(UnauthenticatedError):
            verify_access_token(token)

    @pytest.mark.parametrize("sub", [5, "not-a-number"])
    def test_signed_token_with_unusable_subject_is_malformed(self, sub) -> None:
        token = jwt.encode(
            {"sub": sub, "name": "x", "role": "user", "type": "access", "jti": "j"},
            app_settings.SECRET_KEY,
            algorithm=app_settings.JWT_ALGORITHM,
        )
        with pytest.raises(MalformedTokenError):
            verify_access_token(token)
