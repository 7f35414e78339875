# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Unit tests for the OAuth Handshake Controller.
"""

import time

import httpx
import pytest
from unittest.mock import AsyncMock, Mock
from cryptography.fernet import Fernet

from app.exceptions import (
    DatabaseError,
    IdentityResolutionFailed,
    InvalidHandshake,
    TokenExchangeFailed,
)
from app.services.oauth.github_oauth import GitHubOAuthProvider
from app.services.oauth.handshake import OAuthHandshakeController
from app.services.oauth.state import StateManager


def _http_status_error(status_code: int, url: str) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", url)
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


class TestOAuthHandshakeController:
    """Test suite for OAuthHandshakeController."""

    @pytest.fixture
    def provider(self):
        provider = GitHubOAuthProvider(
            client_id="test_client_id",
            client_secret="test_client_secret",
            redirect_uri="https://crashlink.test/oauth/callback",
            scopes=["repo", "read:user"],
        )
        provider.exchange_code_for_token = AsyncMock(return_value={
            "access_token": "gho_secret_token",
            "token_type": "bearer",
            "scope": "repo,read:user",
        })
        provider.get_user_info = AsyncMock(return_value={
            "id": 583231,
            "login": "octocat",
        })
        return provider

    @pytest.fixture
    def state_manager(self):
        return StateManager(secret_key=Fernet.generate_key().decode(), ttl_seconds=600)

    @pytest.fixture
    def credentials(self):
        repo = Mock()
        repo.put = Mock(side_effect=lambda credential: credential)
        return repo

    @pytest.fixture
    def controller(self, provider, state_manager, credentials):
        return OAuthHandshakeController(
            provider=provider,
            state_manager=state_manager,
            credentials=credentials,
        )

    def test_initiate_returns_redirect_and_sealed_state(self, controller, state_manager):
        """Test that initiate builds a GitHub URL carrying the new state."""
        start = controller.initiate()

        assert start.authorization_url.startswith("https://github.com/login/oauth/authorize?")
        assert f"state={start.state}" in start.authorization_url
        assert start.sealed_state != start.state
        assert state_manager.unseal(start.sealed_state) == start.state

    def test_initiate_issues_fresh_state_each_time(self, controller):
        assert controller.initiate().state != controller.initiate().state

    @pytest.mark.asyncio
    async def test_complete_success(self, controller, provider, credentials):
        """Test a valid callback stores exactly one credential."""
        start = controller.initiate()

        result = await controller.complete("auth_code", start.state, start.sealed_state)

        assert result.identity_id == "583231"
        assert result.login == "octocat"
        assert result.scope == "repo,read:user"
        assert "gho_secret_token" not in repr(result)

        provider.exchange_code_for_token.assert_awaited_once_with("auth_code", start.state)
        provider.get_user_info.assert_awaited_once_with("gho_secret_token")

        credentials.put.assert_called_once()
        stored = credentials.put.call_args[0][0]
        assert stored.external_identity_id == "583231"
        assert stored.external_login == "octocat"
        assert stored.access_token == "gho_secret_token"
        assert stored.granted_scope == "repo,read:user"
        assert "gho_secret_token" not in repr(stored)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code,returned_state,reason",
        [
            (None, "state", "missing_code"),
            ("", "state", "missing_code"),
            ("code", None, "missing_state"),
            ("code", "", "missing_state"),
        ],
    )
    async def test_complete_missing_inputs(
        self, controller, provider, credentials, code, returned_state, reason
    ):
        start = controller.initiate()

        with pytest.raises(InvalidHandshake) as exc_info:
            await controller.complete(code, returned_state, start.sealed_state)

        assert exc_info.value.reason == reason
        provider.exchange_code_for_token.assert_not_awaited()
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_without_cookie(self, controller, provider, credentials):
        start = controller.initiate()

        with pytest.raises(InvalidHandshake) as exc_info:
            await controller.complete("code", start.state, None)

        assert exc_info.value.reason == "expected_state_missing_or_expired"
        provider.exchange_code_for_token.assert_not_awaited()
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_state_mismatch(self, controller, state_manager, provider, credentials):
        """Test that a callback state differing from the cookie is rejected."""
        with pytest.raises(InvalidHandshake) as exc_info:
            await controller.complete("abc", "wrong", state_manager.seal("right"))

        assert exc_info.value.reason == "state_mismatch"
        provider.exchange_code_for_token.assert_not_awaited()
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_expired_state(self, controller, state_manager, provider, credentials):
        """Test that a cookie older than ten minutes is rejected."""
        sealed = state_manager._fernet.encrypt_at_time(b"right", int(time.time()) - 601).decode()

        with pytest.raises(InvalidHandshake):
            await controller.complete("abc", "right", sealed)

        provider.exchange_code_for_token.assert_not_awaited()
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_replay_rejected(self, controller, provider, credentials):
        """Test that a state cannot complete two handshakes."""
        start = controller.initiate()
        await controller.complete("auth_code", start.state, start.sealed_state)

        with pytest.raises(InvalidHandshake) as exc_info:
            await controller.complete("auth_code", start.state, start.sealed_state)

        assert exc_info.value.reason == "state_already_used"
        assert credentials.put.call_count == 1

    @pytest.mark.asyncio
    async def test_complete_state_consumed_even_when_exchange_fails(self, controller, provider):
        start = controller.initiate()
        provider.exchange_code_for_token.side_effect = httpx.ConnectError("down")

        with pytest.raises(TokenExchangeFailed):
            await controller.complete("auth_code", start.state, start.sealed_state)

        with pytest.raises(InvalidHandshake):
            await controller.complete("auth_code", start.state, start.sealed_state)

    @pytest.mark.asyncio
    async def test_complete_token_endpoint_http_error(self, controller, provider, credentials):
        start = controller.initiate()
        provider.exchange_code_for_token.side_effect = _http_status_error(
            502, "https://github.com/login/oauth/access_token"
        )

        with pytest.raises(TokenExchangeFailed) as exc_info:
            await controller.complete("auth_code", start.state, start.sealed_state)

        assert exc_info.value.details["status_code"] == 502
        provider.get_user_info.assert_not_awaited()
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_missing_access_token(self, controller, provider, credentials):
        """Test that an expired or reused code is reported as exchange failure."""
        start = controller.initiate()
        provider.exchange_code_for_token.return_value = {
            "error": "bad_verification_code",
            "error_description": "The code passed is incorrect or expired.",
        }

        with pytest.raises(TokenExchangeFailed) as exc_info:
            await controller.complete("auth_code", start.state, start.sealed_state)

        assert exc_info.value.reason == "bad_verification_code"
        provider.get_user_info.assert_not_awaited()
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_identity_http_error(self, controller, provider, credentials):
        start = controller.initiate()
        provider.get_user_info.side_effect = _http_status_error(401, "https://api.github.com/user")

        with pytest.raises(IdentityResolutionFailed):
            await controller.complete("auth_code", start.state, start.sealed_state)

        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_identity_timeout(self, controller, provider, credentials):
        start = controller.initiate()
        provider.get_user_info.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(IdentityResolutionFailed) as exc_info:
            await controller.complete("auth_code", start.state, start.sealed_state)

        assert exc_info.value.reason == "transport_error"
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_identity_incomplete(self, controller, provider, credentials):
        start = controller.initiate()
        provider.get_user_info.return_value = {"id": 583231}

        with pytest.raises(IdentityResolutionFailed) as exc_info:
            await controller.complete("auth_code", start.state, start.sealed_state)

        assert exc_info.value.reason == "incomplete_identity"
        credentials.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_storage_failure_propagates(self, controller, credentials):
        start = controller.initiate()
        credentials.put.side_effect = DatabaseError("upsert", "disk full")

        with pytest.raises(DatabaseError):
            await controller.complete("auth_code", start.state, start.sealed_state)
