# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Unit tests for the GitHub OAuth install and callback endpoints.
"""

import pytest
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse
from fastapi import status
from fastapi.testclient import TestClient

from app.adapters.database.postgres.repositories.credentials import CredentialRepository
from app.main import create_app


def _state_from_location(location: str) -> str:
    return parse_qs(urlparse(location).query)["state"][0]


def _assert_state_cookie_cleared(response) -> None:
    set_cookie = response.headers.get("set-cookie", "")
    assert set_cookie.startswith("gh_oauth_state=")
    assert "max-age=0" in set_cookie.lower()


def _credential_count(container) -> int:
    session = container.database.session()
    try:
        return CredentialRepository(session, container.token_manager).count()
    finally:
        session.close()


class TestGitHubOAuthEndpoints:
    """Test suite for /install and /oauth/callback."""

    @pytest.fixture
    def client(self, settings):
        app = create_app(settings)
        with TestClient(app) as client:
            container = app.state.container
            container.github_provider.exchange_code_for_token = AsyncMock(return_value={
                "access_token": "gho_secret_token",
                "token_type": "bearer",
                "scope": "repo,read:user",
            })
            container.github_provider.get_user_info = AsyncMock(return_value={
                "id": 583231,
                "login": "octocat",
            })
            yield client

    @pytest.fixture
    def container(self, client):
        return client.app.state.container

    def test_install_redirects_to_github(self, client):
        """Test /install redirects with the expected query parameters."""
        response = client.get("/install", follow_redirects=False)

        assert response.status_code == status.HTTP_302_FOUND
        location = response.headers["location"]
        parsed = urlparse(location)
        params = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://github.com/login/oauth/authorize"
        assert params["client_id"] == ["test_client_id"]
        assert params["redirect_uri"] == ["https://crashlink.test/oauth/callback"]
        assert params["scope"] == ["repo read:user"]
        assert params["state"][0]

    def test_install_sets_state_cookie(self, client, container):
        """Test the state cookie is httpOnly, lax and lives ten minutes."""
        response = client.get("/install", follow_redirects=False)

        set_cookie = response.headers["set-cookie"]
        lowered = set_cookie.lower()
        assert set_cookie.startswith("gh_oauth_state=")
        assert "httponly" in lowered
        assert "samesite=lax" in lowered
        assert "max-age=600" in lowered
        assert "path=/" in lowered

        state = _state_from_location(response.headers["location"])
        sealed = response.cookies["gh_oauth_state"].strip('"')
        assert container.state_manager.unseal(sealed) == state

    def test_install_issues_fresh_state(self, client):
        first = client.get("/install", follow_redirects=False)
        second = client.get("/install", follow_redirects=False)

        assert _state_from_location(first.headers["location"]) != _state_from_location(
            second.headers["location"]
        )

    def test_callback_success_links_account(self, client, container):
        """Test a full install round trip stores one credential."""
        install = client.get("/install", follow_redirects=False)
        state = _state_from_location(install.headers["location"])

        response = client.get("/oauth/callback", params={"code": "abc", "state": state})

        assert response.status_code == status.HTTP_200_OK
        assert "octocat" in response.text
        assert "gho_secret_token" not in response.text
        assert _credential_count(container) == 1
        _assert_state_cookie_cleared(response)
        container.github_provider.exchange_code_for_token.assert_awaited_once_with("abc", state)
        container.github_provider.get_user_info.assert_awaited_once_with("gho_secret_token")

    def test_callback_install_twice_keeps_one_credential(self, client, container):
        for _ in range(2):
            install = client.get("/install", follow_redirects=False)
            state = _state_from_location(install.headers["location"])
            response = client.get("/oauth/callback", params={"code": "abc", "state": state})
            assert response.status_code == status.HTTP_200_OK

        assert _credential_count(container) == 1

    def test_callback_state_mismatch_rejected(self, client, container):
        """Test a callback state differing from the cookie never reaches GitHub."""
        sealed = container.state_manager.seal("right")

        response = client.get(
            "/oauth/callback",
            params={"code": "abc", "state": "wrong"},
            headers={"Cookie": f"gh_oauth_state={sealed}"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid OAuth state" in response.text
        assert "set-cookie" not in response.headers
        container.github_provider.exchange_code_for_token.assert_not_awaited()
        assert _credential_count(container) == 0

    def test_callback_without_cookie_rejected(self, client, container):
        response = client.get("/oauth/callback", params={"code": "abc", "state": "anything"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        container.github_provider.exchange_code_for_token.assert_not_awaited()
        assert _credential_count(container) == 0

    def test_callback_missing_code_rejected(self, client, container):
        install = client.get("/install", follow_redirects=False)
        state = _state_from_location(install.headers["location"])

        response = client.get("/oauth/callback", params={"state": state})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        container.github_provider.exchange_code_for_token.assert_not_awaited()

    def test_callback_replay_rejected(self, client, container):
        """Test a state cannot be used for a second callback."""
        install = client.get("/install", follow_redirects=False)
        state = _state_from_location(install.headers["location"])
        sealed = container.state_manager.seal(state)

        first = client.get("/oauth/callback", params={"code": "abc", "state": state})
        second = client.get(
            "/oauth/callback",
            params={"code": "abc", "state": state},
            headers={"Cookie": f"gh_oauth_state={sealed}"},
        )

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_400_BAD_REQUEST
        assert container.github_provider.exchange_code_for_token.await_count == 1

    def test_callback_user_denied(self, client, container):
        response = client.get("/oauth/callback", params={"error": "access_denied"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "access_denied" in response.text
        container.github_provider.exchange_code_for_token.assert_not_awaited()

    def test_callback_exchange_failure(self, client, container):
        """Test a token endpoint error returns a failure page and stores nothing."""
        container.github_provider.exchange_code_for_token.return_value = {
            "error": "bad_verification_code",
        }
        install = client.get("/install", follow_redirects=False)
        state = _state_from_location(install.headers["location"])

        response = client.get("/oauth/callback", params={"code": "expired", "state": state})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "GitHub linking failed" in response.text
        assert _credential_count(container) == 0
        _assert_state_cookie_cleared(response)

    def test_callback_identity_failure(self, client, container):
        container.github_provider.get_user_info.return_value = {"login": "octocat"}
        install = client.get("/install", follow_redirects=False)
        state = _state_from_location(install.headers["location"])

        response = client.get("/oauth/callback", params={"code": "abc", "state": state})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert _credential_count(container) == 0


class TestOAuthNotConfigured:
    """OAuth endpoints without client credentials."""

    def test_install_fails_when_not_configured(self, settings_factory):
        app = create_app(settings_factory(github_client_id="", github_client_secret=""))

        with TestClient(app) as client:
            response = client.get("/install", follow_redirects=False)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "not configured" in response.text

    def test_service_endpoints(self, settings):
        with TestClient(create_app(settings)) as client:
            root = client.get("/")
            health = client.get("/health")

        assert root.status_code == status.HTTP_200_OK
        assert root.text == "Crashlink backend running"
        assert health.json() == {"ok": True}
