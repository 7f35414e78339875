# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
GitHub OAuth Provider

Handles GitHub OAuth 2.0 authentication flow.
"""

from typing import Dict, Any
import httpx
import structlog

from .provider_base import OAuthProvider

logger = structlog.get_logger(__name__)

GITHUB_API_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


class GitHubOAuthProvider(OAuthProvider):
    """
    GitHub OAuth 2.0 provider implementation.

    Documentation: https://docs.github.com/en/apps/oauth-apps/building-oauth-apps
    """

    @property
    def provider_name(self) -> str:
        return "github"

    @property
    def authorize_url(self) -> str:
        return "https://github.com/login/oauth/authorize"

    @property
    def token_url(self) -> str:
        return "https://github.com/login/oauth/access_token"

    @property
    def user_info_url(self) -> str:
        return "https://api.github.com/user"

    def _get_extra_auth_params(self) -> Dict[str, str]:
        return {
            "allow_signup": "true",
        }

    async def exchange_code_for_token(self, code: str, state: str) -> Dict[str, Any]:
        """
        Exchange authorization code for GitHub access token.

        GitHub answers 200 even for a bad or expired code; the body then
        carries an ``error`` field instead of ``access_token``.

        Args:
            code: Authorization code from callback
            state: State parameter from the callback

        Returns:
            Token response with access_token, scope, token_type (or error)

        Raises:
            httpx.HTTPError: If the request fails or returns a non-2xx status
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                    "state": state,
                },
                headers={
                    "Accept": "application/json",
                },
            )

            response.raise_for_status()
            token_data = response.json()

            logger.info(
                "github_token_exchanged",
                has_access_token="access_token" in token_data,
                error=token_data.get("error"),
                scopes=token_data.get("scope", ""),
            )

            return token_data

    async def get_user_info(self, access_token: str) -> Dict[str, Any]:
        """
        Get GitHub user information.

        Args:
            access_token: Valid GitHub access token

        Returns:
            User info with id, login, name, email, etc.

        Raises:
            httpx.HTTPError: If API request fails
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                self.user_info_url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    **GITHUB_API_HEADERS,
                },
            )

            response.raise_for_status()
            user_data = response.json()

            logger.info(
                "github_user_info_fetched",
                user_id=user_data.get("id"),
                username=user_data.get("login"),
            )

            return user_data
