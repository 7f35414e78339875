# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Base OAuth Provider Class

Provides common OAuth 2.0 authorization code functionality.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List
from urllib.parse import urlencode
import structlog

logger = structlog.get_logger(__name__)


class OAuthProvider(ABC):
    """
    Abstract base class for OAuth providers.

    Implements the OAuth 2.0 authorization code flow.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: List[str],
        timeout: float = 15.0,
    ):
        """
        Initialize OAuth provider.

        Args:
            client_id: OAuth application client ID
            client_secret: OAuth application client secret
            redirect_uri: Callback URL after authorization
            scopes: List of permission scopes to request
            timeout: Timeout in seconds for every provider call
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes
        self.timeout = timeout

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'github')"""
        pass

    @property
    @abstractmethod
    def authorize_url(self) -> str:
        """Return the OAuth authorization URL"""
        pass

    @property
    @abstractmethod
    def token_url(self) -> str:
        """Return the OAuth token exchange URL"""
        pass

    @property
    @abstractmethod
    def user_info_url(self) -> str:
        """Return the user info API endpoint"""
        pass

    def build_authorization_url(self, state: str) -> str:
        """
        Build the authorization URL to redirect user to.

        Args:
            state: CSRF protection state parameter

        Returns:
            Complete authorization URL with all parameters
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "state": state,
            "response_type": "code",
        }

        # Add provider-specific parameters
        params.update(self._get_extra_auth_params())

        return f"{self.authorize_url}?{urlencode(params)}"

    def _get_extra_auth_params(self) -> Dict[str, str]:
        """
        Get provider-specific authorization parameters.

        Override in subclasses to add custom parameters.
        """
        return {}

    @abstractmethod
    async def exchange_code_for_token(self, code: str, state: str) -> Dict[str, Any]:
        """
        Exchange authorization code for access token.

        Args:
            code: Authorization code from callback
            state: State parameter echoed back to the token endpoint

        Returns:
            Token response containing access_token, scope, etc.
        """
        pass

    @abstractmethod
    async def get_user_info(self, access_token: str) -> Dict[str, Any]:
        """
        Get user information from the provider.

        Args:
            access_token: Valid access token

        Returns:
            User information dictionary
        """
        pass
