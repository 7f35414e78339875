# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
OAuth Handshake Controller

Drives the authorization code flow from redirect to credential persistence.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import httpx
from pydantic import ValidationError
import structlog

from app.adapters.database.postgres.repositories.credentials import CredentialRepository
from app.core.models.credential import OAuthCredential
from app.core.schemas.oauth import GitHubTokenResponse, GitHubUserInfo
from app.exceptions import (
    IdentityResolutionFailed,
    InvalidHandshake,
    TokenExchangeFailed,
)
from app.services.oauth.provider_base import OAuthProvider
from app.services.oauth.state import StateManager

logger = structlog.get_logger(__name__)


@dataclass
class HandshakeStart:
    """Redirect target plus the state to hand to the client."""

    authorization_url: str
    state: str
    sealed_state: str


@dataclass
class HandshakeResult:
    """Identity resolved by a completed handshake."""

    identity_id: str
    login: str
    scope: str


class OAuthHandshakeController:
    """
    Issues authorization redirects and completes callbacks.

    Flow:
    1. initiate(): new state, sealed for the client, redirect URL
    2. complete(): validate state, exchange code, resolve identity, store credential
    """

    def __init__(
        self,
        provider: OAuthProvider,
        state_manager: StateManager,
        credentials: CredentialRepository,
    ):
        self.provider = provider
        self.state_manager = state_manager
        self.credentials = credentials

    def initiate(self) -> HandshakeStart:
        """
        Begin a handshake.

        Nothing is persisted; the expected state lives only in the sealed
        value returned to the client.
        """
        state = self.state_manager.generate_state()
        authorization_url = self.provider.build_authorization_url(state)

        logger.info(
            "oauth_handshake_initiated",
            provider=self.provider.provider_name,
            state_length=len(state),
        )

        return HandshakeStart(
            authorization_url=authorization_url,
            state=state,
            sealed_state=self.state_manager.seal(state),
        )

    def check_state(
        self,
        code: Optional[str],
        returned_state: Optional[str],
        sealed_state: Optional[str],
    ) -> str:
        """
        Validate callback inputs against the issued state and consume it.

        Returns:
            The validated state

        Raises:
            InvalidHandshake: On any missing, expired, mismatched or replayed value
        """
        if not code:
            raise InvalidHandshake("missing_code")
        if not returned_state:
            raise InvalidHandshake("missing_state")

        expected_state = self.state_manager.unseal(sealed_state)
        if not expected_state:
            raise InvalidHandshake("expected_state_missing_or_expired")

        if not self.state_manager.validate(returned_state, expected_state):
            logger.warning("oauth_state_mismatch", provider=self.provider.provider_name)
            raise InvalidHandshake("state_mismatch")

        if not self.state_manager.consume(expected_state):
            logger.warning("oauth_state_replayed", provider=self.provider.provider_name)
            raise InvalidHandshake("state_already_used")

        return expected_state

    async def complete(
        self,
        code: Optional[str],
        returned_state: Optional[str],
        sealed_state: Optional[str],
    ) -> HandshakeResult:
        """
        Complete a handshake from the provider callback.

        Args:
            code: Authorization code from the callback query
            returned_state: State from the callback query
            sealed_state: Cookie value issued by initiate()

        Returns:
            Resolved identity (never the access token)

        Raises:
            InvalidHandshake: State validation failed; nothing was called or stored
            TokenExchangeFailed: Code could not be exchanged
            IdentityResolutionFailed: Identity could not be fetched
            DatabaseError: Credential could not be stored
        """
        state = self.check_state(code, returned_state, sealed_state)

        try:
            token_data = await self.provider.exchange_code_for_token(code, state)
        except httpx.HTTPStatusError as e:
            logger.error(
                "oauth_token_exchange_http_error",
                status_code=e.response.status_code,
            )
            raise TokenExchangeFailed("provider_error", {"status_code": e.response.status_code})
        except httpx.HTTPError as e:
            logger.error("oauth_token_exchange_transport_error", error_type=type(e).__name__)
            raise TokenExchangeFailed("transport_error")
        except ValueError:
            logger.error("oauth_token_exchange_invalid_body")
            raise TokenExchangeFailed("invalid_response")

        try:
            token = GitHubTokenResponse.model_validate(token_data)
        except ValidationError:
            logger.error("oauth_token_exchange_invalid_body")
            raise TokenExchangeFailed("invalid_response")

        if not token.access_token:
            error_code = token.error or "missing_access_token"
            logger.error(
                "oauth_token_exchange_rejected",
                error=error_code,
                error_description=token.error_description,
            )
            raise TokenExchangeFailed(error_code)

        try:
            user_data = await self.provider.get_user_info(token.access_token)
        except httpx.HTTPStatusError as e:
            logger.error(
                "oauth_identity_http_error",
                status_code=e.response.status_code,
            )
            raise IdentityResolutionFailed("provider_error", {"status_code": e.response.status_code})
        except httpx.HTTPError as e:
            logger.error("oauth_identity_transport_error", error_type=type(e).__name__)
            raise IdentityResolutionFailed("transport_error")
        except ValueError:
            logger.error("oauth_identity_invalid_body")
            raise IdentityResolutionFailed("invalid_response")

        try:
            user = GitHubUserInfo.model_validate(user_data)
        except ValidationError:
            logger.error("oauth_identity_incomplete")
            raise IdentityResolutionFailed("incomplete_identity")

        identity_id = str(user.id)
        credential = OAuthCredential(
            external_identity_id=identity_id,
            external_login=user.login,
            access_token=token.access_token,
            granted_scope=token.scope or "",
            issued_at=datetime.now(timezone.utc),
        )
        self.credentials.put(credential)

        logger.info(
            "oauth_handshake_completed",
            provider=self.provider.provider_name,
            identity_id=identity_id,
            login=user.login,
            scopes=credential.scopes,
        )

        return HandshakeResult(identity_id=identity_id, login=user.login, scope=token.scope or "")
