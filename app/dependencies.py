# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Service container and FastAPI dependencies.

Process-wide collaborators are built once in the application lifespan and
stored on ``app.state.container``; request handlers receive them (and
per-request database sessions) through ``Depends``.
"""

from dataclasses import dataclass
from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session
import structlog

from app.adapters.database.postgres.connection import (
    DatabaseConfig,
    DatabaseConnectionPool,
    get_db_session,
)
from app.adapters.database.postgres.repositories.credentials import CredentialRepository
from app.adapters.database.postgres.repositories.mappings import ChatMappingRepository
from app.adapters.database.postgres.repositories.reports import CrashReportRepository
from app.adapters.external.cliq.notifier import ChatNotifier
from app.adapters.external.github.client import GitHubClient
from app.core.config import Settings
from app.exceptions import OAuthNotConfigured
from app.services.escalation.issue_escalator import IssueEscalationController
from app.services.oauth.github_oauth import GitHubOAuthProvider
from app.services.oauth.handshake import OAuthHandshakeController
from app.services.oauth.state import StateManager
from app.services.oauth.token_manager import TokenManager

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    """Long-lived collaborators shared by all requests."""

    settings: Settings
    database: DatabaseConnectionPool
    state_manager: StateManager
    token_manager: TokenManager
    github_provider: GitHubOAuthProvider
    github_client: GitHubClient
    notifier: ChatNotifier

    @classmethod
    def build(cls, settings: Settings) -> "ServiceContainer":
        """Create every collaborator from settings."""
        database = DatabaseConnectionPool(
            DatabaseConfig(url=settings.database_url, echo=settings.database_echo)
        )
        database.create_tables()

        container = cls(
            settings=settings,
            database=database,
            state_manager=StateManager(
                secret_key=settings.oauth_state_secret,
                ttl_seconds=settings.oauth_state_ttl_seconds,
                max_tracked_states=settings.oauth_state_max_tracked,
            ),
            token_manager=TokenManager(settings.oauth_token_encryption_key),
            github_provider=GitHubOAuthProvider(
                client_id=settings.github_client_id,
                client_secret=settings.github_client_secret,
                redirect_uri=settings.oauth_callback_url,
                scopes=settings.scope_list,
                timeout=settings.http_timeout_seconds,
            ),
            github_client=GitHubClient(
                api_url=settings.github_api_url,
                timeout=settings.http_timeout_seconds,
            ),
            notifier=ChatNotifier(
                webhook_url=settings.cliq_webhook_url,
                timeout=settings.http_timeout_seconds,
            ),
        )

        logger.info(
            "service_container_built",
            oauth_configured=settings.is_github_oauth_configured,
            escalation_repo=settings.github_repo or None,
            notifier_configured=container.notifier.is_configured,
        )
        return container

    def close(self) -> None:
        """Release resources held by the container."""
        self.database.dispose()


def get_service_container(request: Request) -> ServiceContainer:
    """Get the container created at startup."""
    return request.app.state.container


def get_db(container: ServiceContainer = Depends(get_service_container)) -> Iterator[Session]:
    """Per-request database session."""
    yield from get_db_session(container.database)


def get_credential_repository(
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_service_container),
) -> CredentialRepository:
    return CredentialRepository(db, container.token_manager)


def get_report_repository(db: Session = Depends(get_db)) -> CrashReportRepository:
    return CrashReportRepository(db)


def get_mapping_repository(db: Session = Depends(get_db)) -> ChatMappingRepository:
    return ChatMappingRepository(db)


def get_handshake_controller(
    container: ServiceContainer = Depends(get_service_container),
    credentials: CredentialRepository = Depends(get_credential_repository),
) -> OAuthHandshakeController:
    """
    Build the handshake controller for this request.

    Raises:
        OAuthNotConfigured: If the GitHub OAuth app is not configured
    """
    if not container.settings.is_github_oauth_configured:
        raise OAuthNotConfigured()

    return OAuthHandshakeController(
        provider=container.github_provider,
        state_manager=container.state_manager,
        credentials=credentials,
    )


def get_escalation_controller(
    container: ServiceContainer = Depends(get_service_container),
    credentials: CredentialRepository = Depends(get_credential_repository),
    reports: CrashReportRepository = Depends(get_report_repository),
) -> IssueEscalationController:
    return IssueEscalationController(
        credentials=credentials,
        reports=reports,
        github_client=container.github_client,
        settings=container.settings,
    )


def get_notifier(container: ServiceContainer = Depends(get_service_container)) -> ChatNotifier:
    return container.notifier
