# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Application Configuration

Settings loaded from environment variables (and an optional .env file).
"""

from functools import lru_cache
from typing import List, Optional, Tuple
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Crashlink configuration.

    These settings are loaded from environment variables.
    """

    # Public base URL of this service (used to build the OAuth callback URL)
    base_url: str = Field(
        default="http://localhost:3000",
        alias="BASE_URL",
        description="Public base URL of the service"
    )

    # GitHub OAuth application credentials
    github_client_id: str = Field(
        default="",
        alias="GITHUB_CLIENT_ID",
        description="GitHub OAuth App client ID"
    )

    github_client_secret: str = Field(
        default="",
        alias="GITHUB_CLIENT_SECRET",
        description="GitHub OAuth App client secret"
    )

    github_oauth_scopes: str = Field(
        default="repo read:user",
        alias="GITHUB_OAUTH_SCOPES",
        description="Requested OAuth scopes (space or comma separated)"
    )

    # Escalation target (owner/repo). Empty disables escalation.
    github_repo: str = Field(
        default="",
        alias="GITHUB_REPO",
        description="Repository that receives crash report issues (owner/repo)"
    )

    github_api_url: str = Field(
        default="https://api.github.com",
        alias="GITHUB_API_URL",
        description="GitHub REST API base URL"
    )

    escalation_identity_id: str = Field(
        default="",
        alias="ESCALATION_IDENTITY_ID",
        description="GitHub user ID whose credential is used for escalation"
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///./crashlink.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL"
    )

    database_echo: bool = Field(
        default=False,
        alias="DATABASE_ECHO",
        description="Echo SQL statements"
    )

    # Secrets
    oauth_token_encryption_key: Optional[str] = Field(
        default=None,
        alias="OAUTH_TOKEN_ENCRYPTION_KEY",
        description="Fernet key used to wrap stored access tokens"
    )

    oauth_state_secret: Optional[str] = Field(
        default=None,
        alias="OAUTH_STATE_SECRET",
        description="Fernet key used to seal the OAuth state cookie"
    )

    # OAuth state cookie
    oauth_state_ttl_seconds: int = Field(
        default=600,
        alias="OAUTH_STATE_TTL_SECONDS",
        description="Lifetime of an issued OAuth state (seconds)"
    )

    oauth_state_max_tracked: int = Field(
        default=10000,
        alias="OAUTH_STATE_MAX_TRACKED",
        description="Consumed states remembered for replay rejection within the TTL"
    )

    oauth_state_cookie_name: str = Field(
        default="gh_oauth_state",
        alias="OAUTH_STATE_COOKIE_NAME",
        description="Name of the cookie carrying the sealed state"
    )

    cookie_secure: bool = Field(
        default=True,
        alias="COOKIE_SECURE",
        description="Mark the state cookie as Secure"
    )

    # Outbound HTTP
    http_timeout_seconds: float = Field(
        default=15.0,
        alias="HTTP_TIMEOUT_SECONDS",
        description="Timeout applied to every outbound HTTP call"
    )

    # Chat notifications
    cliq_webhook_url: str = Field(
        default="",
        alias="CLIQ_WEBHOOK_URL",
        description="Outbound chat webhook for report notifications"
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def oauth_callback_url(self) -> str:
        """Get the OAuth callback URL registered with GitHub."""
        return f"{self.base_url.rstrip('/')}/oauth/callback"

    @property
    def scope_list(self) -> List[str]:
        """Requested scopes as a list."""
        return [s for s in self.github_oauth_scopes.replace(",", " ").split() if s]

    @property
    def is_github_oauth_configured(self) -> bool:
        """Check if the GitHub OAuth app is configured."""
        return bool(self.github_client_id and self.github_client_secret)

    @property
    def repo_owner_and_name(self) -> Optional[Tuple[str, str]]:
        """Split github_repo into (owner, repo), or None if not usable."""
        parts = self.github_repo.strip().strip("/").split("/")
        if len(parts) != 2 or not all(parts):
            return None
        return parts[0], parts[1]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance
    """
    return Settings()
