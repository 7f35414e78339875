# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Shared test fixtures.
"""

import pytest
from cryptography.fernet import Fernet

from app.adapters.database.postgres.connection import DatabaseConfig, DatabaseConnectionPool
from app.adapters.database.postgres.repositories.credentials import CredentialRepository
from app.adapters.database.postgres.repositories.reports import CrashReportRepository
from app.core.config import Settings
from app.services.oauth.token_manager import TokenManager


def build_settings(**overrides) -> Settings:
    """Settings isolated from the environment and .env files."""
    values = {
        "base_url": "https://crashlink.test",
        "github_client_id": "test_client_id",
        "github_client_secret": "test_client_secret",
        "github_oauth_scopes": "repo read:user",
        "github_repo": "",
        "escalation_identity_id": "",
        "database_url": "sqlite:///:memory:",
        "oauth_token_encryption_key": None,
        "oauth_state_secret": Fernet.generate_key().decode(),
        "cookie_secure": False,
        "cliq_webhook_url": "",
        "log_json": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory():
    """Build settings with per-test overrides."""
    return build_settings


@pytest.fixture
def settings():
    """Default test settings (escalation not configured)."""
    return build_settings()


@pytest.fixture
def db_pool():
    """In-memory database with all tables created."""
    pool = DatabaseConnectionPool(DatabaseConfig(url="sqlite:///:memory:"))
    pool.create_tables()
    yield pool
    pool.dispose()


@pytest.fixture
def db_session(db_pool):
    """Database session bound to the in-memory database."""
    session = db_pool.session()
    yield session
    session.close()


@pytest.fixture
def token_manager():
    """Token manager with encryption enabled."""
    return TokenManager(encryption_key=Fernet.generate_key().decode())


@pytest.fixture
def credential_repository(db_session, token_manager):
    return CredentialRepository(db_session, token_manager)


@pytest.fixture
def report_repository(db_session):
    return CrashReportRepository(db_session)
