from .models import (
    Base,
    OAuthCredentialTable,
    CrashReportTable,
    ChatMappingTable,
)

from .connection import (
    DatabaseConfig,
    DatabaseConnectionPool,
    get_db_session,
)

from .repositories.credentials import CredentialRepository
from .repositories.reports import CrashReportRepository
from .repositories.mappings import ChatMappingRepository

__all__ = [
    "Base",
    "OAuthCredentialTable",
    "CrashReportTable",
    "ChatMappingTable",
    "DatabaseConfig",
    "DatabaseConnectionPool",
    "get_db_session",
    "CredentialRepository",
    "CrashReportRepository",
    "ChatMappingRepository",
]
