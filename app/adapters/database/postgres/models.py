# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Database models.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuthCredentialTable(Base):
    """
    GitHub OAuth credential, one row per GitHub identity.

    Re-installing the app for the same identity overwrites the row.
    """

    __tablename__ = "oauth_credentials"

    external_identity_id = Column(String(64), primary_key=True)
    external_login = Column(String(255), nullable=False)
    # Opaque; Fernet-wrapped when an encryption key is configured
    access_token = Column(Text, nullable=False)
    granted_scope = Column(String(512), nullable=False, default="")
    issued_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        Index("ix_oauth_credentials_issued_at", "issued_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<OAuthCredentialTable(identity={self.external_identity_id}, "
            f"login={self.external_login})>"
        )


class CrashReportTable(Base):
    """Crash/error report received from a client application."""

    __tablename__ = "crash_reports"

    id = Column(String(64), primary_key=True)
    payload = Column(JSON, nullable=False)
    message = Column(Text, nullable=True)
    fingerprint = Column(String(64), nullable=False, index=True)
    received_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    escalation_reference = Column(String(512), nullable=True)
    escalated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_crash_reports_received_at", "received_at"),
    )

    def __repr__(self) -> str:
        return f"<CrashReportTable(id={self.id}, escalated={self.escalation_reference is not None})>"


class ChatMappingTable(Base):
    """Mapping between a chat workspace user and a GitHub login."""

    __tablename__ = "chat_mappings"

    chat_user_id = Column(String(255), primary_key=True)
    github_login = Column(String(255), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
