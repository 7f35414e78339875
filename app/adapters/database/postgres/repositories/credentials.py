# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

from datetime import datetime, timezone
from typing import Callable, Optional
from cryptography.fernet import InvalidToken
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog

from app.adapters.database.postgres.models import OAuthCredentialTable
from app.core.models.credential import OAuthCredential
from app.exceptions import DatabaseError
from app.services.oauth.token_manager import TokenManager

logger = structlog.get_logger()


class CredentialRepository:
    """
    Credential store keyed by GitHub identity.

    At most one credential exists per identity; writes for different
    identities touch different rows and need no coordination.
    """

    def __init__(self, db: Session, token_manager: TokenManager):
        self.db = db
        self.token_manager = token_manager

    def put(self, credential: OAuthCredential) -> OAuthCredential:
        """
        Upsert the credential for credential.external_identity_id.

        Any previous credential for the identity is overwritten.

        Raises:
            DatabaseError: If the write fails
        """
        try:
            stored_token = self.token_manager.encrypt_token(credential.access_token)
            existing = self.db.get(OAuthCredentialTable, credential.external_identity_id)

            if existing:
                existing.external_login = credential.external_login
                existing.access_token = stored_token
                existing.granted_scope = credential.granted_scope
                existing.issued_at = credential.issued_at
                existing.updated_at = datetime.now(timezone.utc)
                action = "updated"
            else:
                self.db.add(
                    OAuthCredentialTable(
                        external_identity_id=credential.external_identity_id,
                        external_login=credential.external_login,
                        access_token=stored_token,
                        granted_scope=credential.granted_scope,
                        issued_at=credential.issued_at,
                        updated_at=datetime.now(timezone.utc),
                    )
                )
                action = "created"

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            # Driver messages can echo the bound token; only the type is reported
            logger.error(
                "credential_store_failed",
                identity_id=credential.external_identity_id,
                error_type=type(e).__name__,
            )
            raise DatabaseError("upsert", type(e).__name__)

        logger.info(
            "credential_stored",
            action=action,
            identity_id=credential.external_identity_id,
            login=credential.external_login,
        )
        return credential

    def get(self, identity_id: str) -> Optional[OAuthCredential]:
        """
        Get the credential for a specific identity.

        Raises:
            DatabaseError: If the read fails or the stored token cannot be decrypted
        """
        return self._load(
            lambda: self.db.get(OAuthCredentialTable, identity_id),
            identity_id=identity_id,
        )

    def get_any(self) -> Optional[OAuthCredential]:
        """
        Get some stored credential, or None when none exists.

        Returns the most recently issued one. This is a single-tenant
        simplification: any linked account may be used for escalation.

        Raises:
            DatabaseError: If the read fails or the stored token cannot be decrypted
        """
        return self._load(
            lambda: (
                self.db.query(OAuthCredentialTable)
                .order_by(desc(OAuthCredentialTable.issued_at))
                .first()
            )
        )

    def count(self) -> int:
        """Number of stored credentials."""
        return self.db.query(OAuthCredentialTable).count()

    def _load(
        self,
        fetch: Callable[[], Optional[OAuthCredentialTable]],
        identity_id: Optional[str] = None,
    ) -> Optional[OAuthCredential]:
        try:
            row = fetch()
            return self._to_domain(row) if row else None
        except InvalidToken:
            # Key rotated or enabled after the token was written
            logger.error("credential_decrypt_failed", identity_id=identity_id)
            raise DatabaseError("read", "stored access token could not be decrypted")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "credential_read_failed",
                identity_id=identity_id,
                error_type=type(e).__name__,
            )
            raise DatabaseError("read", type(e).__name__)

    def _to_domain(self, row: OAuthCredentialTable) -> OAuthCredential:
        return OAuthCredential(
            external_identity_id=row.external_identity_id,
            external_login=row.external_login,
            access_token=self.token_manager.decrypt_token(row.access_token),
            granted_scope=row.granted_scope or "",
            issued_at=row.issued_at,
        )
