# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
OAuth Token Manager

Wraps access tokens before they are written to the credential store.
"""

from typing import Optional
from cryptography.fernet import Fernet
import structlog

logger = structlog.get_logger(__name__)


class TokenManager:
    """
    Manages OAuth token encryption and decryption.

    Tokens are encrypted at rest using Fernet (symmetric encryption) when a
    key is configured, and stored as-is otherwise.
    """

    def __init__(self, encryption_key: Optional[str] = None):
        """
        Initialize token manager.

        Args:
            encryption_key: Base64-encoded Fernet key for encryption.
                           If None, tokens are stored opaquely without encryption.
        """
        self.encryption_enabled = bool(encryption_key)

        if self.encryption_enabled:
            self.cipher_suite = Fernet(encryption_key.encode())
            logger.info("token_encryption_enabled")
        else:
            self.cipher_suite = None
            logger.warning(
                "token_encryption_disabled",
                message="OAuth tokens will be stored in plaintext. Set OAUTH_TOKEN_ENCRYPTION_KEY to wrap them.",
            )

    def encrypt_token(self, token: str) -> str:
        """
        Encrypt an OAuth token for storage.

        Args:
            token: Plaintext OAuth token

        Returns:
            Encrypted token (or plaintext if encryption disabled)
        """
        if not self.encryption_enabled:
            return token

        try:
            encrypted = self.cipher_suite.encrypt(token.encode())
            return encrypted.decode()
        except Exception as e:
            logger.error(
                "token_encryption_failed",
                error_type=type(e).__name__,
            )
            raise

    def decrypt_token(self, encrypted_token: str) -> str:
        """
        Decrypt an OAuth token for use.

        Args:
            encrypted_token: Encrypted token from storage

        Returns:
            Plaintext OAuth token

        Raises:
            cryptography.fernet.InvalidToken: If decryption fails
        """
        if not self.encryption_enabled:
            return encrypted_token

        try:
            decrypted = self.cipher_suite.decrypt(encrypted_token.encode())
            return decrypted.decode()
        except Exception as e:
            logger.error(
                "token_decryption_failed",
                error_type=type(e).__name__,
            )
            raise
