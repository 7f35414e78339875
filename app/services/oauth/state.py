# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
OAuth State Manager

Issues CSRF state tokens and seals them into a client-held cookie.
"""

import secrets
import threading
from typing import Optional

from cachetools import TTLCache
from cryptography.fernet import Fernet, InvalidToken
import structlog

logger = structlog.get_logger(__name__)


class StateManager:
    """
    Generates, seals and validates OAuth state tokens.

    The expected state travels in a Fernet token held by the client, so a
    tampered or expired cookie fails to unseal. Consumed states are remembered
    for the TTL window so a callback cannot be replayed within this process.

    The consumed-state cache holds at most max_tracked_states entries; once
    full, the oldest entries are evicted before their TTL ends and those states
    are no longer recognised as used. Size it above the number of callbacks
    expected within one TTL window (OAUTH_STATE_MAX_TRACKED).
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        ttl_seconds: int = 600,
        max_tracked_states: int = 10000,
    ):
        """
        Initialize state manager.

        Args:
            secret_key: Fernet key used to seal state cookies. If None, an
                        ephemeral key is generated and cookies do not survive
                        a restart.
            ttl_seconds: State validity window
            max_tracked_states: Upper bound on remembered consumed states
        """
        if not secret_key:
            secret_key = Fernet.generate_key().decode()
            logger.warning(
                "oauth_state_secret_ephemeral",
                message="OAUTH_STATE_SECRET not set; generated a per-process key.",
            )

        self._fernet = Fernet(secret_key.encode())
        self.ttl_seconds = ttl_seconds
        self._consumed: TTLCache = TTLCache(maxsize=max_tracked_states, ttl=ttl_seconds)
        self._lock = threading.Lock()

    def generate_state(self) -> str:
        """
        Generate a secure random state for CSRF protection.

        Returns:
            Random state string
        """
        return secrets.token_urlsafe(32)

    def seal(self, state: str) -> str:
        """Seal a state into an opaque, timestamped cookie value."""
        return self._fernet.encrypt(state.encode()).decode()

    def unseal(self, sealed: Optional[str]) -> Optional[str]:
        """
        Recover the expected state from a cookie value.

        Returns:
            The state, or None if missing, tampered or older than the TTL
        """
        if not sealed:
            return None

        try:
            return self._fernet.decrypt(sealed.encode(), ttl=self.ttl_seconds).decode()
        except (InvalidToken, ValueError, TypeError):
            logger.info("oauth_state_unseal_failed")
            return None

    def validate(self, received_state: str, expected_state: str) -> bool:
        """
        Validate OAuth state parameter for CSRF protection.

        Args:
            received_state: State from callback
            expected_state: State recovered from the cookie

        Returns:
            True if states match
        """
        return secrets.compare_digest(received_state.encode(), expected_state.encode())

    def consume(self, state: str) -> bool:
        """
        Mark a state as used.

        Returns:
            False if the state was already consumed
        """
        with self._lock:
            if state in self._consumed:
                return False
            self._consumed[state] = True
            return True
