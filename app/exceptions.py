# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Crashlink exception hierarchy.
"""

from typing import Any, Dict, Optional


class CrashlinkError(Exception):
    """Base exception for all Crashlink errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# OAuth handshake

class OAuthNotConfigured(CrashlinkError):
    """GitHub OAuth client credentials are missing."""

    def __init__(self):
        super().__init__(
            "GitHub OAuth is not configured. Please set GITHUB_CLIENT_ID and "
            "GITHUB_CLIENT_SECRET environment variables."
        )


class InvalidHandshake(CrashlinkError):
    """Callback did not match a handshake this server initiated."""

    status_code = 400

    def __init__(self, reason: str):
        super().__init__(f"Invalid OAuth handshake: {reason}", {"reason": reason})
        self.reason = reason


class TokenExchangeFailed(CrashlinkError):
    """Authorization code could not be exchanged for an access token."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Token exchange failed: {reason}", details)
        self.reason = reason


class IdentityResolutionFailed(CrashlinkError):
    """Authenticated identity could not be resolved from the provider."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Identity resolution failed: {reason}", details)
        self.reason = reason


# Escalation

class IssueCreationFailed(CrashlinkError):
    """External issue could not be created for a crash report."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Issue creation failed: {reason}", details)
        self.reason = reason


# Storage

class DatabaseError(CrashlinkError):
    """Storage-layer failure."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            f"Database {operation} failed: {message}",
            {"operation": operation},
        )
        self.operation = operation
