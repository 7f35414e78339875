# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
OAuth credential domain model.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List


@dataclass
class OAuthCredential:
    """
    Access credential obtained for a resolved GitHub identity.

    The access token is opaque and must never be logged or returned to a client.
    """

    external_identity_id: str
    external_login: str
    access_token: str = field(repr=False)
    granted_scope: str = ""
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def scopes(self) -> List[str]:
        """Granted scopes (GitHub reports them comma separated)."""
        return [s.strip() for s in self.granted_scope.replace(" ", ",").split(",") if s.strip()]
