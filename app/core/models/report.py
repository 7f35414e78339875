# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Crash report domain models.
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class CrashReport:
    """A stored crash report and its optional escalation reference."""

    id: str
    payload: Dict[str, Any]
    received_at: datetime
    fingerprint: str
    escalation_reference: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        value = self.payload.get("message")
        return str(value) if value not in (None, "") else None

    @property
    def stack(self) -> Optional[str]:
        value = self.payload.get("stack")
        return str(value) if value not in (None, "") else None

    @property
    def url(self) -> Optional[str]:
        return self.payload.get("url")

    @property
    def user_agent(self) -> Optional[str]:
        return self.payload.get("userAgent") or self.payload.get("user_agent")

    @staticmethod
    def compute_fingerprint(payload: Dict[str, Any]) -> str:
        """Stable hash of message + stack, used to group repeated crashes."""
        message = str(payload.get("message") or "")
        stack = str(payload.get("stack") or "")
        return hashlib.sha256(f"{message}\n{stack}".encode("utf-8")).hexdigest()


@dataclass
class EscalationOutcome:
    """
    Result of an escalation attempt that did not fail.

    Exactly one of issue_url / note is set.
    """

    issue_url: Optional[str] = None
    note: Optional[str] = None
    reference_attached: bool = False

    @property
    def escalated(self) -> bool:
        return self.issue_url is not None
