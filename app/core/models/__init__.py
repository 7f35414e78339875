from .credential import OAuthCredential
from .report import CrashReport, EscalationOutcome

__all__ = [
    "OAuthCredential",
    "CrashReport",
    "EscalationOutcome",
]
