# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Issue Escalation Controller

Turns a stored crash report into a GitHub issue using a linked account.
"""

import json
from typing import Any, Dict, List, Optional
import httpx
import structlog

from app.adapters.database.postgres.repositories.credentials import CredentialRepository
from app.adapters.database.postgres.repositories.reports import CrashReportRepository
from app.adapters.external.github.client import GitHubClient
from app.core.config import Settings
from app.core.models.credential import OAuthCredential
from app.core.models.report import CrashReport, EscalationOutcome
from app.exceptions import DatabaseError, IssueCreationFailed

logger = structlog.get_logger(__name__)

NOTE_REPO_NOT_CONFIGURED = "Repo not configured"
NOTE_NO_CREDENTIAL = "No GitHub credential stored"

DEFAULT_TITLE = "Unknown error"
MAX_TITLE_LENGTH = 256
ISSUE_LABELS = ["crash-report"]

# Payload keys rendered in their own sections of the issue body
_KNOWN_FIELDS = {"message", "stack", "url", "userAgent", "user_agent"}


class IssueEscalationController:
    """
    Escalates crash reports into GitHub issues.

    Each step may stop or fail without undoing earlier ones: the report is
    already saved before escalation starts, and a created issue is never
    rolled back if linking it to the report fails.

    Repeated submissions are not deduplicated; every call creates a new issue.
    """

    def __init__(
        self,
        credentials: CredentialRepository,
        reports: CrashReportRepository,
        github_client: GitHubClient,
        settings: Settings,
    ):
        self.credentials = credentials
        self.reports = reports
        self.github_client = github_client
        self.settings = settings

    def _select_credential(self) -> Optional[OAuthCredential]:
        hint = self.settings.escalation_identity_id
        if hint:
            return self.credentials.get(hint)
        return self.credentials.get_any()

    @staticmethod
    def build_title(report: CrashReport) -> str:
        """
        Issue title from the report message.

        Uses the first line of the message, capped to GitHub's title limit.
        """
        message = report.message
        if not message or not message.strip():
            return DEFAULT_TITLE

        title = message.strip().splitlines()[0].strip()
        if len(title) > MAX_TITLE_LENGTH:
            title = title[: MAX_TITLE_LENGTH - 3] + "..."
        return title

    @staticmethod
    def build_body(report: CrashReport) -> str:
        """
        Issue body markdown from the report.

        Args:
            report: Stored crash report

        Returns:
            Markdown body
        """
        received_at = report.received_at.isoformat() if report.received_at else "unknown"

        body_parts: List[str] = [
            "## Crash Report",
            "",
            "### Message",
            report.message or DEFAULT_TITLE,
            "",
            "### Stack Trace",
            "```",
            report.stack or "(no stack trace)",
            "```",
            "",
            "### Context",
            f"- **URL:** {report.url or 'n/a'}",
            f"- **User Agent:** {report.user_agent or 'n/a'}",
            f"- **Received At:** {received_at}",
            f"- **Report ID:** `{report.id}`",
            f"- **Fingerprint:** `{report.fingerprint[:12]}`",
        ]

        extra: Dict[str, Any] = {
            k: v for k, v in report.payload.items() if k not in _KNOWN_FIELDS
        }
        if extra:
            body_parts.extend([
                "",
                "### Details",
                "```json",
                json.dumps(extra, indent=2, sort_keys=True, default=str),
                "```",
            ])

        body_parts.extend([
            "",
            "---",
            "",
            "_This issue was created automatically from a crash report._",
        ])

        return "\n".join(body_parts)

    async def escalate(self, report: CrashReport) -> EscalationOutcome:
        """
        Escalate a saved report.

        Args:
            report: Report already persisted by the report store

        Returns:
            EscalationOutcome with issue_url on success, or a note when skipped

        Raises:
            IssueCreationFailed: GitHub call failed or returned no issue URL
            DatabaseError: The credential could not be read
        """
        target = self.settings.repo_owner_and_name
        if target is None:
            logger.info("escalation_skipped", report_id=report.id, reason="repo_not_configured")
            return EscalationOutcome(note=NOTE_REPO_NOT_CONFIGURED)

        credential = self._select_credential()
        if credential is None:
            logger.info("escalation_skipped", report_id=report.id, reason="no_credential")
            return EscalationOutcome(note=NOTE_NO_CREDENTIAL)

        owner, repo = target
        title = self.build_title(report)
        body = self.build_body(report)

        try:
            issue = await self.github_client.create_issue(
                access_token=credential.access_token,
                owner=owner,
                repo=repo,
                title=title,
                body=body,
                labels=ISSUE_LABELS,
            )
        except httpx.HTTPStatusError as e:
            logger.error(
                "escalation_issue_http_error",
                report_id=report.id,
                status_code=e.response.status_code,
                repo=f"{owner}/{repo}",
            )
            raise IssueCreationFailed(
                f"GitHub returned HTTP {e.response.status_code}",
                {"status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            logger.error(
                "escalation_issue_transport_error",
                report_id=report.id,
                error_type=type(e).__name__,
            )
            raise IssueCreationFailed(f"transport error ({type(e).__name__})")
        except ValueError:
            logger.error("escalation_issue_invalid_body", report_id=report.id)
            raise IssueCreationFailed("invalid response body")

        issue_url = issue.get("html_url") if isinstance(issue, dict) else None
        if not issue_url:
            logger.error("escalation_issue_unlinkable", report_id=report.id)
            raise IssueCreationFailed("response had no issue URL")

        try:
            attached = self.reports.attach_reference(report.id, issue_url)
        except DatabaseError as e:
            logger.warning(
                "escalation_reference_attach_failed",
                report_id=report.id,
                issue_url=issue_url,
                error=str(e),
            )
            attached = False

        logger.info(
            "escalation_completed",
            report_id=report.id,
            issue_url=issue_url,
            credential_login=credential.external_login,
            reference_attached=attached,
        )

        return EscalationOutcome(issue_url=issue_url, reference_attached=attached)
