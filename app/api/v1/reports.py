# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Crash Report Endpoints

Receives client crash reports, stores them and escalates them to GitHub.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
import structlog

from app.adapters.database.postgres.repositories.mappings import ChatMappingRepository
from app.adapters.database.postgres.repositories.reports import CrashReportRepository
from app.adapters.external.cliq.notifier import ChatNotifier
from app.core.models.report import CrashReport, EscalationOutcome
from app.core.schemas.reports import ErrorReportResponse
from app.dependencies import (
    get_escalation_controller,
    get_mapping_repository,
    get_notifier,
    get_report_repository,
)
from app.exceptions import DatabaseError, IssueCreationFailed
from app.services.escalation.issue_escalator import IssueEscalationController

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["Crash Reports"])


def _json(body: ErrorReportResponse, status_code: int) -> JSONResponse:
    return JSONResponse(content=body.model_dump(exclude_none=True), status_code=status_code)


def _notification_text(
    report: CrashReport,
    outcome: Optional[EscalationOutcome] = None,
    error: Optional[str] = None,
    github_login: Optional[str] = None,
) -> str:
    title = IssueEscalationController.build_title(report)
    text = f"Crash reported: {title}"
    if github_login:
        text += f" (reporter: @{github_login})"

    if error:
        return f"{text}\nEscalation failed: {error}"
    if outcome and outcome.escalated:
        return f"{text}\nIssue: {outcome.issue_url}"
    if outcome and outcome.note:
        return f"{text}\n{outcome.note}"
    return text


def _reporter_login(mappings: ChatMappingRepository, chat_user: Optional[str]) -> Optional[str]:
    """GitHub login linked to the reporting chat user, if any."""
    if not chat_user:
        return None
    try:
        return mappings.get_github_login(str(chat_user))
    except DatabaseError as e:
        logger.warning("error_report_mapping_lookup_failed", chat_user=chat_user, error=str(e))
        return None


@router.post(
    "/error-report",
    response_model=ErrorReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Crash Report",
    description="Store a crash report and escalate it into a GitHub issue.",
)
async def submit_error_report(
    request: Request,
    reports: CrashReportRepository = Depends(get_report_repository),
    escalator: IssueEscalationController = Depends(get_escalation_controller),
    mappings: ChatMappingRepository = Depends(get_mapping_repository),
    notifier: ChatNotifier = Depends(get_notifier),
) -> JSONResponse:
    """
    Submit a crash report.

    **Flow:**
    1. Save the report verbatim with a receipt timestamp
    2. Escalate to GitHub (skipped if no repository or credential)
    3. Link the created issue back to the report
    4. Notify the chat webhook

    **Returns:**
    - 201 with the issue URL, or a note explaining why escalation was skipped
    - 500 if the report could not be saved, the credential could not be
      read, or the issue could not be created
    """
    try:
        payload = await request.json()
    except ValueError:
        return _json(ErrorReportResponse(ok=False, error="invalid_json"), status.HTTP_400_BAD_REQUEST)

    if not isinstance(payload, dict):
        return _json(ErrorReportResponse(ok=False, error="invalid_payload"), status.HTTP_400_BAD_REQUEST)

    try:
        report = reports.save(payload)
    except DatabaseError as e:
        logger.error("error_report_save_failed", error=str(e))
        return _json(ErrorReportResponse(ok=False, error=str(e)), status.HTTP_500_INTERNAL_SERVER_ERROR)

    chat_user = payload.get("cliq_user")
    github_login = _reporter_login(mappings, chat_user)

    try:
        outcome = await escalator.escalate(report)
    except (IssueCreationFailed, DatabaseError) as e:
        logger.error(
            "error_report_escalation_failed",
            report_id=report.id,
            error_type=type(e).__name__,
            error=str(e),
        )
        await notifier.notify(
            _notification_text(report, error=str(e), github_login=github_login),
            user_id=chat_user,
        )
        return _json(
            ErrorReportResponse(ok=False, id=report.id, error=str(e)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    await notifier.notify(
        _notification_text(report, outcome, github_login=github_login),
        user_id=chat_user,
    )

    return _json(
        ErrorReportResponse(ok=True, id=report.id, issue=outcome.issue_url, note=outcome.note),
        status.HTTP_201_CREATED,
    )
