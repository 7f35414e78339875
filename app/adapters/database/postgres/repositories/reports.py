# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
from sqlalchemy.orm import Session
import structlog

from app.adapters.database.postgres.models import CrashReportTable
from app.core.models.report import CrashReport
from app.exceptions import DatabaseError

logger = structlog.get_logger()


class CrashReportRepository:
    """Repository for crash report database operations."""

    def __init__(self, db: Session):
        self.db = db

    def save(self, payload: Dict[str, Any]) -> CrashReport:
        """
        Persist a report verbatim with its receipt timestamp.

        Args:
            payload: Report fields as received

        Returns:
            Stored report (report.id is the handle)

        Raises:
            DatabaseError: If the write fails
        """
        message = payload.get("message")
        row = CrashReportTable(
            id=f"rep_{uuid4().hex}",
            payload=dict(payload),
            message=str(message) if message is not None else None,
            fingerprint=CrashReport.compute_fingerprint(payload),
            received_at=datetime.now(timezone.utc),
        )

        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except Exception as e:
            self.db.rollback()
            logger.error("crash_report_save_failed", error=str(e))
            raise DatabaseError("create", str(e))

        logger.info("crash_report_saved", report_id=row.id, fingerprint=row.fingerprint[:12])
        return self._to_domain(row)

    def get_by_id(self, report_id: str) -> Optional[CrashReport]:
        """Get report by ID."""
        row = self.db.get(CrashReportTable, report_id)
        return self._to_domain(row) if row else None

    def attach_reference(self, report_id: str, reference: str) -> bool:
        """
        Link an escalation reference to a stored report.

        The reference is immutable once set.

        Returns:
            True if attached, False if the report is missing or already linked

        Raises:
            DatabaseError: If the update fails
        """
        try:
            row = self.db.get(CrashReportTable, report_id)
            if row is None:
                logger.warning("crash_report_not_found", report_id=report_id)
                return False

            if row.escalation_reference:
                logger.warning(
                    "crash_report_already_escalated",
                    report_id=report_id,
                    reference=row.escalation_reference,
                )
                return False

            row.escalation_reference = reference
            row.escalated_at = datetime.now(timezone.utc)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error("crash_report_update_failed", report_id=report_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("crash_report_reference_attached", report_id=report_id, reference=reference)
        return True

    @staticmethod
    def _to_domain(row: CrashReportTable) -> CrashReport:
        return CrashReport(
            id=row.id,
            payload=dict(row.payload or {}),
            received_at=row.received_at,
            fingerprint=row.fingerprint,
            escalation_reference=row.escalation_reference,
        )
