# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Crash Report Request/Response Schemas
"""

from typing import Optional
from pydantic import BaseModel, Field


class ErrorReportResponse(BaseModel):
    """Response from the error report endpoint."""

    ok: bool = Field(..., description="Whether the report was processed without escalation failure")
    id: Optional[str] = Field(None, description="Stored report ID")
    issue: Optional[str] = Field(None, description="URL of the created GitHub issue")
    note: Optional[str] = Field(None, description="Why escalation was skipped")
    error: Optional[str] = Field(None, description="Error message on failure")


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool = Field(True, description="Service is up")
