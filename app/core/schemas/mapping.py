# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Chat Mapping Request/Response Schemas
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class LinkAccountRequest(BaseModel):
    """Link a chat user to a GitHub login."""

    cliq_user: Optional[str] = Field(None, description="Chat workspace user ID")
    github_login: Optional[str] = Field(None, description="GitHub username")


class LinkAccountResponse(BaseModel):
    """Response from the link account endpoint."""

    ok: bool = Field(..., description="Whether the mapping was saved")
    message: Optional[str] = Field(None, description="Human-readable result")
    user: Optional[str] = Field(None, description="Chat user ID")
    github: Optional[str] = Field(None, description="GitHub login")
    error: Optional[str] = Field(None, description="Error code on failure")


class ChatTestResponse(BaseModel):
    """Echo returned to the chat integration's connectivity check."""

    ok: bool = Field(True, description="Backend reached")
    msg: str = Field(..., description="Human-readable result")
    received: Optional[Any] = Field(None, description="Request body as received")
    timestamp: int = Field(..., description="Server time in milliseconds since the epoch")
