# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
OAuth Schemas

Pydantic models for GitHub OAuth provider payloads.
"""

from typing import Optional
from pydantic import BaseModel, Field


class GitHubTokenResponse(BaseModel):
    """Body returned by the GitHub token endpoint."""

    access_token: Optional[str] = Field(None, description="Access token")
    token_type: Optional[str] = Field(None, description="Token type (bearer)")
    scope: Optional[str] = Field(default="", description="Granted scopes, comma separated")
    error: Optional[str] = Field(None, description="Error code when the grant failed")
    error_description: Optional[str] = Field(None, description="Error description")


class GitHubUserInfo(BaseModel):
    """GitHub user information."""

    id: int = Field(..., description="GitHub user ID")
    login: str = Field(..., min_length=1, description="GitHub username")
    name: Optional[str] = Field(None, description="Full name")
    email: Optional[str] = Field(None, description="Email address")
    avatar_url: Optional[str] = Field(None, description="Avatar URL")
    html_url: Optional[str] = Field(None, description="Profile URL")
    type: str = Field(default="User", description="Account type")
