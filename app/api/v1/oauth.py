# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
GitHub OAuth Endpoints

Handles the GitHub OAuth 2.0 install flow.
"""

import html
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
import structlog

from app.dependencies import (
    ServiceContainer,
    get_handshake_controller,
    get_service_container,
)
from app.exceptions import (
    DatabaseError,
    IdentityResolutionFailed,
    InvalidHandshake,
    TokenExchangeFailed,
)
from app.services.oauth.handshake import OAuthHandshakeController

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["OAuth - GitHub"])


def render_page(title: str, message: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    """Minimal HTML page; message is escaped."""
    content = (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1><p>{html.escape(message)}</p></body></html>"
    )
    return HTMLResponse(content=content, status_code=status_code)


@router.get(
    "/install",
    status_code=status.HTTP_302_FOUND,
    summary="Initiate GitHub OAuth Flow",
    description="Redirect to GitHub's consent page with a fresh CSRF state.",
)
async def install(
    controller: OAuthHandshakeController = Depends(get_handshake_controller),
    container: ServiceContainer = Depends(get_service_container),
) -> RedirectResponse:
    """
    Initiate GitHub OAuth authorization flow.

    **Flow:**
    1. Generate CSRF protection state
    2. Seal it into a short-lived httpOnly cookie
    3. Redirect to GitHub
    """
    settings = container.settings
    start = controller.initiate()

    response = RedirectResponse(url=start.authorization_url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=settings.oauth_state_cookie_name,
        value=start.sealed_state,
        max_age=settings.oauth_state_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    return response


@router.get(
    "/oauth/callback",
    response_class=HTMLResponse,
    summary="GitHub OAuth Callback",
    description="Handle GitHub OAuth callback after user authorization.",
)
async def oauth_callback(
    request: Request,
    code: Optional[str] = Query(None, description="Authorization code from GitHub"),
    state: Optional[str] = Query(None, description="CSRF protection state"),
    error: Optional[str] = Query(None, description="Error code when the user denied access"),
    controller: OAuthHandshakeController = Depends(get_handshake_controller),
    container: ServiceContainer = Depends(get_service_container),
) -> HTMLResponse:
    """
    Handle GitHub OAuth callback.

    **Flow:**
    1. Validate state parameter against the cookie (CSRF protection)
    2. Exchange authorization code for access token
    3. Fetch user info from GitHub
    4. Store the credential
    5. Render a confirmation page naming the GitHub login
    """
    cookie_name = container.settings.oauth_state_cookie_name

    if error:
        logger.warning("github_oauth_denied", error=error)
        return render_page(
            "GitHub authorization failed",
            f"GitHub reported: {error}. Please start the installation again.",
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        result = await controller.complete(
            code=code,
            returned_state=state,
            sealed_state=request.cookies.get(cookie_name),
        )
    except InvalidHandshake as e:
        logger.warning("github_oauth_invalid_handshake", reason=e.reason)
        return render_page(
            "Invalid OAuth state",
            "This authorization request could not be verified. Please start the installation again.",
            status.HTTP_400_BAD_REQUEST,
        )
    except (TokenExchangeFailed, IdentityResolutionFailed, DatabaseError) as e:
        logger.error(
            "github_oauth_callback_failed",
            error_type=type(e).__name__,
            error=str(e),
        )
        response = render_page(
            "GitHub linking failed",
            "Something went wrong while linking your GitHub account. Please try again.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        response.delete_cookie(cookie_name, path="/")
        return response

    response = render_page(
        "GitHub account linked",
        f"GitHub account {result.login} is now linked. You can close this window.",
    )
    response.delete_cookie(cookie_name, path="/")
    return response
