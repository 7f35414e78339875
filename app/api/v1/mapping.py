# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Chat Integration Endpoints

Maps chat workspace users to GitHub logins and answers connectivity checks.
"""

import time
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
import structlog

from app.adapters.database.postgres.repositories.mappings import ChatMappingRepository
from app.core.schemas.mapping import ChatTestResponse, LinkAccountRequest, LinkAccountResponse
from app.dependencies import get_mapping_repository
from app.exceptions import DatabaseError

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["Chat Mapping"])


@router.post(
    "/link-account",
    response_model=LinkAccountResponse,
    summary="Link Chat User",
    description="Map a chat workspace user to a GitHub login.",
)
async def link_account(
    body: LinkAccountRequest,
    mappings: ChatMappingRepository = Depends(get_mapping_repository),
) -> JSONResponse:
    """
    Save a chat user to GitHub login mapping.

    **Returns:**
    - 200 with the saved mapping
    - 400 if either field is missing
    """
    if not body.cliq_user or not body.github_login:
        return JSONResponse(
            content=LinkAccountResponse(ok=False, error="missing_fields").model_dump(exclude_none=True),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        mappings.upsert(body.cliq_user, body.github_login)
    except DatabaseError as e:
        return JSONResponse(
            content=LinkAccountResponse(ok=False, error=str(e)).model_dump(exclude_none=True),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return JSONResponse(
        content=LinkAccountResponse(
            ok=True,
            message="Mapping saved!",
            user=body.cliq_user,
            github=body.github_login,
        ).model_dump(exclude_none=True),
        status_code=status.HTTP_200_OK,
    )


@router.post(
    "/test",
    response_model=ChatTestResponse,
    summary="Chat Connectivity Check",
    description="Echo the request body so the chat integration can verify it reaches the backend.",
)
async def chat_test(request: Request) -> ChatTestResponse:
    body = await request.body()
    try:
        received = await request.json() if body else None
    except ValueError:
        received = body.decode("utf-8", errors="replace")

    logger.info("chat_test_received", has_body=received is not None)

    return ChatTestResponse(
        ok=True,
        msg="Backend reached successfully!",
        received=received,
        timestamp=int(time.time() * 1000),
    )
