# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
API v1 Router

Combines the OAuth, crash report and chat mapping routers.
"""

from fastapi import APIRouter

from .oauth import router as oauth_router
from .reports import router as reports_router
from .mapping import router as mapping_router

router = APIRouter()

router.include_router(oauth_router)
router.include_router(reports_router)
router.include_router(mapping_router)
