# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Chat webhook notifier.
"""

from typing import Any, Dict, Optional
import httpx
import structlog

logger = structlog.get_logger(__name__)


class ChatNotifier:
    """Posts short text notifications to an incoming chat webhook."""

    def __init__(self, webhook_url: str = "", timeout: float = 15.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    async def notify(self, text: str, user_id: Optional[str] = None) -> bool:
        """
        Send a notification.

        Failures are logged and reported as False; they never propagate.
        """
        if not self.is_configured:
            return False

        payload: Dict[str, Any] = {"text": text}
        if user_id:
            payload["user_id"] = user_id

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "chat_notification_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

        logger.info("chat_notification_sent", has_user=bool(user_id))
        return True
