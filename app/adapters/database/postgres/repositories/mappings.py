# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog

from app.adapters.database.postgres.models import ChatMappingTable
from app.exceptions import DatabaseError

logger = structlog.get_logger()


class ChatMappingRepository:
    """Repository for chat user to GitHub login mappings."""

    def __init__(self, db: Session):
        self.db = db

    def upsert(self, chat_user_id: str, github_login: str) -> ChatMappingTable:
        """Create or replace the mapping for a chat user."""
        try:
            mapping = self.db.get(ChatMappingTable, chat_user_id)
            if mapping:
                mapping.github_login = github_login
                mapping.updated_at = datetime.now(timezone.utc)
            else:
                mapping = ChatMappingTable(
                    chat_user_id=chat_user_id,
                    github_login=github_login,
                    updated_at=datetime.now(timezone.utc),
                )
                self.db.add(mapping)
            self.db.commit()
            self.db.refresh(mapping)
        except Exception as e:
            self.db.rollback()
            logger.error("chat_mapping_upsert_failed", chat_user=chat_user_id, error=str(e))
            raise DatabaseError("upsert", str(e))

        logger.info("chat_mapping_saved", chat_user=chat_user_id, github_login=github_login)
        return mapping

    def get_github_login(self, chat_user_id: str) -> Optional[str]:
        """Get the GitHub login linked to a chat user."""
        try:
            mapping = self.db.get(ChatMappingTable, chat_user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("chat_mapping_read_failed", chat_user=chat_user_id, error_type=type(e).__name__)
            raise DatabaseError("read", type(e).__name__)
        return mapping.github_login if mapping else None
