# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
Database connection management.
"""

from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
import structlog

from app.adapters.database.postgres.models import Base

logger = structlog.get_logger(__name__)


@dataclass
class DatabaseConfig:
    """Connection settings for the SQLAlchemy engine."""

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_pre_ping: bool = True

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_in_memory(self) -> bool:
        return self.is_sqlite and (":memory:" in self.url or self.url.rstrip("/") == "sqlite:")


class DatabaseConnectionPool:
    """
    Owns the SQLAlchemy engine and session factory for the process.

    Created once at startup and disposed at shutdown.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine: Engine = self._create_engine(config)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        logger.info(
            "database_pool_created",
            dialect=self.engine.dialect.name,
        )

    @staticmethod
    def _create_engine(config: DatabaseConfig) -> Engine:
        if config.is_sqlite:
            kwargs = {"connect_args": {"check_same_thread": False}}
            # Single shared connection so every session sees the same in-memory DB
            if config.is_in_memory:
                kwargs["poolclass"] = StaticPool
            return create_engine(
                config.url,
                echo=config.echo,
                hide_parameters=True,
                **kwargs,
            )

        return create_engine(
            config.url,
            echo=config.echo,
            hide_parameters=True,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_pre_ping=config.pool_pre_ping,
        )

    def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        """Open a new session."""
        return self.session_factory()

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
        logger.info("database_pool_disposed")


def get_db_session(pool: DatabaseConnectionPool) -> Iterator[Session]:
    """
    Yield a session that is always closed afterwards.

    Args:
        pool: Connection pool to open the session from
    """
    session = pool.session()
    try:
        yield session
    finally:
        session.close()
