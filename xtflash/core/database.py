"""Database Configuration and Session Management"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from ..config import DatabaseSettings
from .exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

# Database base class for models
Base = declarative_base()


@dataclass(frozen=True)
class Ok:
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class RecoverableError:
    message: str

    @property
    def ok(self) -> bool:
        return False


DbResult = Union[Ok, RecoverableError]


class Database:
    """Engine and session factory for one menu session"""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )

    def session(self):
        return self.SessionLocal()

    def close(self) -> None:
        """Close database connection"""
        self.engine.dispose()
        logger.info("Database connection closed")


def init_db(config: DatabaseSettings, engine: Optional[Engine] = None) -> Database:
    """Connect, verify the connection and create the schema if absent.

    Raises DatabaseConnectionError when the server cannot be reached; the
    caller treats that as fatal.
    """
    # Registers the tables on Base.metadata
    from .. import models  # noqa: F401

    if engine is None:
        engine = create_engine(
            config.sqlalchemy_url,
            echo=config.echo,
            pool_pre_ping=True,
        )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        Base.metadata.create_all(engine)
    except SQLAlchemyError as e:
        engine.dispose()
        raise DatabaseConnectionError(f"Could not connect to database: {e}") from e

    logger.info("Database connection initialized")
    return Database(engine)
