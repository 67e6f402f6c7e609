"""Database initialization utilities."""
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from propdesk.core.logging import get_logger
from propdesk.db.base import Base

logger = get_logger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Initialize the database by creating all tables.

    Suitable for development and tests; production schemas are migrated.
    """
    if bind is None:
        from propdesk.db.session import engine as bind

    existing_tables = inspect(bind).get_table_names()
    Base.metadata.create_all(bind=bind)
    logger.info(
        "Database initialized",
        extra={"existing_tables": len(existing_tables), "tables": len(Base.metadata.tables)},
    )


def drop_db(bind: Optional[Engine] = None) -> None:
    """Drop all database tables."""
    if bind is None:
        from propdesk.db.session import engine as bind

    Base.metadata.drop_all(bind=bind)
    logger.warning("All database tables dropped")
