"""Database initialization utilities."""
import logging
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from motorpool.models import Base

logger = logging.getLogger(__name__)


def _default_engine() -> Engine:
    from motorpool.db.session import engine
    return engine


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create all motor pool tables that do not exist yet.
    """
    bind = bind or _default_engine()
    try:
        existing_tables = set(inspect(bind).get_table_names())
        Base.metadata.create_all(bind=bind)
        created = set(Base.metadata.tables) - existing_tables
        if created:
            logger.info(f"Created tables: {', '.join(sorted(created))}")
        else:
            logger.info(f"Database already initialized with {len(existing_tables)} tables")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_db(bind: Optional[Engine] = None) -> None:
    """
    Drop all motor pool tables.

    WARNING: This will delete all data! Only for development/testing purposes.
    """
    bind = bind or _default_engine()
    try:
        Base.metadata.drop_all(bind=bind)
        logger.warning("All database tables dropped")
    except Exception as e:
        logger.error(f"Error dropping database: {e}")
        raise

