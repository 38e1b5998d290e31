"""Database session management."""
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from motorpool.config.settings import settings


def build_engine(url: str, echo: bool = False, **kwargs: Any) -> Engine:
    """
    Create an engine for the given URL.

    SQLite engines are shared across threads and carry no pool sizing;
    every other backend gets the configured pool.
    """
    engine_args: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False}
    else:
        engine_args["pool_size"] = settings.DB_POOL_SIZE
        engine_args["max_overflow"] = settings.DB_POOL_OVERFLOW
    engine_args.update(kwargs)
    return create_engine(url, **engine_args)


engine = build_engine(settings.get_database_url(), echo=settings.DB_ECHO)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards.

    Usage:
        for db in get_db():
            registry = VehicleRegistry(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
