from functools import lru_cache

from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlmodel import create_engine, SQLModel, Session

from config import Settings, get_settings


@lru_cache
def get_engine(database_url: str, echo: bool = False) -> Engine:
    """Create (once per URL) the engine backing the task store"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    elif database_url.startswith("postgresql"):
        # Timestamps render as text in UTC, which the due-date prefix filter relies on
        connect_args["options"] = "-c timezone=utc"
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def create_db_and_tables(settings: Settings):
    """Create all tables in the database"""
    SQLModel.metadata.create_all(get_engine(settings.database_url, settings.sql_echo))


def get_session(settings: Settings = Depends(get_settings)):
    """Get database session - used as FastAPI dependency"""
    with Session(get_engine(settings.database_url, settings.sql_echo)) as session:
        yield session
