# /classgrader/db/database.py

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from ..core import config


def build_engine(database_url: str = None):
    """
    Creates the SQLAlchemy engine for a database URL.

    SQLite needs `check_same_thread=False` because listeners and requests may
    touch the store from different threads; an in-memory SQLite database
    additionally needs a single shared connection to survive between sessions.
    """
    database_url = database_url or config.DATABASE_URL
    engine_args = {}
    if database_url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_args["poolclass"] = StaticPool
    engine = create_engine(database_url, **engine_args)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine()

# Each instance of this class is a database session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Our database model classes inherit from this.
Base = declarative_base()


def create_tables(bind=None):
    """Creates every registered table directly (used for SQLite and tests)."""
    from . import base  # noqa: F401  (registers the models on Base.metadata)
    Base.metadata.create_all(bind=bind or engine)
