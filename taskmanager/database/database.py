"""Engine, sessions and schema setup for the task store.

`DATABASE_URL` picks the backend. Without it, tasks and users live in a
local SQLite file; deployments point it at PostgreSQL (psycopg driver).
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./taskmanager.db")

# create_engine option -> (env var, default); server databases only
POOL_SETTINGS = {
    "pool_size": ("DB_POOL_SIZE", "5"),
    "max_overflow": ("DB_MAX_OVERFLOW", "5"),
    "pool_timeout": ("DB_POOL_TIMEOUT_SEC", "30"),
}


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Options for `create_engine`, read from the environment on each call."""
    kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }
    if _is_sqlite_url(database_url):
        # API worker threads and the background refresher share connections
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        for option, (env_var, default) in POOL_SETTINGS.items():
            kwargs[option] = int(os.getenv(env_var, default))
    return kwargs


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **get_engine_kwargs(database_url))


engine = build_engine(DATABASE_URL)


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Turn on FK enforcement (task -> user cascade) and WAL for SQLite."""
    if not _is_sqlite_url(DATABASE_URL):
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Session:
    """Yield a request-scoped session, closed when the request ends."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the tasks and users tables if they are missing."""
    # Importing the ORM module registers its tables on Base.metadata
    from taskmanager.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
