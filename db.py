# db.py
# Role: Database bootstrap for the expense manager API.
#       Defines the SQLAlchemy engine, session factory, and declarative Base.
#       The connection URL comes from config.DATABASE_URL (SQLite by default).

"""
Database setup for the expense manager.

- Uses DATABASE_URL from the environment, or a SQLite file at
  <project_root>/database/finance.db.
- Sessions never autocommit: every service commits (or rolls back) the
  unit of work it started, which is what keeps a transfer all-or-nothing.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import DATABASE_URL, SQL_ECHO


def build_engine(url: str, **kwargs) -> Engine:
    """
    Create an engine for the given URL.

    For SQLite we need check_same_thread=False for FastAPI (threaded request
    handling) and foreign keys switched on per connection.
    """
    connect_args = kwargs.pop("connect_args", {})
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        connect_args.setdefault("check_same_thread", False)

    new_engine = create_engine(url, connect_args=connect_args, echo=SQL_ECHO, **kwargs)

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(DATABASE_URL)

# Standard session factory used via dependency injection (see app/deps.py:get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Declarative base class for ORM models
Base = declarative_base()
