"""Engine and session setup for the SQLAlchemy store."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for *database_url*.

    For SQLite, pysqlite's own transaction handling is switched off so that
    SAVEPOINTs work, and every transaction starts with ``BEGIN IMMEDIATE``
    so concurrent writers queue on the database lock instead of failing at
    commit time.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    # Import models here so they get registered with Base before creating tables
    import vbs.infrastructure.persistence.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Schema created on {engine.url.render_as_string(hide_password=True)}")
