"""Database configuration and session management."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

Base = declarative_base()


class Database:
    """Database connection manager."""

    def __init__(self, config: dict):
        """
        Initialize database connection.

        Args:
            config: Root configuration dict that may include:
                - database.url: Full SQLAlchemy URL (overrides database.path)
                - database.path: SQLite file used when no URL is given
                - database.echo: Enable SQL echo for debugging
        """
        self.config = config
        self._engine = None
        self._session_factory = None

    def connection_url(self) -> str:
        db_config = self.config.get("database", {})
        conn_str = os.environ.get("DB_URL") or db_config.get("url")
        if conn_str:
            return conn_str
        db_path = Path(db_config.get("path", "data/licit_pro.sqlite"))
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path}"

    def get_engine(self):
        """Get or create SQLAlchemy engine."""
        if self._engine is None:
            db_config = self.config.get("database", {})
            conn_str = self.connection_url()

            engine_kwargs = {
                "pool_pre_ping": True,
                "echo": bool(db_config.get("echo", False)),
            }
            if conn_str.startswith("sqlite"):
                engine_kwargs["poolclass"] = NullPool
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                engine_kwargs["pool_size"] = int(db_config.get("pool_size", 5))
                engine_kwargs["max_overflow"] = int(db_config.get("max_overflow", 10))

            self._engine = create_engine(conn_str, **engine_kwargs)

        return self._engine

    def get_session_factory(self):
        """Get or create session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.get_engine(),
                autocommit=False,
                autoflush=False,
            )
        return self._session_factory

    def get_session(self) -> Session:
        return self.get_session_factory()()

    def create_tables(self):
        """Create all database tables."""
        # Registers the models on Base.metadata.
        import models.kv_entry  # noqa: F401

        Base.metadata.create_all(bind=self.get_engine())

    def test_connection(self) -> bool:
        """Test if the database connection is working."""
        try:
            with self.get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logging.getLogger(__name__).error("Database connection test failed: %s", exc)
            return False

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
