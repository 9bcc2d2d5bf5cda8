"""
Database connection management for HomeBase.
Handles SQLAlchemy engine creation, session management, and connection verification.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# SQLAlchemy Base for model declarations
Base = declarative_base()


class Database:
    """
    Owns one engine and its session factory.

    Created by the app factory and stored on ``app.extensions['database']``;
    ``close()`` disposes the engine when the app shuts down.
    """

    def __init__(self, url, engine_options=None):
        if not url:
            raise RuntimeError(
                "DATABASE_URL not configured. Cannot open the database. "
                "Please set the DATABASE_URL environment variable."
            )
        self.url = url
        self.engine = self._create_engine(url, engine_options or {})
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info(f"Database engine created for {self.engine.url.get_backend_name()}")

    @staticmethod
    def _create_engine(url, engine_options):
        if url.startswith('sqlite'):
            options = {'connect_args': {'check_same_thread': False}}
            # In-memory SQLite must share one connection or every session sees an empty db
            if url in ('sqlite://', 'sqlite:///:memory:'):
                options['poolclass'] = StaticPool
            return create_engine(url, **options)

        try:
            return create_engine(
                url,
                pool_size=5,
                max_overflow=10,
                echo=False,
                **engine_options
            )
        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise RuntimeError(f"Failed to connect to database: {e}")

    def create_all(self):
        """Create all tables that don't exist yet (tests and local development)."""
        # Import models to ensure they're registered with Base
        from database import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    def drop_all(self):
        from database import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session_scope(self):
        """
        Context manager for a unit of work.

        Example:
            with database.session_scope() as session:
                houses = HouseRepository(session, homeowner_id).list_houses()
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def check_connection(self):
        """
        Verify that the database connection is working.
        Returns True if connection is successful, raises exception otherwise.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.debug("Database connection verified successfully")
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            raise RuntimeError(f"Cannot connect to database: {e}")

    def close(self):
        self.engine.dispose()
        logger.info("Database engine disposed")
