"""
Database setup and connection management for the tenancy gateway.

This module handles:
- SQLAlchemy engine creation
- Session management
- Connection pooling configuration
- Database initialization

The DatabaseManager is created by the app factory and stored on
app.state; request handlers obtain sessions through get_db().
"""

import logging
import os
from typing import Generator, Optional

import dotenv
from fastapi import Request
from sqlalchemy import create_engine, inspect, pool, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tenancy.models import Base

# Registers commerce tables on the shared metadata
import commerce.models  # noqa: F401

logger = logging.getLogger(__name__)

dotenv.load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///:memory:"


class DatabaseConfig:
    """Configuration for database connections"""

    def __init__(self, url: Optional[str] = None):
        self.url = url or os.getenv("TENANCY_DATABASE_URL", DEFAULT_DATABASE_URL)

        # Connection pooling (ignored for SQLite)
        self.pool_size = int(os.getenv("DB_POOL_SIZE", "10"))
        self.max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "20"))
        self.pool_recycle = int(os.getenv("DB_POOL_RECYCLE", "1500"))

        # Echo SQL for debugging (set False in production)
        self.echo = os.getenv("DB_ECHO", "False").lower() == "true"

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class DatabaseManager:
    """
    Manages the engine and session lifecycle for one application.

    Usage:
        db_manager = DatabaseManager(DatabaseConfig())
        db_manager.create_tables()
        for session in db_manager.get_session():
            ...
    """

    def __init__(self, config: DatabaseConfig = None):
        self.config = config or DatabaseConfig()
        self.engine = self._create_engine(self.config)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False,
        )
        logger.info(
            f"Tenancy database ready: sqlite={self.config.is_sqlite}, "
            f"pool_size={self.config.pool_size}"
        )

    @staticmethod
    def _create_engine(config: DatabaseConfig):
        """Create SQLAlchemy engine with pooling"""
        if config.is_sqlite:
            # A single shared connection keeps in-memory databases alive
            # across sessions and threads
            return create_engine(
                config.url,
                echo=config.echo,
                connect_args={"check_same_thread": False},
                poolclass=pool.StaticPool,
            )

        return create_engine(
            config.url,
            echo=config.echo,
            poolclass=pool.QueuePool,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            pool_timeout=30,
        )

    def create_tables(self):
        """Create all tables if they don't exist (idempotent)"""
        try:
            existing_tables = set(inspect(self.engine).get_table_names())
            Base.metadata.create_all(bind=self.engine, checkfirst=True)
            created = set(Base.metadata.tables) - existing_tables
            for table_name in sorted(created):
                logger.info(f"✓ Created table: {table_name}")
        except SQLAlchemyError as e:
            logger.error(f"❌ Error creating tables: {e}")
            raise

    def drop_tables(self):
        """
        Drop all tables. USE WITH CAUTION (for testing only).
        """
        logger.warning("DROPPING ALL TENANCY TABLES - THIS IS DESTRUCTIVE")
        Base.metadata.drop_all(bind=self.engine)

    def get_session(self) -> Generator[Session, None, None]:
        """
        Yield a session, commit on success and roll back on error.

        Yields:
            SQLAlchemy Session
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """Check if database is healthy"""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"❌ Database health check failed: {e}")
            return False

    def dispose(self):
        self.engine.dispose()


# ============ FastAPI Dependencies ============

def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency for request-scoped database sessions.

    Usage:
        @router.get("/api/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    manager: DatabaseManager = request.app.state.db_manager
    yield from manager.get_session()
