# demand_forecasting/db/connection.py
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from demand_forecasting.config import config
from demand_forecasting.exceptions import DependencyError
from demand_forecasting.models import Base


class DatabaseConnection:
    """SQLAlchemy engine and session factory for one database URL.

    Constructed once at process start and handed to every store.
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or config.get_db_url()
        if echo is None:
            echo = config.get_boolean('DATABASE', 'echo', False)

        try:
            self._engine = create_engine(self.url, echo=echo, **self._engine_options(self.url))
        except (SQLAlchemyError, ImportError) as e:
            raise DependencyError(f"Failed to initialize database connection: {str(e)}")

        self._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self._engine
        )

    @staticmethod
    def _engine_options(url: str) -> dict:
        if not url.startswith('sqlite'):
            return {'pool_pre_ping': True}

        options = {'connect_args': {'check_same_thread': False}}
        # In-memory databases only live as long as their single connection
        if url in ('sqlite://', 'sqlite:///:memory:'):
            options['poolclass'] = StaticPool
        return options

    @contextmanager
    def session_scope(self) -> Session:
        """Provide transaction scope for database operations."""
        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self):
        """Create all tables that do not exist yet."""
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            raise DependencyError(f"Failed to create tables: {str(e)}")

    def drop_all(self):
        """Drop all tables."""
        Base.metadata.drop_all(bind=self._engine)

    def test_connection(self):
        """Run a trivial query to make sure the database is reachable."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise DependencyError(f"Database connection test failed: {str(e)}")

    @property
    def engine(self):
        return self._engine

    def dispose(self):
        self._engine.dispose()
