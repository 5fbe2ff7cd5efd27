# inventory_forecasting/db/connection.py
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from inventory_forecasting.config import config
from inventory_forecasting.exceptions import DatabaseError
from inventory_forecasting.models import Base


class DatabaseConnection:
    """Engine and session factory for the forecasting database."""

    _instance = None

    def __new__(cls, *args, **kwargs):
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._engine = None
            cls._instance._SessionLocal = None
        return cls._instance

    def __init__(self, url=None):
        """Initialize database connection."""
        if self._engine is None:
            self._initialize(url or config.get_db_url())

    def _initialize(self, url):
        try:
            self._engine = create_engine(
                url,
                echo=config.get_boolean('DATABASE', 'echo', False)
            )
            self._SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseError(f"Failed to connect to {url}: {str(e)}")

    @classmethod
    def reset(cls):
        """Dispose the engine so the next connection picks up new settings."""
        if cls._instance is not None and cls._instance._engine is not None:
            cls._instance._engine.dispose()
        cls._instance = None

    @property
    def engine(self):
        return self._engine

    def get_session(self) -> Session:
        return self._SessionLocal()

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def get_engine():
    return DatabaseConnection().engine


def get_session() -> Session:
    return DatabaseConnection().get_session()


@contextmanager
def session_scope():
    """Provide a transactional scope around a series of operations."""
    with DatabaseConnection().session_scope() as session:
        yield session


def create_all_tables(engine=None):
    """Create all tables that do not exist yet."""
    try:
        Base.metadata.create_all(bind=engine or get_engine())
    except SQLAlchemyError as e:
        raise DatabaseError(f"Table creation failed: {str(e)}")


def drop_all_tables(engine=None):
    """Drop all tables."""
    Base.metadata.drop_all(bind=engine or get_engine())
