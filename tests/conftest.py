"""
Shared test configuration
"""
import os

# Settings are read once at import time: point them at SQLite and the
# in-process limiter before any `src` module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_BACKEND", "local")
os.environ.setdefault("FACEPP_API_KEY", "test-key")
os.environ.setdefault("FACEPP_API_SECRET", "test-secret")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.db.base import Base
import src.models  # noqa: F401  (registers every table on Base.metadata)


@pytest.fixture
def engine():
    """In-memory SQLite shared by every connection of the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create test database session."""
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.close()
