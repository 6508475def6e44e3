"""
Integration test configuration
"""
import pytest
from unittest.mock import MagicMock
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from src.app.dependencies import get_match_pipeline
from src.app.main import app
from src.core.rate_limiter import IntervalRateLimiter
from src.db.base import get_db
from src.repositories.match_repo import MatchRepository
from src.services.face.pipeline import MatchPipeline


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def detector():
    """Face++ detector stand-in; tests set `detect.return_value`."""
    return MagicMock()


@pytest.fixture
def comparator():
    """Face++ comparator stand-in; tests set `compare.side_effect`."""
    comparator = MagicMock()
    comparator.compare.return_value = 0.0
    return comparator


@pytest.fixture
def client(session_factory, detector, comparator):
    """FastAPI test client with dependency overrides."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def override_get_match_pipeline(db: Session = Depends(get_db)):
        return MatchPipeline(
            detector=detector,
            comparator=comparator,
            store=MatchRepository(db),
            rate_limiter=IntervalRateLimiter(min_interval=0),
            threshold=60.0,
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_match_pipeline] = override_get_match_pipeline

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
