# src/app/dependencies.py
from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from .config import get_settings
from src.core.rate_limiter import IntervalRateLimiter, RedisIntervalRateLimiter, credential_key
from src.db.base import get_db
from src.repositories.match_repo import MatchRepository
from src.services.face.comparator import FaceppComparator
from src.services.face.detector import FaceppDetector
from src.services.face.facepp import FacePlusPlusClient
from src.services.face.indexer import PhotoFaceIndexer
from src.services.face.pipeline import MatchPipeline
from src.services.face.ranker import CandidateRanker

logger = logging.getLogger(__name__)


@lru_cache()
def get_facepp_client() -> FacePlusPlusClient:
    """Process-wide Face++ client (one HTTP session per process)."""
    settings = get_settings()
    if not settings.FACEPP_API_KEY or not settings.FACEPP_API_SECRET:
        logger.warning("FACEPP_API_KEY / FACEPP_API_SECRET are not set, Face++ calls will fail")
    return FacePlusPlusClient(
        api_key=settings.FACEPP_API_KEY,
        api_secret=settings.FACEPP_API_SECRET,
        base_url=settings.FACEPP_BASE_URL,
        timeout=settings.FACEPP_TIMEOUT,
        max_retries=settings.FACEPP_MAX_RETRIES,
        retry_delay=settings.FACEPP_RETRY_DELAY,
    )


@lru_cache()
def get_rate_limiter():
    """
    The one limiter of this process for the configured Face++ credential.

    Every pipeline run must use this instance (or the shared Redis key),
    otherwise concurrent runs would each believe they own the quota.
    """
    settings = get_settings()
    if settings.RATE_LIMIT_BACKEND == "redis":
        import redis

        client = redis.Redis.from_url(settings.REDIS_URL)
        return RedisIntervalRateLimiter(
            client,
            key=credential_key(settings.FACEPP_API_KEY),
            min_interval=settings.COMPARE_MIN_INTERVAL,
        )
    return IntervalRateLimiter(min_interval=settings.COMPARE_MIN_INTERVAL)


def build_match_pipeline(db: Session, threshold: Optional[float] = None) -> MatchPipeline:
    """Pipeline bound to one database session (one per request or task)."""
    settings = get_settings()
    client = get_facepp_client()
    return MatchPipeline(
        detector=FaceppDetector(client),
        comparator=FaceppComparator(client),
        store=MatchRepository(db),
        rate_limiter=get_rate_limiter(),
        ranker=CandidateRanker(cap=settings.MATCH_CANDIDATE_CAP),
        threshold=settings.MATCH_THRESHOLD if threshold is None else threshold,
    )


def build_photo_indexer() -> PhotoFaceIndexer:
    return PhotoFaceIndexer(FaceppDetector(get_facepp_client()), rate_limiter=get_rate_limiter())


def get_match_pipeline(db: Session = Depends(get_db)) -> MatchPipeline:
    return build_match_pipeline(db)
