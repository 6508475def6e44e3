"""
Match Celery Workers
====================

Background tasks for selfie matching and photo face detection.

- run_match_task: "refresh my matches", re-runs matching from the
  participant's stored selfie and replaces their previous matches
- detect_photo_faces_task: one detection pass over an uploaded photo

Only data store failures are retried; Face++ failures are already absorbed
by the adapters (no face / zero confidence).
"""

from typing import Any, Dict, Optional
from uuid import UUID
import logging
import time

from celery import Task
from sqlalchemy.orm import Session

from src.app.dependencies import build_match_pipeline, build_photo_indexer
from src.app.exceptions import MatchStoreError
from src.db.base import SessionLocal
from src.models.participant import Participant
from src.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


class MatchTask(Task):
    """Base task class with common functionality."""

    autoretry_for = (MatchStoreError,)
    retry_kwargs = {'max_retries': 3}
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True

    def get_db(self) -> Session:
        return SessionLocal()


@celery_app.task(
    bind=True,
    base=MatchTask,
    name='tasks.run_match',
    track_started=True
)
def run_match_task(
    self,
    participant_id: str,
    threshold: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Re-run matching for a participant from their stored selfie.

    Args:
        participant_id: Participant UUID
        threshold: Optional threshold override

    Returns:
        Match summary
    """
    db = self.get_db()
    start_time = time.time()

    try:
        participant = db.query(Participant).filter(Participant.id == UUID(participant_id)).first()
        if not participant:
            raise ValueError(f"Participant {participant_id} not found")
        if not participant.selfie_url:
            raise ValueError(f"Participant {participant_id} has no selfie")

        # Progress only exists for tasks running in a worker
        if self.request.id:
            self.update_state(
                state='PROCESSING',
                meta={'status': 'Matching selfie', 'participant_id': participant_id}
            )

        pipeline = build_match_pipeline(db, threshold=threshold)
        result = pipeline.run(
            participant.id,
            participant.selfie_url,
            participant.event_id,
            replace_existing=True,
        )

        logger.info(
            f"Refresh for participant {participant_id} done in {time.time() - start_time:.1f}s: "
            f"{result.match_count} matches"
        )
        return {
            'status': 'completed' if result.success else 'failed',
            'participant_id': participant_id,
            'success': result.success,
            'match_count': result.match_count,
            'reason': result.reason.value if result.reason else None,
            'compared': result.compared,
            'matches': [
                {'photo_id': str(m.photo_id), 'confidence': m.confidence}
                for m in result.matches
            ],
        }
    finally:
        db.close()


@celery_app.task(
    bind=True,
    base=MatchTask,
    name='tasks.detect_photo_faces',
    track_started=True
)
def detect_photo_faces_task(self, photo_id: str) -> Dict[str, Any]:
    """
    Detect faces on an event photo and replace its stored faces.

    Args:
        photo_id: Photo UUID

    Returns:
        Detection summary
    """
    db = self.get_db()
    try:
        faces_count = build_photo_indexer().index_photo_id(db, UUID(photo_id))
        if faces_count is None:
            return {'status': 'not_found', 'photo_id': photo_id, 'faces_count': 0}
        return {'status': 'completed', 'photo_id': photo_id, 'faces_count': faces_count}
    finally:
        db.close()
