"""
Selfie Matching API Endpoints
=============================

- POST /matches/run          : synchronous matching after a selfie upload
- POST /matches/refresh      : background re-run ("refresh my matches")
- GET  /matches/participants/{participant_id} : stored matches
"""

from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.app.dependencies import get_match_pipeline
from src.db.base import get_db
from src.models.participant import Participant
from src.repositories.base import BaseRepository
from src.repositories.match_repo import MatchRepository
from src.schemas.match import (
    JobAccepted,
    MatchedPhotoResponse,
    MatchRefreshRequest,
    MatchRunRequest,
    MatchRunResponse,
    ParticipantMatchListResponse,
    ParticipantMatchResponse,
)
from src.services.face.pipeline import MatchPipeline, MatchResult
from src.tasks.workers.match_worker import run_match_task

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Helper Functions
# ============================================================================

def get_participant_or_404(participant_id: UUID, db: Session) -> Participant:
    participant = BaseRepository(Participant, db).get(participant_id)
    if not participant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Participant {participant_id} not found"
        )
    return participant


def serialize_result(result: MatchResult) -> MatchRunResponse:
    return MatchRunResponse(
        success=result.success,
        match_count=result.match_count,
        matches=[
            MatchedPhotoResponse(photo_id=m.photo_id, confidence=m.confidence)
            for m in result.matches
        ],
        reason=result.reason.value if result.reason else None,
        compared=result.compared,
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.post(
    "/run",
    response_model=MatchRunResponse,
    summary="Match a selfie against an event",
    description="Find the event photos containing the participant's face"
)
def run_match(
    request: MatchRunRequest,
    db: Session = Depends(get_db),
    pipeline: MatchPipeline = Depends(get_match_pipeline),
):
    """
    Run selfie matching synchronously.

    Declared as a plain function so FastAPI runs it in the threadpool: the
    comparison loop blocks on the rate limiter.

    A selfie without a detectable face is reported as success=false with
    reason "no-face-in-selfie"; an event without photos as success=true with
    match_count=0.
    """
    participant = get_participant_or_404(request.participant_id, db)
    if participant.event_id != request.event_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Participant does not belong to this event"
        )

    if request.threshold is not None:
        pipeline.threshold = request.threshold

    result = pipeline.run(
        request.participant_id,
        request.selfie_url,
        request.event_id,
        replace_existing=request.replace_existing,
    )
    return serialize_result(result)


@router.post(
    "/refresh",
    response_model=JobAccepted,
    summary="Refresh a participant's matches",
    description="Re-run matching in the background from the stored selfie",
    status_code=status.HTTP_202_ACCEPTED
)
def refresh_matches(
    request: MatchRefreshRequest,
    db: Session = Depends(get_db),
):
    participant = get_participant_or_404(request.participant_id, db)
    if not participant.selfie_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Participant has no selfie"
        )

    task = run_match_task.delay(str(participant.id), request.threshold)
    logger.info(f"Enqueued match refresh {task.id} for participant {participant.id}")

    return JobAccepted(
        message="Match refresh started",
        job_id=str(task.id),
    )


@router.get(
    "/participants/{participant_id}",
    response_model=ParticipantMatchListResponse,
    summary="List a participant's matched photos"
)
def list_participant_matches(
    participant_id: UUID,
    db: Session = Depends(get_db),
):
    participant = get_participant_or_404(participant_id, db)
    matches = MatchRepository(db).list_participant_matches(participant_id)
    return ParticipantMatchListResponse(
        participant_id=participant.id,
        photo_count=participant.photo_count,
        matches=[ParticipantMatchResponse.model_validate(m) for m in matches],
    )
