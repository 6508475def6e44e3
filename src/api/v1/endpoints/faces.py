from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.db.base import get_db
from src.models.photo import Photo
from src.repositories.base import BaseRepository
from src.schemas.match import JobAccepted
from src.tasks.workers.match_worker import detect_photo_faces_task

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/photos/{photo_id}/detect",
    response_model=JobAccepted,
    summary="Detect faces in photo",
    description="Run a new detection pass on a photo, replacing its stored faces",
    status_code=status.HTTP_202_ACCEPTED
)
def detect_faces_in_photo(
    photo_id: UUID,
    db: Session = Depends(get_db),
):
    """
    Enqueue face detection for a photo.

    Called after upload and whenever stored face tokens must be regenerated.
    """
    photo = BaseRepository(Photo, db).get(photo_id)
    if not photo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Photo {photo_id} not found"
        )

    task = detect_photo_faces_task.delay(str(photo_id))

    logger.info(f"Enqueued face detection task {task.id} for photo {photo_id}")

    return JobAccepted(
        message="Face detection job started",
        job_id=str(task.id),
    )
