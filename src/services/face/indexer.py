import logging
from typing import Optional

from sqlalchemy.orm import Session

from src.models.photo import Photo
from src.repositories.face_repo import FaceRepository
from src.services.face.detector import FaceppDetector

logger = logging.getLogger(__name__)


class PhotoFaceIndexer:
    """
    Runs one detection pass over an event photo and stores its faces.

    Detection calls go through the same limiter as comparisons when one is
    given, since Face++ counts both against the credential's quota.
    """

    def __init__(self, detector: FaceppDetector, rate_limiter=None):
        self.detector = detector
        self.rate_limiter = rate_limiter

    def index_photo(self, db: Session, photo: Photo) -> int:
        """
        Detect faces on a photo and replace its stored faces.

        Returns:
            Number of faces stored (0 when none were found)
        """
        if self.rate_limiter is not None:
            self.rate_limiter.wait_turn()

        faces = self.detector.detect(photo.original_url)
        FaceRepository(db).replace_photo_faces(photo.id, faces)

        if faces:
            logger.info(f"Photo {photo.id}: stored {len(faces)} face(s)")
        else:
            logger.info(f"Photo {photo.id}: no face detected, photo will be skipped by matching")
        return len(faces)

    def index_photo_id(self, db: Session, photo_id) -> Optional[int]:
        photo = db.query(Photo).filter(Photo.id == photo_id).first()
        if photo is None:
            logger.warning(f"Photo {photo_id} not found, nothing to index")
            return None
        return self.index_photo(db, photo)
