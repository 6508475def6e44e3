"""Face repository for database operations."""
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Sequence
from uuid import UUID

from src.repositories.base import BaseRepository
from src.models.face import Face
from src.services.face.detector import DetectedFace


class FaceRepository(BaseRepository[Face]):
    """Repository for detected face rows (table `face_tokens`)."""

    def __init__(self, db: Session):
        super().__init__(Face, db)

    def get_by_photo(self, photo_id: UUID) -> List[Face]:
        return self.get_multi_by_field('photo_id', photo_id, order_by='created_at')

    def replace_photo_faces(self, photo_id: UUID, faces: Sequence[DetectedFace]) -> List[Face]:
        """
        Replace a photo's faces with the result of a new detection pass.

        Face++ tokens change on every detection, so the old rows are deleted
        and the new ones inserted in the same transaction: readers see either
        the previous pass or the new one, never a mix.

        Args:
            photo_id: Photo UUID
            faces: Faces returned by the detector

        Returns:
            Created Face rows
        """
        try:
            self.db.query(Face).filter(Face.photo_id == photo_id).delete(synchronize_session=False)
            rows = [
                Face(
                    photo_id=photo_id,
                    face_token=face.face_token,
                    face_rectangle=face.rectangle.to_dict(),
                )
                for face in faces
            ]
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self.store_error(f"Could not store faces of photo {photo_id}", e) from e
        return rows
