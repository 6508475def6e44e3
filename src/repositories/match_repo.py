"""Match repository: the data store behind the selfie match pipeline."""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import asc, desc
from typing import List
from uuid import UUID
import logging

from src.app.exceptions import MatchStoreError
from src.repositories.base import BaseRepository
from src.models.face import Face
from src.models.match import ParticipantMatch
from src.models.participant import Participant
from src.models.photo import Photo
from src.services.face.detector import FaceRectangle
from src.services.face.ranker import CandidateFace

logger = logging.getLogger(__name__)


class MatchRepository(BaseRepository[ParticipantMatch]):
    """
    Repository for participant matches and the data they are computed from.

    Every SQLAlchemy failure is rolled back and re-raised as MatchStoreError
    (MatchStoreUnavailable when the connection itself is gone), which keeps
    the pipeline independent from the ORM.
    """

    def __init__(self, db: Session):
        super().__init__(ParticipantMatch, db)

    def candidate_faces_for_event(self, event_id: UUID) -> List[CandidateFace]:
        """
        Get every stored face of every photo of an event.

        Args:
            event_id: Event UUID

        Returns:
            CandidateFace list in upload order (photo, then face)
        """
        try:
            rows = (
                self.db.query(Face)
                .join(Photo, Face.photo_id == Photo.id)
                .filter(Photo.event_id == event_id)
                .order_by(asc(Photo.created_at), asc(Photo.id), asc(Face.created_at), asc(Face.id))
                .all()
            )
        except SQLAlchemyError as e:
            raise self.store_error(f"Could not load faces of event {event_id}", e) from e

        return [
            CandidateFace(
                face_id=face.id,
                photo_id=face.photo_id,
                face_token=face.face_token,
                rectangle=FaceRectangle.from_dict(face.face_rectangle),
            )
            for face in rows
        ]

    def count_event_photos(self, event_id: UUID) -> int:
        """Count photos uploaded to an event."""
        try:
            return self.db.query(Photo).filter(Photo.event_id == event_id).count()
        except SQLAlchemyError as e:
            raise self.store_error(f"Could not count photos of event {event_id}", e) from e

    def _match_exists(self, participant_id: UUID, photo_id: UUID) -> bool:
        return self.db.query(ParticipantMatch.id).filter(
            ParticipantMatch.participant_id == participant_id,
            ParticipantMatch.photo_id == photo_id,
        ).first() is not None

    def insert_match(self, participant_id: UUID, photo_id: UUID, confidence: float) -> bool:
        """
        Insert a match unless the (participant, photo) pair is already stored.

        Args:
            participant_id: Participant UUID
            photo_id: Photo UUID
            confidence: Face++ confidence, stored as-is

        Returns:
            True if a row was written, False if the pair already existed

        Raises:
            MatchStoreUnavailable: the database cannot be reached
            MatchStoreError: this row could not be written
        """
        message = f"Could not save match participant={participant_id} photo={photo_id}"
        try:
            if self._match_exists(participant_id, photo_id):
                return False
            self.db.add(ParticipantMatch(
                participant_id=participant_id,
                photo_id=photo_id,
                confidence=confidence,
            ))
            self.db.commit()
            return True
        except IntegrityError as e:
            self.db.rollback()
            # A concurrent run stored the same pair first
            try:
                if self._match_exists(participant_id, photo_id):
                    return False
            except SQLAlchemyError as recheck_error:
                raise self.store_error(message, recheck_error) from recheck_error
            raise MatchStoreError(f"{message}: {e}") from e
        except SQLAlchemyError as e:
            raise self.store_error(message, e) from e

    def set_participant_match_count(self, participant_id: UUID, count: int) -> None:
        """Overwrite the participant's denormalized matched-photo count."""
        try:
            updated = (
                self.db.query(Participant)
                .filter(Participant.id == participant_id)
                .update({Participant.photo_count: count}, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self.store_error(f"Could not update match count of participant {participant_id}", e) from e

        if not updated:
            logger.warning(f"Participant {participant_id} not found while updating match count")

    def clear_participant_matches(self, participant_id: UUID) -> int:
        """Delete every stored match of a participant."""
        try:
            deleted = (
                self.db.query(ParticipantMatch)
                .filter(ParticipantMatch.participant_id == participant_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted
        except SQLAlchemyError as e:
            raise self.store_error(f"Could not clear matches of participant {participant_id}", e) from e

    def list_participant_matches(self, participant_id: UUID) -> List[ParticipantMatch]:
        """Stored matches of a participant, best confidence first."""
        try:
            return (
                self.db.query(ParticipantMatch)
                .filter(ParticipantMatch.participant_id == participant_id)
                .order_by(desc(ParticipantMatch.confidence), asc(ParticipantMatch.created_at))
                .all()
            )
        except SQLAlchemyError as e:
            raise self.store_error(f"Could not load matches of participant {participant_id}", e) from e
