"""Participant to photo match model."""
from datetime import datetime
from sqlalchemy import Column, Float, ForeignKey, DateTime, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base


class ParticipantMatch(Base):
    """A participant's selfie matched a photo above the configured threshold."""

    __tablename__ = 'participant_matches'
    __table_args__ = (
        UniqueConstraint('participant_id', 'photo_id', name='uq_participant_matches_participant_photo'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    participant_id = Column(Uuid, ForeignKey('participants.id', ondelete='CASCADE'), nullable=False, index=True)
    photo_id = Column(Uuid, ForeignKey('photos.id', ondelete='CASCADE'), nullable=False, index=True)

    # Face++ confidence, stored verbatim
    confidence = Column(Float, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    participant = relationship('Participant', back_populates='matches')
    photo = relationship('Photo', back_populates='matches')

    def __repr__(self) -> str:
        return f'<ParticipantMatch(participant_id={self.participant_id}, photo_id={self.photo_id}, confidence={self.confidence})>'
