"""Participant model."""
from sqlalchemy import Column, String, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base
from .base import TimestampMixin


class Participant(Base, TimestampMixin):
    """Event attendee identified by a selfie."""

    __tablename__ = 'participants'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)

    # Contact handle
    phone = Column(String(20), nullable=True)

    # Selfie
    selfie_url = Column(String(1024), nullable=True)
    selfie_face_token = Column(String(128), nullable=True)

    # Number of matched photos, written only by the match pipeline
    photo_count = Column(Integer, default=0, nullable=False)

    # Relationships
    event = relationship('Event', back_populates='participants')
    matches = relationship('ParticipantMatch', back_populates='participant', cascade='all, delete-orphan')

    def __repr__(self) -> str:
        return f'<Participant(id={self.id}, photo_count={self.photo_count})>'
