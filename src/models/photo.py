"""Photo model."""
from sqlalchemy import Column, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base
from .base import TimestampMixin


class Photo(Base, TimestampMixin):
    """Event photo uploaded by the photographer."""

    __tablename__ = 'photos'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)

    # Storage info
    original_url = Column(String(1024), nullable=False)
    thumbnail_url = Column(String(1024), nullable=True)

    # Relationships
    event = relationship('Event', back_populates='photos')
    faces = relationship('Face', back_populates='photo', cascade='all, delete-orphan')
    matches = relationship('ParticipantMatch', back_populates='photo', cascade='all, delete-orphan')

    def __repr__(self) -> str:
        return f'<Photo(id={self.id}, event_id={self.event_id})>'
