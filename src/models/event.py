"""Event model."""
from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base
from .base import TimestampMixin


class Event(Base, TimestampMixin):
    """Event whose photo set participants are matched against."""

    __tablename__ = 'events'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    event_code = Column(String(32), nullable=False, unique=True, index=True)

    # Relationships
    photos = relationship('Photo', back_populates='event', cascade='all, delete-orphan')
    participants = relationship('Participant', back_populates='event', cascade='all, delete-orphan')

    def __repr__(self) -> str:
        return f'<Event(id={self.id}, code={self.event_code})>'
