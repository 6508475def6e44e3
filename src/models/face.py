"""Face model."""
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base


class Face(Base):
    """Face detected in a photo by one detection pass."""

    __tablename__ = 'face_tokens'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    photo_id = Column(Uuid, ForeignKey('photos.id', ondelete='CASCADE'), nullable=False, index=True)

    # Opaque Face++ token, regenerated on every detection pass
    face_token = Column(String(128), nullable=False)

    # {top, left, width, height} in pixels; ranking only, never identity
    face_rectangle = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    photo = relationship('Photo', back_populates='faces')

    @property
    def area(self) -> int:
        rect = self.face_rectangle or {}
        return int(rect.get('width', 0) or 0) * int(rect.get('height', 0) or 0)

    def __repr__(self) -> str:
        return f'<Face(id={self.id}, photo_id={self.photo_id})>'
