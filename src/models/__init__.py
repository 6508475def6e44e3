"""Import all models for Alembic."""
from .base import TimestampMixin
from .event import Event
from .photo import Photo
from .face import Face
from .participant import Participant
from .match import ParticipantMatch

__all__ = [
    "TimestampMixin",
    "Event",
    "Photo",
    "Face",
    "Participant",
    "ParticipantMatch",
]
