"""
Face matching schemas package.

Request/response models of the matching and face detection endpoints.
"""

from .match import (
    MatchRunRequest,
    MatchRefreshRequest,
    MatchedPhotoResponse,
    MatchRunResponse,
    ParticipantMatchResponse,
    ParticipantMatchListResponse,
    JobAccepted,
)

__all__ = [
    "MatchRunRequest",
    "MatchRefreshRequest",
    "MatchedPhotoResponse",
    "MatchRunResponse",
    "ParticipantMatchResponse",
    "ParticipantMatchListResponse",
    "JobAccepted",
]
