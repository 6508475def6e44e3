from typing import List, Optional
from uuid import UUID
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict, field_validator


class MatchRunRequest(BaseModel):
    """Schema for running selfie matching right after a selfie upload."""
    participant_id: UUID
    event_id: UUID
    selfie_url: str = Field(..., min_length=1, description="Selfie URL reachable by Face++")
    threshold: Optional[float] = Field(None, ge=0.0, description="Override the configured match threshold")
    replace_existing: bool = Field(False, description="Delete previous matches before matching")

    @field_validator('selfie_url')
    def validate_selfie_url(cls, v: str):
        v = v.strip()
        if not v.startswith(('http://', 'https://')):
            raise ValueError("selfie_url must be an http(s) URL")
        return v


class MatchRefreshRequest(BaseModel):
    """Schema for re-running matching from the participant's stored selfie."""
    participant_id: UUID
    threshold: Optional[float] = Field(None, ge=0.0)


class MatchedPhotoResponse(BaseModel):
    photo_id: UUID
    confidence: float


class MatchRunResponse(BaseModel):
    """Outcome of one matching run."""
    success: bool
    match_count: int = Field(..., ge=0)
    matches: List[MatchedPhotoResponse] = []
    reason: Optional[str] = Field(
        None,
        description="no-face-in-selfie | no-photos | no-candidate-faces | cancelled"
    )
    compared: int = Field(0, ge=0, description="Number of comparisons issued")


class ParticipantMatchResponse(BaseModel):
    id: UUID
    participant_id: UUID
    photo_id: UUID
    confidence: float
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ParticipantMatchListResponse(BaseModel):
    participant_id: UUID
    photo_count: int
    matches: List[ParticipantMatchResponse]


class JobAccepted(BaseModel):
    message: str
    job_id: str
