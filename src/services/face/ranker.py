from dataclasses import dataclass
from typing import List, Optional, Sequence
from uuid import UUID

from src.services.face.detector import FaceRectangle


@dataclass(frozen=True)
class CandidateFace:
    """A stored face of some photo in the target event."""
    face_id: UUID
    photo_id: UUID
    face_token: str
    rectangle: FaceRectangle

    @property
    def area(self) -> int:
        return self.rectangle.area


class CandidateRanker:
    """
    Orders candidates so the most prominent faces are compared first.

    Bigger faces are more likely to be the subject of a photo and give more
    reliable comparisons. With a cap, only that many candidates are compared
    in a run; the rest wait for a later re-run.
    """

    def __init__(self, cap: Optional[int] = None):
        if cap is not None and cap < 0:
            raise ValueError("cap must be >= 0")
        # 0 means no cap
        self.max_candidates = cap or None

    def cap(self, n: Optional[int]) -> "CandidateRanker":
        return CandidateRanker(cap=n)

    def rank(self, candidates: Sequence[CandidateFace]) -> List[CandidateFace]:
        # sorted() is stable: equal areas keep the store's order
        ranked = sorted(candidates, key=lambda c: c.area, reverse=True)
        if self.max_candidates is not None:
            ranked = ranked[:self.max_candidates]
        return ranked
