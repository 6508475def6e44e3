"""
Selfie Match Pipeline
=====================

Finds the photos of an event that contain a participant, starting from a
selfie URL:

    detect selfie face -> load event faces -> rank/cap -> rate-limited
    sequential compare -> threshold + per-photo dedupe -> persist -> count

Comparisons are issued one at a time. Face++ enforces its quota
per credential, and the shared rate limiter is the only thing keeping
concurrent runs inside it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Set, Tuple
from uuid import UUID
import logging
import threading
import time

from src.app.exceptions import MatchStoreError, MatchStoreUnavailable
from src.services.face.detector import DetectedFace
from src.services.face.ranker import CandidateFace, CandidateRanker

logger = logging.getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 60.0


# =============================================================================
# Collaborator interfaces
# =============================================================================

class FaceDetector(Protocol):
    def detect(self, image_url: str) -> List[DetectedFace]: ...


class FaceComparator(Protocol):
    def compare(self, face_token_a: str, face_token_b: str) -> float: ...


class RateLimiter(Protocol):
    def wait_turn(self) -> float: ...


class MatchStore(Protocol):
    def candidate_faces_for_event(self, event_id: UUID) -> List[CandidateFace]: ...

    def count_event_photos(self, event_id: UUID) -> int: ...

    def insert_match(self, participant_id: UUID, photo_id: UUID, confidence: float) -> bool: ...

    def set_participant_match_count(self, participant_id: UUID, count: int) -> None: ...

    def clear_participant_matches(self, participant_id: UUID) -> int: ...


# =============================================================================
# Results
# =============================================================================

class MatchReason(str, Enum):
    """Why a run ended without comparing anything (or early)."""
    NO_FACE_IN_SELFIE = "no-face-in-selfie"
    NO_PHOTOS = "no-photos"
    NO_CANDIDATE_FACES = "no-candidate-faces"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class MatchedPhoto:
    photo_id: UUID
    confidence: float


@dataclass
class MatchResult:
    success: bool
    match_count: int = 0
    matches: List[MatchedPhoto] = field(default_factory=list)
    reason: Optional[MatchReason] = None
    compared: int = 0


# =============================================================================
# Match decisions (pure)
# =============================================================================

@dataclass(frozen=True)
class MatchDecision:
    candidate: CandidateFace
    confidence: float

    @property
    def photo_id(self) -> UUID:
        return self.candidate.photo_id


class MatchDecider:
    """
    Folds (candidate, confidence) pairs into per-photo match decisions.

    A participant is matched against photos, not faces: the first candidate
    of a photo reaching the threshold settles that photo for the run.
    """

    def __init__(self, threshold: float = DEFAULT_MATCH_THRESHOLD):
        self.threshold = threshold
        self._settled: Set[UUID] = set()

    def is_settled(self, photo_id: UUID) -> bool:
        return photo_id in self._settled

    def consider(self, candidate: CandidateFace, confidence: float) -> Optional[MatchDecision]:
        if confidence < self.threshold or self.is_settled(candidate.photo_id):
            return None
        self._settled.add(candidate.photo_id)
        return MatchDecision(candidate=candidate, confidence=confidence)


def decide_matches(
    scored: Iterable[Tuple[CandidateFace, float]],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> List[MatchDecision]:
    """Match decisions for already-scored candidates, in input order."""
    decider = MatchDecider(threshold)
    decisions = []
    for candidate, confidence in scored:
        decision = decider.consider(candidate, confidence)
        if decision is not None:
            decisions.append(decision)
    return decisions


# =============================================================================
# Pipeline
# =============================================================================

class MatchPipeline:
    """
    Matches one participant's selfie against one event's photo faces.

    Safe to share between threads as long as the store is per-run: the only
    shared mutable state is inside the rate limiter.
    """

    def __init__(
        self,
        detector: FaceDetector,
        comparator: FaceComparator,
        store: MatchStore,
        rate_limiter: RateLimiter,
        ranker: Optional[CandidateRanker] = None,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
    ):
        self.detector = detector
        self.comparator = comparator
        self.store = store
        self.rate_limiter = rate_limiter
        self.ranker = ranker or CandidateRanker()
        self.threshold = threshold

    def run(
        self,
        participant_id: UUID,
        selfie_url: str,
        event_id: UUID,
        replace_existing: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> MatchResult:
        """
        Run one matching pass.

        Args:
            participant_id: Participant whose selfie is matched
            selfie_url: Selfie image URL reachable by Face++
            event_id: Event whose photos are searched
            replace_existing: Delete the participant's previous matches first
            cancel_event: Set it to stop before the next comparison

        Returns:
            MatchResult. Data store failures while loading candidates or
            writing the final count raise MatchStoreError; an unreachable
            store during the comparison loop raises MatchStoreUnavailable.
        """
        start_time = time.time()
        logger.info(f"Matching participant {participant_id} against event {event_id}")

        # 1. Selfie face
        selfie_face = self._detect_selfie_face(selfie_url)
        if selfie_face is None:
            logger.info(f"No face found in selfie of participant {participant_id}")
            return MatchResult(success=False, reason=MatchReason.NO_FACE_IN_SELFIE)

        # 2. Candidates
        candidates = self.store.candidate_faces_for_event(event_id)
        if not candidates:
            reason = (
                MatchReason.NO_PHOTOS
                if self.store.count_event_photos(event_id) == 0
                else MatchReason.NO_CANDIDATE_FACES
            )
            logger.info(f"Nothing to compare for event {event_id} ({reason.value})")
            return MatchResult(success=True, match_count=0, reason=reason)

        # 3. Rank and cap
        ranked = self.ranker.rank(candidates)
        logger.info(
            f"Comparing selfie against {len(ranked)}/{len(candidates)} candidate faces "
            f"(threshold={self.threshold})"
        )

        if replace_existing:
            removed = self.store.clear_participant_matches(participant_id)
            logger.info(f"Cleared {removed} previous matches of participant {participant_id}")

        # 4. Compare loop
        decider = MatchDecider(self.threshold)
        matches: List[MatchedPhoto] = []
        compared = 0
        cancelled = False

        for candidate in ranked:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            if decider.is_settled(candidate.photo_id):
                continue

            self.rate_limiter.wait_turn()
            confidence = self.comparator.compare(selfie_face.face_token, candidate.face_token)
            compared += 1

            decision = decider.consider(candidate, confidence)
            if decision is None:
                continue

            if self._persist(participant_id, decision):
                matches.append(MatchedPhoto(photo_id=decision.photo_id, confidence=decision.confidence))

        if cancelled:
            logger.info(
                f"Matching for participant {participant_id} cancelled after {compared} comparisons "
                f"({len(matches)} matches kept, count not updated)"
            )
            return MatchResult(
                success=True,
                match_count=len(matches),
                matches=matches,
                reason=MatchReason.CANCELLED,
                compared=compared,
            )

        # 5. Finalize: overwrite, never increment
        self.store.set_participant_match_count(participant_id, len(matches))

        logger.info(
            f"Participant {participant_id}: {len(matches)} matched photos, "
            f"{compared} comparisons in {time.time() - start_time:.1f}s"
        )
        return MatchResult(
            success=True,
            match_count=len(matches),
            matches=matches,
            compared=compared,
        )

    def _detect_selfie_face(self, selfie_url: str) -> Optional[DetectedFace]:
        # Detect calls count against the same Face++ quota as comparisons
        self.rate_limiter.wait_turn()
        faces = self.detector.detect(selfie_url)
        if not faces:
            return None
        if len(faces) > 1:
            logger.info(f"Selfie has {len(faces)} faces, using the largest one")
        return max(faces, key=lambda f: f.area)

    def _persist(self, participant_id: UUID, decision: MatchDecision) -> bool:
        """
        Write one match; a failed write is logged and dropped.

        MatchStoreUnavailable propagates: once the store is gone, the
        remaining rate-limited comparisons could not be saved either.
        """
        try:
            inserted = self.store.insert_match(participant_id, decision.photo_id, decision.confidence)
        except MatchStoreUnavailable:
            logger.error(f"Data store unavailable, aborting matching of participant {participant_id}")
            raise
        except MatchStoreError as e:
            logger.error(
                f"Could not save match participant={participant_id} photo={decision.photo_id}: {e}"
            )
            return False

        if not inserted:
            logger.debug(f"Match participant={participant_id} photo={decision.photo_id} already stored")
        return True
