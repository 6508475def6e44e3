"""
Services package initializer.

Re-exports the face matching services so callers can import from
`src.services` instead of deep module paths.
"""

from .face.pipeline import MatchPipeline, MatchResult, MatchReason, MatchedPhoto

__all__ = [
    "MatchPipeline",
    "MatchResult",
    "MatchReason",
    "MatchedPhoto",
]
