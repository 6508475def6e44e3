import logging
import math

from src.app.exceptions import FaceppError
from src.services.face.facepp import FacePlusPlusClient

logger = logging.getLogger(__name__)


class FaceppComparator:
    """
    Face++ /compare wrapper.

    The confidence is returned on Face++'s own scale (roughly 0-100) and is
    treated as an opaque similarity signal. Any failure yields 0.0 so that
    one bad response never aborts a batch of comparisons.
    """

    def __init__(self, client: FacePlusPlusClient):
        self.client = client

    def compare(self, face_token_a: str, face_token_b: str) -> float:
        try:
            body = self.client.compare(face_token_a, face_token_b)
        except FaceppError as e:
            logger.warning(f"Face comparison failed ({face_token_a} vs {face_token_b}): {e}")
            return 0.0

        try:
            confidence = float(body.get("confidence"))
        except (TypeError, ValueError):
            logger.warning(f"Face comparison returned no usable confidence: {body!r}")
            return 0.0

        if math.isnan(confidence):
            return 0.0
        return confidence
