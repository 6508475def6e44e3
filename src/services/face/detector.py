from typing import Any, Dict, List
from dataclasses import dataclass
import logging

from src.app.exceptions import FaceppError
from src.services.face.facepp import FacePlusPlusClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaceRectangle:
    """Face bounding box in pixels, as returned by Face++."""
    top: int = 0
    left: int = 0
    width: int = 0
    height: int = 0

    @property
    def area(self) -> int:
        return self.width * self.height

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FaceRectangle":
        data = data or {}
        return cls(
            top=int(data.get("top", 0) or 0),
            left=int(data.get("left", 0) or 0),
            width=int(data.get("width", 0) or 0),
            height=int(data.get("height", 0) or 0),
        )

    def to_dict(self) -> Dict[str, int]:
        return {"top": self.top, "left": self.left, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class DetectedFace:
    """Face detection result."""
    face_token: str
    rectangle: FaceRectangle

    @property
    def area(self) -> int:
        return self.rectangle.area


class FaceppDetector:
    """
    Face++ /detect wrapper.

    Never raises for remote failures: a failed call is logged and reported as
    "no face found". Callers decide whether that is terminal (selfie) or just
    means the photo is skipped.
    """

    def __init__(self, client: FacePlusPlusClient):
        self.client = client

    def detect(self, image_url: str) -> List[DetectedFace]:
        """
        Detect faces in a publicly reachable image.

        Args:
            image_url: Image URL Face++ can download

        Returns:
            List of DetectedFace objects, in Face++ order (may be empty)
        """
        try:
            body = self.client.detect(image_url)
        except FaceppError as e:
            logger.error(f"Face detection failed for {image_url}: {e}")
            return []

        raw_faces = body.get("faces")
        if not isinstance(raw_faces, list):
            if raw_faces is not None:
                logger.warning(f"Face detection returned malformed faces for {image_url}: {raw_faces!r}")
            raw_faces = []

        faces = []
        for raw in raw_faces:
            if not isinstance(raw, dict):
                continue
            token = raw.get("face_token")
            if not token:
                continue
            raw_rectangle = raw.get("face_rectangle")
            try:
                rectangle = (
                    FaceRectangle.from_dict(raw_rectangle)
                    if isinstance(raw_rectangle, dict) else FaceRectangle()
                )
            except (TypeError, ValueError):
                rectangle = FaceRectangle()
            faces.append(DetectedFace(face_token=token, rectangle=rectangle))

        logger.debug(f"Detected {len(faces)} face(s) in {image_url}")
        return faces
