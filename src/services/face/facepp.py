"""
Face++ HTTP client
==================

Thin wrapper over the two Face++ v3 endpoints the matcher relies on:

- POST /detect  : image_url -> faces [{face_token, face_rectangle}]
- POST /compare : face_token1, face_token2 -> confidence

Face++ reports most failures with an `error_message` field (sometimes with a
non-2xx status). Every failure surfaces here as FaceppError; deciding what a
failure means (no face, zero confidence) is left to the adapters.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from src.app.exceptions import FaceppError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api-us.faceplusplus.com/facepp/v3"

# Face++ answers bursts with this error_message (HTTP 403) or a plain 429
CONCURRENCY_LIMIT_EXCEEDED = "CONCURRENCY_LIMIT_EXCEEDED"


class FacePlusPlusClient:
    """Face++ v3 REST client."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 1,
        retry_delay: float = 1.1,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

    # ---------- HTTP helpers ----------

    def _post(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        payload = {"api_key": self.api_key, "api_secret": self.api_secret, **data}

        attempt = 0
        while True:
            try:
                response = self.session.post(url, data=payload, timeout=self.timeout)
            except requests.RequestException as e:
                raise FaceppError(f"Face++ {path} request failed: {e}") from e

            try:
                body = response.json()
            except ValueError:
                body = None

            error_message = body.get("error_message") if isinstance(body, dict) else None

            if self._is_throttled(response.status_code, error_message) and attempt < self.max_retries:
                attempt += 1
                logger.warning(
                    f"Face++ {path} throttled (attempt {attempt}/{self.max_retries}), "
                    f"retrying in {self.retry_delay}s"
                )
                time.sleep(self.retry_delay)
                continue

            if error_message:
                raise FaceppError(
                    f"Face++ {path} error: {error_message}",
                    error_message=error_message,
                    status_code=response.status_code,
                )
            if not response.ok:
                raise FaceppError(
                    f"Face++ {path} HTTP {response.status_code}",
                    status_code=response.status_code,
                )
            if not isinstance(body, dict):
                raise FaceppError(
                    f"Face++ {path} returned a non-JSON body",
                    status_code=response.status_code,
                )
            return body

    @staticmethod
    def _is_throttled(status_code: int, error_message: Optional[str]) -> bool:
        if status_code == 429:
            return True
        return bool(error_message) and error_message.startswith(CONCURRENCY_LIMIT_EXCEEDED)

    # ---------- Endpoints ----------

    def detect(self, image_url: str) -> Dict[str, Any]:
        """Raw /detect response for a publicly reachable image URL."""
        return self._post(
            "/detect",
            {
                "image_url": image_url,
                "return_landmark": "0",
                "return_attributes": "none",
            },
        )

    def compare(self, face_token1: str, face_token2: str) -> Dict[str, Any]:
        """Raw /compare response for two face tokens."""
        return self._post(
            "/compare",
            {"face_token1": face_token1, "face_token2": face_token2},
        )
