"""
Face++ client and adapter tests.

HTTP is never hit: the client gets a mocked requests session.
"""
import math
from unittest.mock import MagicMock

import pytest
import requests

from src.app.exceptions import FaceppError
from src.services.face.comparator import FaceppComparator
from src.services.face.detector import FaceppDetector
from src.services.face.facepp import FacePlusPlusClient


def make_response(status_code=200, body=None, invalid_json=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if invalid_json:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return FacePlusPlusClient(
        api_key="key",
        api_secret="secret",
        base_url="https://facepp.test/v3/",
        max_retries=1,
        retry_delay=0.0,
        session=session,
    )


# ============================================================================
# Client
# ============================================================================

def test_detect_posts_credentials_and_image_url(client, session):
    session.post.return_value = make_response(body={"faces": []})

    client.detect("https://cdn.test/photo.jpg")

    url = session.post.call_args.args[0]
    data = session.post.call_args.kwargs["data"]
    assert url == "https://facepp.test/v3/detect"
    assert data["api_key"] == "key"
    assert data["api_secret"] == "secret"
    assert data["image_url"] == "https://cdn.test/photo.jpg"
    assert data["return_landmark"] == "0"
    assert data["return_attributes"] == "none"


def test_compare_posts_both_tokens(client, session):
    session.post.return_value = make_response(body={"confidence": 88.1})

    body = client.compare("tok1", "tok2")

    data = session.post.call_args.kwargs["data"]
    assert session.post.call_args.args[0] == "https://facepp.test/v3/compare"
    assert data["face_token1"] == "tok1"
    assert data["face_token2"] == "tok2"
    assert body["confidence"] == 88.1


def test_error_message_raises_even_with_200(client, session):
    session.post.return_value = make_response(body={"error_message": "INVALID_FACE_TOKEN: tok1"})

    with pytest.raises(FaceppError) as exc_info:
        client.compare("tok1", "tok2")

    assert exc_info.value.error_message == "INVALID_FACE_TOKEN: tok1"
    assert exc_info.value.status_code == 200


def test_http_error_without_body_raises(client, session):
    session.post.return_value = make_response(status_code=502, invalid_json=True)

    with pytest.raises(FaceppError) as exc_info:
        client.detect("https://cdn.test/photo.jpg")

    assert exc_info.value.status_code == 502


def test_non_json_success_raises(client, session):
    session.post.return_value = make_response(invalid_json=True)

    with pytest.raises(FaceppError):
        client.detect("https://cdn.test/photo.jpg")


def test_transport_error_raises(client, session):
    session.post.side_effect = requests.ConnectionError("boom")

    with pytest.raises(FaceppError):
        client.compare("a", "b")


def test_throttled_request_is_retried_once(client, session, mocker):
    sleep = mocker.patch("src.services.face.facepp.time.sleep")
    session.post.side_effect = [
        make_response(status_code=403, body={"error_message": "CONCURRENCY_LIMIT_EXCEEDED"}),
        make_response(body={"confidence": 70.0}),
    ]

    body = client.compare("a", "b")

    assert body["confidence"] == 70.0
    assert session.post.call_count == 2
    sleep.assert_called_once_with(0.0)


def test_throttling_gives_up_after_max_retries(client, session, mocker):
    mocker.patch("src.services.face.facepp.time.sleep")
    session.post.return_value = make_response(status_code=429, body={"error_message": "CONCURRENCY_LIMIT_EXCEEDED"})

    with pytest.raises(FaceppError):
        client.compare("a", "b")
    assert session.post.call_count == 2


# ============================================================================
# Adapters
# ============================================================================

def test_detector_maps_faces_in_order():
    client = MagicMock()
    client.detect.return_value = {
        "faces": [
            {"face_token": "t1", "face_rectangle": {"top": 1, "left": 2, "width": 30, "height": 40}},
            {"face_token": "t2", "face_rectangle": {"top": 5, "left": 6, "width": 10, "height": 10}},
        ]
    }

    faces = FaceppDetector(client).detect("https://cdn.test/photo.jpg")

    assert [f.face_token for f in faces] == ["t1", "t2"]
    assert faces[0].area == 1200
    assert faces[0].rectangle.to_dict() == {"top": 1, "left": 2, "width": 30, "height": 40}


def test_detector_skips_faces_without_token():
    client = MagicMock()
    client.detect.return_value = {"faces": [{"face_rectangle": {"width": 9, "height": 9}}, {"face_token": "ok"}]}

    faces = FaceppDetector(client).detect("https://cdn.test/photo.jpg")

    assert [f.face_token for f in faces] == ["ok"]
    assert faces[0].area == 0


def test_detector_returns_no_faces_on_error():
    client = MagicMock()
    client.detect.side_effect = FaceppError("IMAGE_DOWNLOAD_TIMEOUT")

    assert FaceppDetector(client).detect("https://cdn.test/photo.jpg") == []


def test_detector_handles_missing_faces_key():
    client = MagicMock()
    client.detect.return_value = {"image_id": "x"}

    assert FaceppDetector(client).detect("https://cdn.test/photo.jpg") == []


@pytest.mark.parametrize("faces", [3, "t1", {"face_token": "t1"}])
def test_detector_returns_no_faces_when_faces_is_not_a_list(faces):
    client = MagicMock()
    client.detect.return_value = {"faces": faces}

    assert FaceppDetector(client).detect("https://cdn.test/photo.jpg") == []


@pytest.mark.parametrize("rectangle", ["garbage", 42, ["top", 1], {"width": "wide", "height": 3}])
def test_detector_keeps_face_with_malformed_rectangle(rectangle):
    client = MagicMock()
    client.detect.return_value = {"faces": [{"face_token": "t1", "face_rectangle": rectangle}]}

    faces = FaceppDetector(client).detect("https://cdn.test/photo.jpg")

    assert [f.face_token for f in faces] == ["t1"]
    assert faces[0].area == 0


def test_comparator_returns_confidence():
    client = MagicMock()
    client.compare.return_value = {"confidence": 73.412}

    assert FaceppComparator(client).compare("a", "b") == 73.412


@pytest.mark.parametrize("body", [{}, {"confidence": None}, {"confidence": "n/a"}, {"confidence": math.nan}])
def test_comparator_returns_zero_for_unusable_confidence(body):
    client = MagicMock()
    client.compare.return_value = body

    assert FaceppComparator(client).compare("a", "b") == 0.0


def test_comparator_returns_zero_on_error():
    client = MagicMock()
    client.compare.side_effect = FaceppError("INVALID_FACE_TOKEN")

    assert FaceppComparator(client).compare("a", "b") == 0.0
