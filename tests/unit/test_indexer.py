from unittest.mock import MagicMock
from uuid import uuid4

from src.models import Event, Face, Photo
from src.services.face.detector import DetectedFace, FaceRectangle
from src.services.face.indexer import PhotoFaceIndexer


def make_photo(db_session):
    event = Event(name="Gala", event_code="GALA")
    db_session.add(event)
    db_session.commit()
    photo = Photo(event_id=event.id, original_url="https://cdn.test/gala-1.jpg")
    db_session.add(photo)
    db_session.commit()
    return photo


def test_index_photo_stores_detected_faces(db_session):
    photo = make_photo(db_session)
    detector = MagicMock()
    detector.detect.return_value = [
        DetectedFace("t1", FaceRectangle(width=10, height=10)),
        DetectedFace("t2", FaceRectangle(width=20, height=20)),
    ]
    limiter = MagicMock()

    count = PhotoFaceIndexer(detector, rate_limiter=limiter).index_photo(db_session, photo)

    assert count == 2
    detector.detect.assert_called_once_with("https://cdn.test/gala-1.jpg")
    limiter.wait_turn.assert_called_once()
    assert sorted(f.face_token for f in db_session.query(Face).all()) == ["t1", "t2"]


def test_reindexing_replaces_faces(db_session):
    photo = make_photo(db_session)
    detector = MagicMock()
    indexer = PhotoFaceIndexer(detector)

    detector.detect.return_value = [DetectedFace("old", FaceRectangle(width=5, height=5))]
    indexer.index_photo(db_session, photo)
    detector.detect.return_value = []
    count = indexer.index_photo(db_session, photo)

    assert count == 0
    assert db_session.query(Face).count() == 0


def test_index_unknown_photo_returns_none(db_session):
    detector = MagicMock()

    assert PhotoFaceIndexer(detector).index_photo_id(db_session, uuid4()) is None
    detector.detect.assert_not_called()
