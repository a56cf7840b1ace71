from pathlib import Path

import requests

from conftest import JPEG_BYTES, PDF_BYTES, FakeSession, make_response

from hubble_birthday import downloads
from hubble_birthday.downloads import fetch_and_save

URL = "https://example.com/files/full.jpg"


def test_success_writes_file(tmp_path: Path):
    session = FakeSession({URL: [make_response(URL)]})
    destination = tmp_path / "full.jpg"

    assert fetch_and_save(session, URL, destination, backoff=0)
    assert destination.read_bytes() == JPEG_BYTES
    assert session.calls == [URL]


def test_pdf_payload_is_accepted(tmp_path: Path):
    session = FakeSession({URL: [make_response(URL, body=PDF_BYTES, content_type="application/pdf")]})
    assert fetch_and_save(session, URL, tmp_path / "image.pdf", backoff=0)


def test_retries_then_succeeds(tmp_path: Path):
    session = FakeSession(
        {
            URL: [
                requests.ConnectionError("reset by peer"),
                make_response(URL, status=503, body=b"busy", content_type="text/plain"),
                make_response(URL),
            ]
        }
    )
    assert fetch_and_save(session, URL, tmp_path / "full.jpg", max_attempts=3, backoff=0)
    assert len(session.calls) == 3


def test_exhausted_retries_write_nothing(tmp_path: Path, monkeypatch):
    sleeps = []
    monkeypatch.setattr(downloads.time, "sleep", sleeps.append)
    session = FakeSession({URL: [make_response(URL, status=500, body=b"oops", content_type="text/html")]})
    destination = tmp_path / "full.jpg"

    assert not fetch_and_save(session, URL, destination, max_attempts=3, backoff=0.5)
    assert len(session.calls) == 3
    assert sleeps == [0.5, 1.0]
    assert not destination.exists()
    assert list(tmp_path.iterdir()) == []


def test_html_error_page_with_ok_status_is_rejected(tmp_path: Path):
    page = make_response(URL, body=b"<html>Not found</html>", content_type="text/html; charset=utf-8")
    session = FakeSession({URL: [page]})
    destination = tmp_path / "full.jpg"

    assert not fetch_and_save(session, URL, destination, max_attempts=2, backoff=0)
    assert not destination.exists()


def test_failed_retry_keeps_previous_file_intact(tmp_path: Path):
    destination = tmp_path / "full.jpg"
    destination.write_bytes(b"previous")
    session = FakeSession({URL: [requests.Timeout("slow")]})

    assert not fetch_and_save(session, URL, destination, max_attempts=1, backoff=0)
    assert destination.read_bytes() == b"previous"
