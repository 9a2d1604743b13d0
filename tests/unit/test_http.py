from __future__ import annotations

import threading
from pathlib import Path

import pytest
import requests

from geolistic.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError


class FakeResponse:
    def __init__(self, status_code: int, body: bytes = b"", chunks: list[bytes] | None = None):
        self.status_code = status_code
        self.body = body
        self.chunks = chunks or [body]
        self.encoding = None
        self.closed = False

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding or "latin-1")

    def iter_content(self, chunk_size: int):
        yield from self.chunks

    def close(self):
        self.closed = True


def test_get_text_decodes_utf8(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, "Åland\n".encode("utf-8")))

    assert client.get_text("https://example.com/countryInfo.txt") == "Åland\n"


def test_download_streams_chunks_to_disk(monkeypatch, tmp_path: Path):
    client = HttpClient()
    response = FakeResponse(200, chunks=[b"PK", b"", b"\x03\x04"])
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: response)

    path = client.download("https://example.com/NO.zip", tmp_path / "nested" / "NO.zip")

    assert path.read_bytes() == b"PK\x03\x04"
    assert response.closed


def test_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503))

    with pytest.raises(RetryableHttpError):
        client.get_text("https://example.com")


def test_retry_is_opt_in(monkeypatch):
    calls = []

    def flaky(**_kwargs):
        calls.append(1)
        return FakeResponse(503) if len(calls) == 1 else FakeResponse(200, b"ok")

    client = HttpClient(retry=RetryConfig(max_attempts=2, multiplier=0.01, max_wait=0.01))
    monkeypatch.setattr(client.session, "request", flaky)

    assert client.get_text("https://example.com") == "ok"
    assert len(calls) == 2


def test_client_error_is_not_retried(monkeypatch):
    calls = []

    def missing(**_kwargs):
        calls.append(1)
        return FakeResponse(404)

    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.01, max_wait=0.01))
    monkeypatch.setattr(client.session, "request", missing)

    with pytest.raises(HttpRequestError, match="404"):
        client.get_text("https://example.com/XX.zip")
    assert len(calls) == 1


def test_transport_failure_becomes_http_error(monkeypatch):
    def refuse(**_kwargs):
        raise requests.ConnectionError("refused")

    client = HttpClient()
    monkeypatch.setattr(client.session, "request", refuse)

    with pytest.raises(HttpRequestError, match="refused"):
        client.get_text("https://example.com")


def test_error_status_releases_streamed_response(monkeypatch, tmp_path: Path):
    client = HttpClient()
    response = FakeResponse(404)
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: response)

    with pytest.raises(HttpRequestError, match="404"):
        client.download("https://example.com/XX.zip", tmp_path / "XX.zip")

    assert response.closed
    assert not (tmp_path / "XX.zip").exists()


def test_each_thread_gets_its_own_session():
    client = HttpClient()
    seen = []
    workers = [threading.Thread(target=lambda: seen.append(client.session)) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert client.session is client.session
    assert len({id(session) for session in [client.session, *seen]}) == 3

    client.close()
    assert client._sessions == []
