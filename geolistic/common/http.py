"""HTTP client with timeouts and opt-in retries for GeoNames downloads."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from geolistic.common.constants import USER_AGENT
from geolistic.common.errors import PipelineError
from geolistic.common.fs import ensure_dir

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
CHUNK_SIZE = 1024 * 128


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


@dataclass(frozen=True)
class RetryConfig:
    # A single attempt: retrying is the caller's decision.
    max_attempts: int = 1
    multiplier: float = 1.0
    max_wait: float = 30.0


class HttpRequestError(PipelineError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        # requests.Session is not thread-safe; download waves get one per worker.
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT, "Accept": "*/*"}

    def _raise_for_status_or_retry(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status {status} for {url}")
        if status >= 400:
            raise HttpRequestError(f"HTTP status {status} for {url}")

    def _get(self, url: str, *, stream: bool) -> requests.Response:
        try:
            response = self.session.request(
                method="GET",
                url=url,
                headers=self._headers(),
                timeout=(self.timeout.connect, self.timeout.read),
                stream=stream,
            )
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request to {url} failed: {exc}") from exc
        try:
            self._raise_for_status_or_retry(response, url)
        except HttpRequestError:
            response.close()
            raise
        return response

    def _with_retry(self, fn):
        return retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )(fn)

    def _download(self, url: str, target_path: Path) -> Path:
        ensure_dir(target_path.parent)
        response = self._get(url, stream=True)
        try:
            with target_path.open("wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        except requests.RequestException as exc:
            raise HttpRequestError(f"Transfer of {url} interrupted: {exc}") from exc
        finally:
            response.close()
        return target_path

    def download(self, url: str, target_path: Path) -> Path:
        """Stream ``url`` to ``target_path`` and return the written path."""
        return self._with_retry(lambda: self._download(url, target_path))()

    def _get_text(self, url: str) -> str:
        response = self._get(url, stream=False)
        # GeoNames dumps are UTF-8 but served without a charset.
        response.encoding = "utf-8"
        return response.text

    def get_text(self, url: str) -> str:
        return self._with_retry(lambda: self._get_text(url))()
