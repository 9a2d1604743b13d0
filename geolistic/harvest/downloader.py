"""Wave-bounded parallel download of GeoNames country archives."""

from __future__ import annotations

import logging
import zipfile
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Iterable, Protocol
from urllib.parse import urlparse

from geolistic.common.constants import DEFAULT_DOWNLOAD_URL, DEFAULT_PARALLEL_DOWNLOADS
from geolistic.common.errors import DownloadError, InvalidArgumentError
from geolistic.common.fs import ensure_dir
from geolistic.common.http import HttpClient
from geolistic.common.logging import log_event
from geolistic.common.models import DownloadJob

WaveHook = Callable[[list[str]], None]


class Fetcher(Protocol):
    def fetch(self, job: DownloadJob) -> Path: ...


def _archive_filename(url: str) -> str:
    name = Path(urlparse(url).path).name
    if not name:
        raise InvalidArgumentError(f"Cannot derive a filename from {url}")
    return name


def extract_archive(archive_path: Path, target_dir: Path) -> list[Path]:
    try:
        with zipfile.ZipFile(archive_path) as zf:
            names = zf.namelist()
            zf.extractall(target_dir)
    except (zipfile.BadZipFile, OSError) as exc:
        raise DownloadError(f"Could not extract {archive_path}: {exc}") from exc
    return [target_dir / name for name in names]


class HttpArchiveFetcher:
    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def fetch(self, job: DownloadJob) -> Path:
        ensure_dir(job.target_dir)
        archive_path = job.target_dir / _archive_filename(job.url)
        self.client.download(job.url, archive_path)
        if job.extract:
            extract_archive(archive_path, job.target_dir)
        return archive_path


def _chunked(values: list[str], size: int):
    for i in range(0, len(values), size):
        yield values[i : i + size]


def _validate_parallelism(parallelism: object) -> int:
    if not isinstance(parallelism, int) or isinstance(parallelism, bool) or parallelism < 1:
        raise InvalidArgumentError(f"parallelism must be a positive integer, got {parallelism!r}")
    return parallelism


def download_all(
    urls: Iterable[str],
    target_dir: Path,
    fetcher: Fetcher,
    *,
    parallelism: int = DEFAULT_PARALLEL_DOWNLOADS,
    extract: bool = False,
    on_wave_start: WaveHook | None = None,
    on_wave_end: WaveHook | None = None,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> int:
    """Fetch ``urls`` in sequential waves of ``parallelism`` concurrent downloads.

    A wave always runs to completion. If any member failed, :class:`DownloadError`
    naming the whole wave is raised and no further wave starts; files written
    by the wave's successful members are left in place.

    Returns the number of files downloaded.
    """
    parallelism = _validate_parallelism(parallelism)
    pending = list(urls)
    if not pending:
        return 0

    files_downloaded = 0
    with ThreadPoolExecutor(max_workers=parallelism, thread_name_prefix="geolistic-download") as executor:
        for wave_number, wave in enumerate(_chunked(pending, parallelism), start=1):
            if on_wave_start is not None:
                on_wave_start(list(wave))
            log_event(
                logger,
                f"starting download wave {wave_number}",
                run_id=run_id,
                stage="download",
                event="WAVE_START",
                status="ok",
                wave=wave_number,
                files=list(wave),
            )

            futures = [executor.submit(fetcher.fetch, DownloadJob(url, target_dir, extract)) for url in wave]
            wait(futures)
            failures = [future.exception() for future in futures if future.exception() is not None]
            if failures:
                log_event(
                    logger,
                    f"download wave {wave_number} failed: {failures[0]}",
                    run_id=run_id,
                    stage="download",
                    event="DOWNLOAD_FAIL",
                    status="error",
                    wave=wave_number,
                    files=list(wave),
                    error_code=getattr(failures[0], "error_code", "DOWNLOAD_ERROR"),
                )
                raise DownloadError(f"Error downloading {', '.join(wave)}: {failures[0]}", urls=wave) from failures[0]

            files_downloaded += len(wave)
            log_event(
                logger,
                f"finished download wave {wave_number}",
                run_id=run_id,
                stage="download",
                event="WAVE_END",
                status="ok",
                wave=wave_number,
                files=list(wave),
            )
            if on_wave_end is not None:
                on_wave_end(list(wave))

    return files_downloaded


def country_archive_urls(countries: Iterable[object], url_template: str = DEFAULT_DOWNLOAD_URL) -> list[str]:
    """Validate every code up front and build the archive URL for each."""
    if isinstance(countries, str) or not isinstance(countries, Iterable):
        raise InvalidArgumentError("countries must be a list of two character strings")

    codes = []
    for country_code in countries:
        if not isinstance(country_code, str) or len(country_code) != 2:
            raise InvalidArgumentError(
                f"Not all country codes are two character strings, got {country_code!r}"
            )
        codes.append(country_code.upper())
    return [url_template.format(filename=f"{code}.zip") for code in codes]


def download_country_files(
    countries: Iterable[str],
    target_dir: Path,
    fetcher: Fetcher,
    *,
    url_template: str = DEFAULT_DOWNLOAD_URL,
    parallelism: int = DEFAULT_PARALLEL_DOWNLOADS,
    extract: bool = False,
    on_wave_start: WaveHook | None = None,
    on_wave_end: WaveHook | None = None,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> int:
    urls = country_archive_urls(countries, url_template)
    return download_all(
        urls,
        target_dir,
        fetcher,
        parallelism=parallelism,
        extract=extract,
        on_wave_start=on_wave_start,
        on_wave_end=on_wave_end,
        logger=logger,
        run_id=run_id,
    )
