"""Configuration loading and validation."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from geolistic.common.constants import (
    DEFAULT_BUFFER_RECORDS,
    DEFAULT_DOWNLOAD_URL,
    DEFAULT_ELASTIC_PATH,
    DEFAULT_ELASTIC_URL,
    DEFAULT_PARALLEL_DOWNLOADS,
)
from geolistic.common.fs import read_yaml
from geolistic.common.http import RetryConfig, TimeoutConfig
from geolistic.common.models import ElasticTarget, parse_elastic_path
from geolistic.common.schema import validate_config

ENV_OVERRIDES = {
    "DATAPATH": ("data_path",),
    "ELASTIC_URL": ("elastic", "url"),
    "ELASTIC_PATH": ("elastic", "path"),
    "ELASTIC_API_KEY": ("elastic", "api_key"),
}


@dataclass(frozen=True)
class GeolisticConfig:
    data_path: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    download_url: str = DEFAULT_DOWNLOAD_URL
    parallel_downloads: int = DEFAULT_PARALLEL_DOWNLOADS
    elastic_url: str = DEFAULT_ELASTIC_URL
    elastic_api_key: str | None = None
    target: ElasticTarget = field(default_factory=lambda: parse_elastic_path(DEFAULT_ELASTIC_PATH))
    buffer_records: int = DEFAULT_BUFFER_RECORDS
    class_filters: tuple[str, ...] = ()
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _env_overlay(env: Mapping[str, str]) -> dict:
    overlay: dict = {}
    for name, keys in ENV_OVERRIDES.items():
        value = env.get(name)
        if not value:
            continue
        node = overlay
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value
    return overlay


def normalise_elastic_url(url: str) -> str:
    url = url.strip().rstrip("/")
    if "://" not in url:
        return f"http://{url}"
    return url


def _build_config(raw: dict) -> GeolisticConfig:
    elastic = raw.get("elastic") or {}
    indexing = raw.get("indexing") or {}
    http = raw.get("http") or {}
    defaults = GeolisticConfig()

    data_path = Path(raw["data_path"]).expanduser() if raw.get("data_path") else defaults.data_path
    return GeolisticConfig(
        data_path=data_path,
        download_url=raw.get("download_url") or defaults.download_url,
        parallel_downloads=raw.get("parallel_downloads") or defaults.parallel_downloads,
        elastic_url=normalise_elastic_url(elastic.get("url") or defaults.elastic_url),
        elastic_api_key=elastic.get("api_key") or None,
        target=parse_elastic_path(elastic.get("path") or DEFAULT_ELASTIC_PATH),
        buffer_records=indexing.get("buffer_records") or defaults.buffer_records,
        class_filters=tuple(indexing.get("class_filters") or ()),
        timeout=TimeoutConfig(
            connect=float(http.get("connect_timeout") or defaults.timeout.connect),
            read=float(http.get("read_timeout") or defaults.timeout.read),
        ),
        retry=RetryConfig(max_attempts=http.get("max_attempts") or defaults.retry.max_attempts),
    )


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: dict | None = None,
) -> GeolisticConfig:
    """Resolve defaults, the YAML file, environment and CLI overrides, in that order."""
    raw: dict = {}
    if path is not None and path.exists():
        raw = read_yaml(path) or {}
    validate_config(raw)

    merged = _deep_merge(raw, _env_overlay(os.environ if env is None else env))
    if overrides:
        merged = _deep_merge(merged, overrides)
    return _build_config(validate_config(merged))
