"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from geolistic.common.errors import ConfigError

TOP_LEVEL_KEYS = {"data_path", "download_url", "parallel_downloads", "elastic", "indexing", "http"}
ELASTIC_KEYS = {"url", "path", "api_key"}
INDEXING_KEYS = {"buffer_records", "class_filters"}
HTTP_KEYS = {"connect_timeout", "read_timeout", "max_attempts"}


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str) -> None:
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(str(key) for key in unknown))
        raise ConfigError(f"Unknown config key in {ctx}: {unknown_str}")


def _assert_type(obj: dict, key: str, expected: type | tuple[type, ...], ctx: str) -> None:
    if key not in obj or obj[key] is None:
        return
    value = obj[key]
    # bool is an int subclass; never accept it for numeric settings.
    if isinstance(value, bool) and bool not in (expected if isinstance(expected, tuple) else (expected,)):
        raise ConfigError(f"{ctx}.{key} has invalid type bool")
    if not isinstance(value, expected):
        raise ConfigError(f"{ctx}.{key} has invalid type {type(value).__name__}")


def _assert_positive(obj: dict, key: str, ctx: str) -> None:
    if obj.get(key) is not None and obj[key] < 1:
        raise ConfigError(f"{ctx}.{key} must be at least 1")


def validate_config(cfg: dict) -> dict:
    cfg = _assert_mapping(cfg, "config")
    _assert_no_unknown_keys(cfg, TOP_LEVEL_KEYS, "config")
    _assert_type(cfg, "data_path", str, "config")
    _assert_type(cfg, "download_url", str, "config")
    _assert_type(cfg, "parallel_downloads", int, "config")
    _assert_positive(cfg, "parallel_downloads", "config")

    if cfg.get("download_url") is not None and "{filename}" not in cfg["download_url"]:
        raise ConfigError("config.download_url must contain a '{filename}' placeholder")
    if cfg.get("data_path") == "":
        raise ConfigError("config.data_path must not be empty")

    elastic = _assert_mapping(cfg.get("elastic") or {}, "elastic")
    _assert_no_unknown_keys(elastic, ELASTIC_KEYS, "elastic")
    for key in ELASTIC_KEYS:
        _assert_type(elastic, key, str, "elastic")

    indexing = _assert_mapping(cfg.get("indexing") or {}, "indexing")
    _assert_no_unknown_keys(indexing, INDEXING_KEYS, "indexing")
    _assert_type(indexing, "buffer_records", int, "indexing")
    _assert_positive(indexing, "buffer_records", "indexing")
    _assert_type(indexing, "class_filters", list, "indexing")
    for value in indexing.get("class_filters") or []:
        if not isinstance(value, str) or len(value) != 1:
            raise ConfigError(f"indexing.class_filters entries must be single characters, got {value!r}")

    http = _assert_mapping(cfg.get("http") or {}, "http")
    _assert_no_unknown_keys(http, HTTP_KEYS, "http")
    _assert_type(http, "connect_timeout", (int, float), "http")
    _assert_type(http, "read_timeout", (int, float), "http")
    _assert_type(http, "max_attempts", int, "http")
    _assert_positive(http, "max_attempts", "http")

    return cfg
