"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from geolistic.common.errors import InvalidArgumentError


@dataclass(frozen=True)
class ElasticTarget:
    index: str
    doc_type: str | None = None

    @property
    def path(self) -> str:
        if self.doc_type:
            return f"{self.index}/{self.doc_type}"
        return self.index


def parse_elastic_path(value: object) -> ElasticTarget:
    """Parse ``"index"`` or ``"index/type"`` into an :class:`ElasticTarget`."""
    if not isinstance(value, str):
        raise InvalidArgumentError("elastic path is not a valid string")

    parts = value.split("/")
    if len(parts) > 2:
        raise InvalidArgumentError(f"elastic path must be in the form of 'index' or 'index/type', got {value!r}")
    if any(not part for part in parts):
        raise InvalidArgumentError(f"Index or type should not be empty in elastic path {value!r}")

    if len(parts) == 2:
        return ElasticTarget(index=parts[0], doc_type=parts[1])
    return ElasticTarget(index=parts[0])


@dataclass(frozen=True)
class IndexResult:
    processed: int = 0
    added: int = 0

    def __add__(self, other: "IndexResult") -> "IndexResult":
        return IndexResult(processed=self.processed + other.processed, added=self.added + other.added)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class DownloadJob:
    url: str
    target_dir: Path
    extract: bool = False


@dataclass(frozen=True)
class CountryRecord:
    iso: str
    iso3: str
    iso_number: str
    fips: str
    country: str
    capital: str
    area: float
    population: int
    continent: str
    tld: str
    currency_code: str
    currency_name: str
    phone: str
    postal_code_format: str
    postal_code_regexp: str
    languages: list[str] = field(default_factory=list)
    geoname_id: str = ""
    neighbours: list[str] = field(default_factory=list)
    equivalent_fips_code: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
