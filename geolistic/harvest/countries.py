"""GeoNames country catalog (countryInfo.txt) loading."""

from __future__ import annotations

from typing import Protocol

from geolistic.common.constants import COUNTRY_INFO_FILENAME, DEFAULT_DOWNLOAD_URL
from geolistic.common.models import CountryRecord
from geolistic.pipeline.records import COUNTRY_SCHEMA, iter_records, map_fields


class TextClient(Protocol):
    def get_text(self, url: str) -> str: ...


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item for item in value.split(",") if item]


def _safe_int(value: str | None) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError):
        return 0


def _safe_float(value: str | None) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _catalog_rows(client: TextClient, url_template: str) -> list[list[str]]:
    text = client.get_text(url_template.format(filename=COUNTRY_INFO_FILENAME))
    return [row for row in iter_records(text.splitlines()) if not row[0].startswith("#")]


def list_countries(
    client: TextClient,
    *,
    url_template: str = DEFAULT_DOWNLOAD_URL,
    all_columns: bool = False,
) -> list[str] | list[dict[str, str | None]]:
    """Return the ISO-2 code of every catalog country, or the full mapped rows."""
    rows = _catalog_rows(client, url_template)
    if all_columns:
        return [map_fields(row, COUNTRY_SCHEMA) for row in rows]
    return [row[0] for row in rows]


def to_country_record(mapped: dict[str, str | None]) -> CountryRecord:
    def text(key: str) -> str:
        return mapped.get(key) or ""

    return CountryRecord(
        iso=text("iso"),
        iso3=text("iso3"),
        iso_number=text("isoNumber"),
        fips=text("fips"),
        country=text("country"),
        capital=text("capital"),
        area=_safe_float(mapped.get("area")),
        population=_safe_int(mapped.get("population")),
        continent=text("continent"),
        tld=text("tld"),
        currency_code=text("currencyCode"),
        currency_name=text("currencyName"),
        phone=text("phone"),
        postal_code_format=text("postalCodeFormat"),
        postal_code_regexp=text("postalCodeRegExp"),
        languages=_split_list(mapped.get("languages")),
        geoname_id=text("geonameId"),
        neighbours=_split_list(mapped.get("neighbours")),
        equivalent_fips_code=text("equivalentFipsCode"),
    )


def get_countries(client: TextClient, *, url_template: str = DEFAULT_DOWNLOAD_URL) -> list[CountryRecord]:
    return [to_country_record(mapped) for mapped in list_countries(client, url_template=url_template, all_columns=True)]
