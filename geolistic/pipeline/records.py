"""Tab-delimited GeoNames record parsing and positional field mapping."""

from __future__ import annotations

import csv
import sys
from typing import Iterable, Iterator

LOCATION_SCHEMA = (
    "geonameId",
    "name",
    "asciiName",
    "alternateNames",
    "latitude",
    "longitude",
    "featureClass",
    "featureCode",
    "country",
    "cc2",
    "admin1",
    "admin2",
    "admin3",
    "admin4",
    "population",
    "elevation",
    "dem",
    "timezone",
    "modDate",
)

COUNTRY_SCHEMA = (
    "iso",
    "iso3",
    "isoNumber",
    "fips",
    "country",
    "capital",
    "area",
    "population",
    "continent",
    "tld",
    "currencyCode",
    "currencyName",
    "phone",
    "postalCodeFormat",
    "postalCodeRegExp",
    "languages",
    "geonameId",
    "neighbours",
    "equivalentFipsCode",
)

FEATURE_CLASS_INDEX = LOCATION_SCHEMA.index("featureClass")
GEONAME_ID_INDEX = LOCATION_SCHEMA.index("geonameId")

# alternateNames regularly exceeds the csv module's 128 KiB default.
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))


def iter_records(lines: Iterable[str]) -> Iterator[list[str]]:
    """Yield the fields of every non-blank tab-separated line, in order.

    No quote or escape character is recognised and rows may carry any number
    of columns; a GeoNames dump is plain TSV.
    """
    reader = csv.reader(lines, delimiter="\t", quoting=csv.QUOTE_NONE, escapechar=None, strict=False)
    for row in reader:
        if not row:
            continue
        yield row


def map_fields(row: list[str], schema: tuple[str, ...]) -> dict[str, str | None]:
    return {name: (row[position] if position < len(row) else None) for position, name in enumerate(schema)}


def location_document(row: list[str]) -> dict[str, str | None]:
    document = map_fields(row, LOCATION_SCHEMA)
    document["location"] = f"{document['latitude']},{document['longitude']}"
    return document


def feature_class(row: list[str]) -> str | None:
    if FEATURE_CLASS_INDEX < len(row):
        return row[FEATURE_CLASS_INDEX]
    return None
