"""Shared test fixtures for catalog and color matching tests."""

import json

import pytest

from color_catalog.catalog import CatalogIndex
from color_catalog.models import Color


BRAND_RECORDS = [
    {"id": "mtn", "name": "Montana", "description": {"en": "Barcelona paint", "es": "Pintura de Barcelona"}},
    {"id": "flame", "name": "Flame", "description": "Legacy description"},
    {"id": "empty", "name": "Empty Brand"},
]

SERIES_RECORDS = [
    {"id": "mtn-94", "brandId": "mtn", "name": "94", "finishType": "matte", "pressureType": "low"},
    {"id": "mtn-hardcore", "brandId": "mtn", "name": "Hardcore", "finishType": "gloss", "pressureType": "high"},
    {"id": "flame-orange", "brandId": "flame", "name": "Flame Orange"},
    {"id": "flame-blue", "brandId": "flame", "name": "Flame Blue", "finishType": "sparkly"},
]

COLOR_RECORDS = [
    {"id": "c1", "seriesId": "mtn-94", "hex": "#FFFFFF", "code": "RV-9010", "name": {"en": "White", "es": "Blanco"}},
    {"id": "c2", "seriesId": "mtn-94", "hex": "#000000", "code": "RV-9011", "name": {"es": "Negro"}},
    {"id": "c3", "seriesId": "mtn-94", "hex": "#E32119", "code": "RV-3020", "name": {"en": "Light Red"}},
    {"id": "c4", "seriesId": "mtn-hardcore", "hex": "#1a5fb4", "code": "RV-5005"},
    {"id": "c5", "seriesId": "mtn-hardcore", "hex": "#f5c211", "code": "RV-1021", "name": {"en": "Yellow"}},
    {"id": "c6", "seriesId": "flame-orange", "hex": "#808080", "code": "FO-700", "name": {"en": "Grey"}},
    {"id": "c7", "seriesId": "flame-orange", "hex": "#2ec27e", "code": "FO-600", "name": {"en": "Mint"}},
]


@pytest.fixture
def catalog_records():
    """Raw catalog records: 3 brands, 4 series, 7 colors."""
    return {
        "brands": [dict(r) for r in BRAND_RECORDS],
        "series": [dict(r) for r in SERIES_RECORDS],
        "colors": [dict(r) for r in COLOR_RECORDS],
    }


@pytest.fixture
def catalog(catalog_records):
    return CatalogIndex.from_records(
        catalog_records["brands"],
        catalog_records["series"],
        catalog_records["colors"],
    )


@pytest.fixture
def black_white_catalog():
    """One brand B1, one series S1 with pure white (W1) and pure black (B1C)."""
    return CatalogIndex.from_records(
        [{"id": "B1", "name": "Brand One"}],
        [{"id": "S1", "brandId": "B1", "name": "Series One"}],
        [
            {"id": "white", "seriesId": "S1", "hex": "#FFFFFF", "code": "W1"},
            {"id": "black", "seriesId": "S1", "hex": "#000000", "code": "B1C"},
        ],
    )


@pytest.fixture
def grey_candidates():
    """Near-grey, black and white candidates, in that order."""
    return [
        Color(id="a", series_id="s", hex="#7F7F7F", code="A"),
        Color(id="b", series_id="s", hex="#000000", code="B"),
        Color(id="c", series_id="s", hex="#FFFFFF", code="C"),
    ]


@pytest.fixture
def catalog_dir(tmp_path, catalog_records):
    """Catalog records written as JSON files, colors split across two files."""
    def dump(name, records):
        (tmp_path / name).write_text(json.dumps(records), encoding="utf-8")

    dump("brands.json", catalog_records["brands"])
    dump("series.json", catalog_records["series"])
    mtn = [c for c in catalog_records["colors"] if c["seriesId"].startswith("mtn")]
    flame = [c for c in catalog_records["colors"] if c["seriesId"].startswith("flame")]
    dump("a-mtn-colors.json", mtn)
    dump("b-flame-colors.json", flame)
    return tmp_path
