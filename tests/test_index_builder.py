"""Tests for JSON catalog loading, Lab precompute, and the FAISS Lab index."""

import json
import os

import numpy as np
import pytest

from color_catalog.colorspace import hex_to_lab
from color_catalog.exceptions import CatalogIntegrityError, DanglingReferenceError
from color_catalog.index_builder import build_lab_index, color_files, load_catalog, precompute_lab
from color_catalog.matcher import candidate_labs


class TestLoadCatalog:
    """Tests for loading catalog JSON from a directory."""

    def test_loads_all_files(self, catalog_dir):
        catalog = load_catalog(str(catalog_dir))
        assert len(catalog) == 7
        assert catalog.color_count_by_brand == {"mtn": 5, "flame": 2, "empty": 0}

    def test_color_files_sorted(self, catalog_dir):
        names = [os.path.basename(p) for p in color_files(str(catalog_dir))]
        assert names == ["a-mtn-colors.json", "b-flame-colors.json"]

    def test_colors_keep_file_order(self, catalog_dir):
        catalog = load_catalog(str(catalog_dir))
        assert [c.id for c in catalog.colors] == ["c1", "c2", "c3", "c4", "c5", "c6", "c7"]

    def test_missing_brands_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(str(tmp_path))

    def test_non_array_file(self, catalog_dir):
        (catalog_dir / "brands.json").write_text('{"id": "x"}', encoding="utf-8")
        with pytest.raises(CatalogIntegrityError, match="array"):
            load_catalog(str(catalog_dir))

    def test_aggregate_file_preferred(self, catalog_dir, catalog_records):
        aggregate = list(reversed(catalog_records["colors"]))
        (catalog_dir / "colors.json").write_text(json.dumps(aggregate), encoding="utf-8")
        catalog = load_catalog(str(catalog_dir))
        assert len(catalog) == 7
        assert [c.id for c in catalog.colors] == ["c7", "c6", "c5", "c4", "c3", "c2", "c1"]

    def test_aggregate_not_a_source_file(self, catalog_dir, catalog_records):
        (catalog_dir / "colors.json").write_text(json.dumps(catalog_records["colors"]), encoding="utf-8")
        names = [os.path.basename(p) for p in color_files(str(catalog_dir))]
        assert names == ["a-mtn-colors.json", "b-flame-colors.json"]

    def test_dangling_strict_and_lenient(self, catalog_dir):
        extra = [{"id": "orphan", "seriesId": "gone", "hex": "#010101", "code": "O"}]
        (catalog_dir / "z-orphan-colors.json").write_text(json.dumps(extra), encoding="utf-8")
        with pytest.raises(DanglingReferenceError):
            load_catalog(str(catalog_dir))
        assert len(load_catalog(str(catalog_dir), strict=False)) == 7


class TestPrecomputeLab:
    """Tests for writing precomputed Lab into color files."""

    def test_adds_lab_to_every_color(self, catalog_dir):
        stats = precompute_lab(str(catalog_dir))
        assert stats == {"files": 2, "updated": 7, "skipped": 0}

        records = json.loads((catalog_dir / "a-mtn-colors.json").read_text(encoding="utf-8"))
        assert all(set(r["lab"]) == {"l", "a", "b"} for r in records)
        assert records[0]["lab"]["l"] == pytest.approx(100.0, abs=0.1)

    def test_loaded_lab_matches_conversion(self, catalog_dir):
        precompute_lab(str(catalog_dir))
        catalog = load_catalog(str(catalog_dir))
        for color in catalog.colors:
            expected = hex_to_lab(color.hex)
            assert color.lab.l == pytest.approx(expected.l, abs=0.01)
            assert color.lab.a == pytest.approx(expected.a, abs=0.01)
            assert color.lab.b == pytest.approx(expected.b, abs=0.01)

    def test_invalid_hex_records_untouched(self, catalog_dir):
        bad = [{"id": "bad", "seriesId": "mtn-94", "hex": "#nothex", "code": "B"}]
        (catalog_dir / "c-bad-colors.json").write_text(json.dumps(bad), encoding="utf-8")
        stats = precompute_lab(str(catalog_dir))
        assert stats["skipped"] == 1
        records = json.loads((catalog_dir / "c-bad-colors.json").read_text(encoding="utf-8"))
        assert records == bad

    def test_idempotent(self, catalog_dir):
        precompute_lab(str(catalog_dir))
        first = (catalog_dir / "b-flame-colors.json").read_text(encoding="utf-8")
        precompute_lab(str(catalog_dir))
        assert (catalog_dir / "b-flame-colors.json").read_text(encoding="utf-8") == first

    def test_aggregate_file_untouched(self, catalog_dir, catalog_records):
        aggregate = json.dumps(catalog_records["colors"])
        (catalog_dir / "colors.json").write_text(aggregate, encoding="utf-8")
        stats = precompute_lab(str(catalog_dir))
        assert stats == {"files": 2, "updated": 7, "skipped": 0}
        assert (catalog_dir / "colors.json").read_text(encoding="utf-8") == aggregate


class TestBuildLabIndex:
    """Tests for the FAISS Lab index."""

    def test_one_vector_per_color(self, catalog):
        index = build_lab_index(candidate_labs(catalog.colors))
        assert index.ntotal == 7
        assert index.d == 3

    def test_empty(self):
        assert build_lab_index(np.zeros((0, 3))).ntotal == 0
