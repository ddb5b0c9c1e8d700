"""
Catalog loading, Lab precomputation, and nearest-neighbor index building.

Catalog data ships as static JSON in one directory:
    - brands.json      — [{id, name, description?}]
    - series.json      — [{id, brandId, name, finishType?, pressureType?, description?}]
    - colors.json      — [{id, seriesId, hex, code, name?, lab?}], every color
    - *-colors.json    — per-brand source files for the same records

colors.json is the aggregate the app reads. The per-brand files are the
editable sources it is generated from; they are loaded, merged in
filename order, only when no colors.json exists.

precompute_lab() is the offline step that writes a rounded {l, a, b}
into each per-brand color record so matching can skip hex → Lab
conversion. build_lab_index() puts Lab vectors into a FAISS flat L2
index for whole-catalog candidate retrieval.
"""

import os
import json
import logging
from typing import List

import faiss
import numpy as np

from .catalog import CatalogIndex
from .colorspace import hex_to_lab, is_valid_hex
from .exceptions import CatalogIntegrityError

logger = logging.getLogger(__name__)

BRANDS_FILE = "brands.json"
SERIES_FILE = "series.json"
COLORS_FILE = "colors.json"
SOURCE_COLORS_SUFFIX = "-colors.json"

LAB_DECIMALS = 2


def _read_records(path: str) -> list:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise CatalogIntegrityError(f"{path}: expected a JSON array of records")
    return data


def color_files(data_dir: str) -> List[str]:
    """Per-brand color source files (*-colors.json) in data_dir, sorted by filename."""
    return [
        os.path.join(data_dir, f)
        for f in sorted(os.listdir(data_dir))
        if f.endswith(SOURCE_COLORS_SUFFIX)
    ]


def load_catalog(data_dir: str, strict: bool = True) -> CatalogIndex:
    """
    Load brands, series, and colors from data_dir and index them.

    Colors come from colors.json when present. Without it, every
    *-colors.json file is read and merged in filename order.

    Args:
        data_dir: Directory containing brands.json, series.json and
                  colors.json (or per-brand *-colors.json files).
        strict: Passed to CatalogIndex (reject vs. drop dangling ids).

    Returns:
        A fully built CatalogIndex.

    Raises:
        FileNotFoundError: If brands.json or series.json is missing.
        CatalogIntegrityError: On malformed or inconsistent records.
    """
    brands = _read_records(os.path.join(data_dir, BRANDS_FILE))
    series = _read_records(os.path.join(data_dir, SERIES_FILE))

    aggregate = os.path.join(data_dir, COLORS_FILE)
    if os.path.isfile(aggregate):
        files = [aggregate]
    else:
        files = color_files(data_dir)
        logger.info(f"No {COLORS_FILE} in {data_dir}, merging {len(files)} per-brand files")

    colors = []
    for path in files:
        colors.extend(_read_records(path))

    logger.info(
        f"Loading catalog from {data_dir}: {len(brands)} brands, "
        f"{len(series)} series, {len(colors)} colors in {len(files)} files"
    )
    return CatalogIndex.from_records(brands, series, colors, strict=strict)


def precompute_lab(data_dir: str, ndigits: int = LAB_DECIMALS) -> dict:
    """
    Add a precomputed "lab" to every color record with a valid hex.

    Rewrites each per-brand *-colors.json file in place; the aggregate
    colors.json is not touched. Records without a valid hex are left
    as they are.

    Returns:
        Dict with 'files', 'updated' and 'skipped' counts.
    """
    files = color_files(data_dir)
    updated = 0
    skipped = 0

    for path in files:
        records = _read_records(path)
        out = []
        for record in records:
            hex_value = record.get('hex') if isinstance(record, dict) else None
            if not is_valid_hex(hex_value):
                skipped += 1
                out.append(record)
                continue
            lab = hex_to_lab(hex_value).to_record(ndigits)
            out.append({**record, 'lab': lab})
            updated += 1

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(out, f, indent=2, ensure_ascii=False)
        logger.info(f"{os.path.basename(path)}: lab added to {len(out)} records")

    logger.info(
        f"Lab precompute done: {updated} colors updated, {skipped} skipped, "
        f"{len(files)} files"
    )
    return {"files": len(files), "updated": updated, "skipped": skipped}


def build_lab_index(labs: np.ndarray) -> faiss.Index:
    """
    Build an exact L2 FAISS index over an (n, 3) array of Lab vectors.

    Row i of the index is labs[i]. Distances returned by FAISS are
    squared CIE76 Delta E.
    """
    index = faiss.IndexFlatL2(3)
    if len(labs):
        vectors = np.ascontiguousarray(labs, dtype=np.float32).reshape(-1, 3)
        index.add(vectors)
    logger.info(f"Built FlatL2 Lab index: {index.ntotal} colors")
    return index
