"""
Color match engine.

Ties the pieces together for callers such as a scan or palette-import
screen:
    1. An image color report is reduced to unique hex swatches
    2. Candidates are scoped to selected series (or a brand)
    3. Each swatch is matched to its closest candidate

Whole-catalog lookups under cie76 go through a FAISS Lab index first,
then the candidate pool is re-ranked exactly by the matcher. Other
metrics rank the whole catalog against its cached Lab array.

The catalog and its FAISS index live in one immutable snapshot that
reload() replaces with a single assignment, so a query running during a
reload sees either the old or the new catalog, never a mix.
"""

import os
import logging
from typing import List, Mapping, NamedTuple, Optional, Sequence, Union

import faiss
import numpy as np

from .catalog import CatalogIndex
from .colorspace import CIE76, hex_to_lab, resolve_metric
from .index_builder import build_lab_index
from .matcher import DEFAULT_TOP_K, candidate_labs, find_closest_k, match_palette
from .models import Color, ColorMatch
from .swatches import ImageColorReport, extract_hex_palette

logger = logging.getLogger(__name__)

# Candidates fetched from FAISS per requested result before exact re-ranking.
CANDIDATE_POOL_FACTOR = int(os.environ.get("CANDIDATE_POOL_FACTOR", "4"))


class _Snapshot(NamedTuple):
    catalog: CatalogIndex
    colors: tuple
    labs: np.ndarray
    lab_index: faiss.Index


class MatchEngine:
    """
    Matches sampled colors against a CatalogIndex.

    Holds no per-query state; safe to share between threads.
    """

    def __init__(self, catalog: CatalogIndex, metric: str = None):
        """
        Args:
            catalog: Catalog to match against.
            metric: Distance metric for every query (defaults to
                    COLOR_DISTANCE_METRIC).
        """
        self.metric = resolve_metric(metric)
        self._snapshot = self._build_snapshot(catalog)

    @staticmethod
    def _build_snapshot(catalog: CatalogIndex) -> _Snapshot:
        colors = catalog.colors
        labs = candidate_labs(colors)
        return _Snapshot(catalog, colors, labs, build_lab_index(labs))

    @property
    def catalog(self) -> CatalogIndex:
        return self._snapshot.catalog

    def reload(self, catalog: CatalogIndex):
        """Swap in a new catalog; the FAISS index is rebuilt before the swap."""
        snapshot = self._build_snapshot(catalog)
        self._snapshot = snapshot
        logger.info(f"Catalog reloaded: {len(catalog)} colors")

    def candidates_for(self,
                       series_ids: Sequence[str] = None,
                       brand_id: str = None) -> List[Color]:
        """
        Candidate colors for a query scope.

        series_ids takes precedence over brand_id; with neither, every
        catalog color is a candidate.
        """
        catalog = self._snapshot.catalog
        if series_ids is not None:
            return catalog.colors_for_series_ids(series_ids)
        if brand_id is not None:
            return catalog.colors_by_brand_id(brand_id)
        return list(catalog.colors)

    def match_report(self,
                     report: Union[ImageColorReport, Mapping[str, object]],
                     series_ids: Sequence[str] = None,
                     brand_id: str = None) -> List[ColorMatch]:
        """
        Match the swatches of an image color report, in swatch order.

        Returns an empty list when the scope has no colors.
        """
        swatches = extract_hex_palette(report)
        candidates = self.candidates_for(series_ids, brand_id)
        matches = match_palette(swatches, candidates, metric=self.metric)
        logger.info(
            f"Matched {len(matches)}/{len(swatches)} swatches "
            f"against {len(candidates)} candidates"
        )
        return matches

    def suggest(self,
                query_hex: str,
                series_ids: Sequence[str] = None,
                brand_id: str = None,
                k: int = None) -> List[ColorMatch]:
        """Top-k closest colors within a scope (whole catalog when unscoped)."""
        if series_ids is None and brand_id is None:
            return self.search_catalog(query_hex, k)
        candidates = self.candidates_for(series_ids, brand_id)
        return find_closest_k(query_hex, candidates, k, metric=self.metric)

    def search_catalog(self, query_hex: str, k: int = None) -> List[ColorMatch]:
        """
        Top-k closest colors across the whole catalog.

        Pipeline (cie76):
            1. FAISS L2 search on Lab → k * CANDIDATE_POOL_FACTOR candidates
            2. Exact re-rank of the pool

        FAISS ranks by Euclidean Lab distance, which is cie76 itself. For
        other metrics the nearest color can fall outside that pool, so
        every catalog color is ranked instead.

        Raises:
            InvalidColorError: If query_hex is not a valid hex color.
        """
        k = DEFAULT_TOP_K if k is None else k
        snapshot = self._snapshot
        query = np.array([hex_to_lab(query_hex).as_array()], dtype=np.float32)
        if k <= 0 or snapshot.lab_index.ntotal == 0:
            return []

        if self.metric != CIE76:
            return find_closest_k(query_hex, snapshot.colors, k,
                                  metric=self.metric, labs=snapshot.labs)

        pool_size = min(snapshot.lab_index.ntotal, max(k, k * CANDIDATE_POOL_FACTOR))
        _, indices = snapshot.lab_index.search(query, pool_size)

        # Keep catalog order within the pool so ties resolve like a full scan
        pool = sorted(int(i) for i in indices[0] if i >= 0)
        candidates = [snapshot.colors[i] for i in pool]

        results = find_closest_k(query_hex, candidates, k, metric=self.metric,
                                 labs=snapshot.labs[pool])
        logger.debug(
            f"Catalog search {query_hex}: {len(candidates)} pooled → "
            f"{len(results)} results"
        )
        return results

    def closest(self,
                query_hex: str,
                series_ids: Sequence[str] = None,
                brand_id: str = None) -> Optional[ColorMatch]:
        """Single best match within a scope, or None when it is empty."""
        matches = self.suggest(query_hex, series_ids, brand_id, k=1)
        return matches[0] if matches else None
