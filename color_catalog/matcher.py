"""
Nearest catalog color matching.

Ranks candidate catalog colors against a query hex by perceptual
distance. Candidates are usually the colors of one or more series, in
CatalogIndex load order; that order breaks ties, so equal distances
always resolve to the earliest candidate.

Candidates carrying a precomputed Lab are compared using it directly;
the others are converted from hex (memoized in colorspace).
"""

import os
import logging
from typing import List, Optional, Sequence

import numpy as np

from .colorspace import hex_to_lab, lab_distances
from .models import Color, ColorMatch
from .scoring import distance_to_similarity

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = int(os.environ.get("MATCH_TOP_K", "8"))


def candidate_labs(candidates: Sequence[Color]) -> np.ndarray:
    """
    Stack candidate Lab values into an (n, 3) float64 array.

    Precomputed lab is used when present, otherwise hex is converted.
    """
    if not candidates:
        return np.zeros((0, 3), dtype=np.float64)
    rows = []
    for c in candidates:
        lab = c.lab if c.lab is not None else hex_to_lab(c.hex)
        rows.append((lab.l, lab.a, lab.b))
    return np.array(rows, dtype=np.float64)


def _distances(query_hex: str,
               candidates: Sequence[Color],
               labs: Optional[np.ndarray],
               metric: Optional[str]) -> np.ndarray:
    # Validates query_hex even when there is nothing to compare against
    query_lab = hex_to_lab(query_hex)
    if labs is None:
        labs = candidate_labs(candidates)
    elif len(labs) != len(candidates):
        raise ValueError(
            f"Got {len(labs)} Lab rows for {len(candidates)} candidates"
        )
    if len(labs) == 0:
        return np.zeros(0, dtype=np.float64)
    return lab_distances(query_lab, labs, metric)


def _to_match(query_hex: str, color: Color, distance: float) -> ColorMatch:
    return ColorMatch(
        query_hex=query_hex,
        catalog_color=color,
        similarity=distance_to_similarity(distance),
        distance=float(distance),
    )


def find_closest(query_hex: str,
                 candidates: Sequence[Color],
                 metric: str = None,
                 labs: np.ndarray = None) -> Optional[ColorMatch]:
    """
    Find the single closest candidate to a query color.

    Args:
        query_hex: Query color as 3- or 6-digit hex.
        candidates: Catalog colors in a stable order.
        metric: Distance metric override ('cie76' or 'ciede2000').
        labs: Optional precomputed candidate_labs(candidates).

    Returns:
        ColorMatch for the minimum-distance candidate (first one on
        ties), or None when candidates is empty.

    Raises:
        InvalidColorError: If query_hex is not a valid hex color.
    """
    distances = _distances(query_hex, candidates, labs, metric)
    if distances.size == 0:
        return None
    best = int(np.argmin(distances))
    match = _to_match(query_hex, candidates[best], distances[best])
    logger.debug(
        f"Closest to {query_hex}: {match.catalog_color.id} "
        f"({match.similarity}%) among {len(candidates)} candidates"
    )
    return match


def find_closest_k(query_hex: str,
                   candidates: Sequence[Color],
                   k: int = None,
                   metric: str = None,
                   labs: np.ndarray = None) -> List[ColorMatch]:
    """
    Rank candidates by distance to a query color and keep the first k.

    Ties keep candidate input order. k <= 0 yields an empty list; k
    larger than the candidate count returns every candidate ranked.

    Raises:
        InvalidColorError: If query_hex is not a valid hex color.
    """
    k = DEFAULT_TOP_K if k is None else k
    distances = _distances(query_hex, candidates, labs, metric)
    if k <= 0 or distances.size == 0:
        return []
    order = np.argsort(distances, kind="stable")[:k]
    return [_to_match(query_hex, candidates[i], distances[i]) for i in order]


def match_palette(query_hexes: Sequence[str],
                  candidates: Sequence[Color],
                  metric: str = None) -> List[ColorMatch]:
    """
    Match each query color to its closest candidate, keeping query order.

    Queries with no match (empty candidates) are omitted. Invalid query
    colors raise InvalidColorError rather than being skipped.
    """
    labs = candidate_labs(candidates)
    matches = []
    for query_hex in query_hexes:
        match = find_closest(query_hex, candidates, metric=metric, labs=labs)
        if match is not None:
            matches.append(match)
    return matches
