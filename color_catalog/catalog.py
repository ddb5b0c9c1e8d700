"""
Read-only brand → series → color index.

Built once from catalog records, then shared by any number of readers.
All lookups go through pre-built dicts; color counts per series and per
brand are computed by two linear passes at construction time.

Integrity policy: by default a duplicate id or a dangling parent id
(series → brand, color → series) fails construction with a
CatalogIntegrityError naming the offending record. With strict=False
dangling records are dropped from every table and aggregate instead,
with one warning logged per record.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .exceptions import DanglingReferenceError, DuplicateIdError
from .models import Brand, BrandWithCount, Color, Series, SeriesWithCount

logger = logging.getLogger(__name__)


def _index_unique(records, kind: str) -> dict:
    table = {}
    for record in records:
        if record.id in table:
            raise DuplicateIdError(kind, record.id)
        table[record.id] = record
    return table


class CatalogIndex:
    """
    Immutable lookup tables over a spray-paint color catalog.

    Series and colors keep the order they were loaded in; that order is
    the tie-break order used by color matching.
    """

    def __init__(self,
                 brands: Iterable[Brand],
                 series: Iterable[Series],
                 colors: Iterable[Color],
                 strict: bool = True):
        """
        Build the index.

        Args:
            brands: Brand entities.
            series: Series entities; each brand_id must name a brand.
            colors: Color entities; each series_id must name a series.
            strict: Raise on dangling references (True) or drop the
                    offending records (False).

        Raises:
            DuplicateIdError: Two brands, series or colors share an id.
            DanglingReferenceError: In strict mode, a parent id is missing.
        """
        self.strict = strict
        self._brands: Dict[str, Brand] = _index_unique(brands, "brand")

        kept_series = []
        for s in series:
            if s.brand_id not in self._brands:
                self._reject(DanglingReferenceError("Series", s.id, "brand", s.brand_id))
                continue
            kept_series.append(s)
        self._series: Dict[str, Series] = _index_unique(kept_series, "series")

        kept_colors = []
        for c in colors:
            if c.series_id not in self._series:
                self._reject(DanglingReferenceError("Color", c.id, "series", c.series_id))
                continue
            kept_colors.append(c)
        self._colors: Dict[str, Color] = _index_unique(kept_colors, "color")

        self._series_by_brand: Dict[str, List[Series]] = {b: [] for b in self._brands}
        for s in self._series.values():
            self._series_by_brand[s.brand_id].append(s)

        self._colors_by_series: Dict[str, List[Color]] = {s: [] for s in self._series}
        for c in self._colors.values():
            self._colors_by_series[c.series_id].append(c)

        # Pass 1: colors -> per-series counts
        self._count_by_series: Dict[str, int] = {s: 0 for s in self._series}
        for c in self._colors.values():
            self._count_by_series[c.series_id] += 1

        # Pass 2: series -> per-brand counts
        self._count_by_brand: Dict[str, int] = {b: 0 for b in self._brands}
        for s in self._series.values():
            self._count_by_brand[s.brand_id] += self._count_by_series[s.id]

        logger.info(
            f"Catalog indexed: {len(self._brands)} brands, "
            f"{len(self._series)} series, {len(self._colors)} colors"
        )

    def _reject(self, error: DanglingReferenceError):
        if self.strict:
            raise error
        logger.warning(f"Excluding from catalog: {error}")

    @classmethod
    def from_records(cls,
                     brands: Iterable[Mapping],
                     series: Iterable[Mapping],
                     colors: Iterable[Mapping],
                     strict: bool = True) -> "CatalogIndex":
        """Build from raw camelCase JSON records (see Brand.from_record etc.)."""
        return cls(
            [Brand.from_record(r) for r in brands],
            [Series.from_record(r) for r in series],
            [Color.from_record(r) for r in colors],
            strict=strict,
        )

    def __len__(self) -> int:
        return len(self._colors)

    @property
    def brands(self) -> Tuple[Brand, ...]:
        return tuple(self._brands.values())

    @property
    def series(self) -> Tuple[Series, ...]:
        return tuple(self._series.values())

    @property
    def colors(self) -> Tuple[Color, ...]:
        return tuple(self._colors.values())

    @property
    def color_count_by_series(self) -> Dict[str, int]:
        return dict(self._count_by_series)

    @property
    def color_count_by_brand(self) -> Dict[str, int]:
        return dict(self._count_by_brand)

    def brand_by_id(self, brand_id: str) -> Optional[Brand]:
        return self._brands.get(brand_id)

    def series_by_id(self, series_id: str) -> Optional[Series]:
        return self._series.get(series_id)

    def color_by_id(self, color_id: str) -> Optional[Color]:
        return self._colors.get(color_id)

    def series_by_brand_id(self, brand_id: str) -> List[Series]:
        return list(self._series_by_brand.get(brand_id, ()))

    def colors_by_series_id(self, series_id: str) -> List[Color]:
        return list(self._colors_by_series.get(series_id, ()))

    def colors_by_brand_id(self, brand_id: str) -> List[Color]:
        """All colors of a brand, series by series in load order."""
        out = []
        for s in self._series_by_brand.get(brand_id, ()):
            out.extend(self._colors_by_series[s.id])
        return out

    def colors_for_series_ids(self, series_ids: Sequence[str]) -> List[Color]:
        """
        Concatenate the colors of several series, in the order given.

        Unknown ids contribute nothing; a repeated id is only used once.
        """
        out = []
        seen = set()
        for sid in series_ids:
            if sid in seen:
                continue
            seen.add(sid)
            out.extend(self._colors_by_series.get(sid, ()))
        return out

    def brands_with_count(self) -> List[BrandWithCount]:
        return [
            BrandWithCount(brand=b, color_count=self._count_by_brand[b.id])
            for b in self._brands.values()
        ]

    def series_with_count(self, brand_id: str = None) -> List[SeriesWithCount]:
        """
        Series with their color count and brand name.

        Without brand_id, every series is returned, grouped by brand in
        brand load order.
        """
        if brand_id is not None:
            brand_ids = [brand_id] if brand_id in self._brands else []
        else:
            brand_ids = list(self._brands)

        result = []
        for bid in brand_ids:
            brand_name = self._brands[bid].name
            for s in self._series_by_brand[bid]:
                result.append(SeriesWithCount(
                    series=s,
                    color_count=self._count_by_series[s.id],
                    brand_name=brand_name,
                ))
        return result


def search_colors(colors: Sequence[Color], query: str, language: str = "en") -> List[Color]:
    """
    Filter colors whose code or display name contains query.

    Matching is case-insensitive; a blank query returns every color.
    """
    q = (query or "").strip().lower()
    if not q:
        return list(colors)
    return [
        c for c in colors
        if q in c.code.lower() or q in c.display_name(language).lower()
    ]
