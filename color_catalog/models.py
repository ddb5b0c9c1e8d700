"""Data models shared across catalog indexing and color matching."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from .colorspace import Lab, is_valid_hex, normalize_hex
from .exceptions import CatalogIntegrityError

logger = logging.getLogger(__name__)


class FinishType(str, enum.Enum):
    MATTE = "matte"
    GLOSS = "gloss"
    METALLIC = "metallic"
    OTHER = "other"


class PressureType(str, enum.Enum):
    LOW = "low"
    HIGH = "high"
    MIXED = "mixed"


@dataclass(frozen=True)
class PlainText:
    """Legacy single-string text with no language information."""

    text: str


@dataclass(frozen=True)
class ByLanguage:
    """Text keyed by language code ("en", "es", ...), in data order."""

    entries: Mapping[str, str] = field(default_factory=dict, hash=False)


LocalizedText = Union[PlainText, ByLanguage]


def localized_text(value: Any) -> Optional[LocalizedText]:
    """Wrap a raw JSON value (string, mapping or None) as LocalizedText."""
    if value is None:
        return None
    if isinstance(value, (PlainText, ByLanguage)):
        return value
    if isinstance(value, str):
        return PlainText(value)
    if isinstance(value, Mapping):
        return ByLanguage({str(k): v for k, v in value.items() if isinstance(v, str)})
    raise CatalogIntegrityError(f"Unsupported localized text value: {value!r}")


def resolve_text(text: Optional[LocalizedText], language: str, fallback: str = "") -> str:
    """
    Pick the text for a language.

    Region suffixes are ignored ("es-MX" -> "es"). When the language is
    missing the first available entry is used, then fallback.
    """
    if text is None:
        return fallback
    if isinstance(text, PlainText):
        return text.text or fallback
    lang = (language or "").split("-")[0].lower()
    value = text.entries.get(lang)
    if value:
        return value
    for value in text.entries.values():
        if value:
            return value
    return fallback


def _require(record: Mapping[str, Any], key: str, kind: str) -> str:
    value = record.get(key)
    if value is None or value == "":
        raise CatalogIntegrityError(f"{kind} record is missing '{key}': {dict(record)!r}")
    return str(value)


def _optional_enum(enum_cls, value, kind: str, record_id: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"{kind} '{record_id}': unknown {enum_cls.__name__} {value!r}, ignoring")
        return None


@dataclass(frozen=True)
class Brand:
    id: str
    name: str
    description: Optional[LocalizedText] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Brand":
        return cls(
            id=_require(record, "id", "Brand"),
            name=_require(record, "name", "Brand"),
            description=localized_text(record.get("description")),
        )

    def describe(self, language: str) -> str:
        return resolve_text(self.description, language)


@dataclass(frozen=True)
class Series:
    id: str
    brand_id: str
    name: str
    finish_type: Optional[FinishType] = None
    pressure_type: Optional[PressureType] = None
    description: Optional[LocalizedText] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Series":
        series_id = _require(record, "id", "Series")
        return cls(
            id=series_id,
            brand_id=_require(record, "brandId", "Series"),
            name=_require(record, "name", "Series"),
            finish_type=_optional_enum(FinishType, record.get("finishType"), "Series", series_id),
            pressure_type=_optional_enum(PressureType, record.get("pressureType"), "Series", series_id),
            description=localized_text(record.get("description")),
        )

    def describe(self, language: str) -> str:
        return resolve_text(self.description, language)


@dataclass(frozen=True)
class Color:
    """
    A catalog color.

    hex is canonical lowercase '#rrggbb'. lab, when present, was
    precomputed offline and is used by matching instead of converting hex.
    """

    id: str
    series_id: str
    hex: str
    code: str
    name: Optional[LocalizedText] = None
    lab: Optional[Lab] = None

    def __post_init__(self):
        if not is_valid_hex(self.hex):
            raise CatalogIntegrityError(f"Color '{self.id}' has invalid hex {self.hex!r}")
        object.__setattr__(self, "hex", normalize_hex(self.hex))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Color":
        color_id = _require(record, "id", "Color")
        lab = record.get("lab")
        try:
            lab = Lab.from_record(lab) if lab is not None else None
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogIntegrityError(f"Color '{color_id}' has malformed lab {lab!r}") from e
        return cls(
            id=color_id,
            series_id=_require(record, "seriesId", "Color"),
            hex=_require(record, "hex", "Color"),
            code=str(record.get("code") or ""),
            name=localized_text(record.get("name")),
            lab=lab,
        )

    def display_name(self, language: str) -> str:
        """Localized name, falling back to the first name, then the code."""
        return resolve_text(self.name, language, fallback=self.code)


@dataclass(frozen=True)
class BrandWithCount:
    brand: Brand
    color_count: int


@dataclass(frozen=True)
class SeriesWithCount:
    series: Series
    color_count: int
    brand_name: str


@dataclass(frozen=True)
class ColorMatch:
    """One query color matched against a catalog color."""

    query_hex: str
    catalog_color: Color
    similarity: int
    distance: float
