"""
Hex ⇄ CIELAB conversion and perceptual color distance.

Hex strings are parsed into sRGB, linearized and taken to XYZ with
OpenCV, adapted to D50 (Bradford) and converted to CIELAB with
scikit-image, the same convention as the lab values stored in catalog
data. Colors are compared with scikit-image Delta E; two metrics are
available:

    cie76      Euclidean distance in Lab (a true metric)
    ciede2000  CIE Delta E 2000, closer to perceived difference

Raw Delta E values are divided by DELTA_E_NORMALIZER so that black vs.
white lands at ~1.0, then clamped to [0, 1]. The metric and normalizer
are configurable via environment (COLOR_DISTANCE_METRIC,
DELTA_E_NORMALIZER) or per call.
"""

import os
import re
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple, Union

import cv2
import numpy as np
from skimage.color import deltaE_cie76, deltaE_ciede2000, xyz2lab

from .exceptions import InvalidColorError

logger = logging.getLogger(__name__)

CIE76 = "cie76"
CIEDE2000 = "ciede2000"
METRICS = (CIE76, CIEDE2000)

DEFAULT_METRIC = os.environ.get("COLOR_DISTANCE_METRIC", CIE76).lower()
DELTA_E_NORMALIZER = float(os.environ.get("DELTA_E_NORMALIZER", "100.0"))

_HEX_RE = re.compile(r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class Lab:
    """A CIELAB triple: lightness l in [0, 100], chroma axes a and b."""

    l: float
    a: float
    b: float

    def as_array(self) -> np.ndarray:
        return np.array([self.l, self.a, self.b], dtype=np.float64)

    @classmethod
    def from_record(cls, record) -> "Lab":
        """Build from a {"l", "a", "b"} mapping (the catalog JSON form)."""
        return cls(float(record["l"]), float(record["a"]), float(record["b"]))

    def to_record(self, ndigits: int = None) -> dict:
        if ndigits is None:
            return {"l": self.l, "a": self.a, "b": self.b}
        return {
            "l": round(self.l, ndigits),
            "a": round(self.a, ndigits),
            "b": round(self.b, ndigits),
        }


LabLike = Union[Lab, np.ndarray, Tuple[float, float, float]]


def is_valid_hex(value) -> bool:
    """True for 3- or 6-digit hex colors, with or without a leading '#'."""
    return isinstance(value, str) and bool(_HEX_RE.match(value))


def normalize_hex(value) -> str:
    """
    Canonicalize a hex color to lowercase '#rrggbb'.

    Raises:
        InvalidColorError: If value is not a 3- or 6-digit hex color.
    """
    if not is_valid_hex(value):
        raise InvalidColorError(value)
    digits = value.lstrip("#").lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return "#" + digits


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    """Parse a hex color into an (r, g, b) tuple of 0-255 ints."""
    digits = normalize_hex(value)[1:]
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


# sRGB (D65) → D50, Bradford chromatic adaptation
_BRADFORD_D65_TO_D50 = np.array([
    [1.0478112, 0.0228866, -0.0501270],
    [0.0295424, 0.9904844, -0.0170491],
    [-0.0092345, 0.0150436, 0.7521316],
], dtype=np.float64)


def _srgb_to_linear(rgb: np.ndarray) -> np.ndarray:
    return np.where(rgb <= 0.04045, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)


@lru_cache(maxsize=8192)
def _lab_for_canonical(canonical: str) -> Tuple[float, float, float]:
    rgb = np.array([[hex_to_rgb(canonical)]], dtype=np.float64) / 255.0
    linear = _srgb_to_linear(rgb).astype(np.float32)
    # OpenCV's RGB2XYZ is the plain D65 matrix, companding is done above
    xyz_d65 = cv2.cvtColor(linear, cv2.COLOR_RGB2XYZ).astype(np.float64)
    xyz_d50 = xyz_d65 @ _BRADFORD_D65_TO_D50.T
    lab = xyz2lab(xyz_d50, illuminant="D50", observer="2")[0, 0]
    return float(lab[0]), float(lab[1]), float(lab[2])


def hex_to_lab(value: str) -> Lab:
    """
    Convert a hex color to CIELAB.

    Uses the D50 reference white with Bradford-adapted sRGB, the same
    convention as the precomputed lab values in catalog data, so both
    paths agree. Pure and deterministic; memoized per canonical hex.

    Raises:
        InvalidColorError: If value is not a 3- or 6-digit hex color.
    """
    return Lab(*_lab_for_canonical(normalize_hex(value)))


def _as_lab_array(lab: LabLike) -> np.ndarray:
    if isinstance(lab, Lab):
        return lab.as_array()
    return np.asarray(lab, dtype=np.float64).reshape(3)


_DELTA_E = {
    CIE76: deltaE_cie76,
    CIEDE2000: deltaE_ciede2000,
}


def resolve_metric(metric: str = None) -> str:
    """Validate a metric name, defaulting to DEFAULT_METRIC."""
    metric = (metric or DEFAULT_METRIC).lower()
    if metric not in _DELTA_E:
        raise ValueError(
            f"Unknown color distance metric '{metric}', expected one of {METRICS}"
        )
    return metric


def delta_e(lab1: LabLike, labs: np.ndarray, metric: str = None) -> np.ndarray:
    """
    Raw Delta E from one Lab color to each row of an (n, 3) Lab array.

    Args:
        lab1: Reference Lab color.
        labs: Lab colors to compare, shape (n, 3) or (3,).
        metric: 'cie76' or 'ciede2000' (defaults to DEFAULT_METRIC).

    Returns:
        Float64 array of shape (n,).
    """
    delta_fn = _DELTA_E[resolve_metric(metric)]
    labs = np.asarray(labs, dtype=np.float64).reshape(-1, 3)
    ref = np.tile(_as_lab_array(lab1), (len(labs), 1))
    return np.asarray(delta_fn(ref, labs), dtype=np.float64).reshape(-1)


def normalize_delta_e(values, normalizer: float = None):
    """Scale raw Delta E into [0, 1]; accepts a scalar or an array."""
    normalizer = normalizer or DELTA_E_NORMALIZER
    return np.clip(np.asarray(values, dtype=np.float64) / normalizer, 0.0, 1.0)


def lab_distances(query: LabLike,
                  labs: np.ndarray,
                  metric: str = None,
                  normalizer: float = None) -> np.ndarray:
    """Normalized [0, 1] distances from query to each row of labs."""
    return normalize_delta_e(delta_e(query, labs, metric), normalizer)


def perceptual_distance(hex_a: str,
                        hex_b: str,
                        metric: str = None,
                        normalizer: float = None) -> float:
    """
    Perceptual distance between two hex colors, in [0, 1].

    Symmetric, and 0.0 exactly when both strings denote the same color.

    Raises:
        InvalidColorError: If either argument is not a valid hex color.
    """
    canonical_a, canonical_b = sorted((normalize_hex(hex_a), normalize_hex(hex_b)))
    # Fixed argument order keeps CIEDE2000 bit-for-bit symmetric
    lab_a = hex_to_lab(canonical_a)
    lab_b = hex_to_lab(canonical_b)
    return float(lab_distances(lab_a, lab_b.as_array(), metric, normalizer)[0])
