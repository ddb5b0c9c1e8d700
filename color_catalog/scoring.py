"""
Similarity scoring for color matches.

Turns a normalized perceptual distance (0 = identical, 1 = black vs.
white or further) into the 0-100 integer shown next to a swatch.
"""

import math


def distance_to_similarity(distance: float) -> int:
    """
    Convert a [0, 1] distance into a 0-100 similarity percentage.

    distance 0 maps to 100, distance 1 (or more) maps to 0. Halves
    round up (a raw score of 99.5 becomes 100).
    """
    score = max(0.0, min(100.0, (1.0 - float(distance)) * 100.0))
    return int(math.floor(score + 0.5))
