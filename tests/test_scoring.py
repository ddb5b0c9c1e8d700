"""Tests for similarity scoring."""

from color_catalog.scoring import distance_to_similarity


class TestDistanceToSimilarity:
    """Tests for the distance → percentage conversion."""

    def test_zero_distance_is_100(self):
        assert distance_to_similarity(0.0) == 100

    def test_unit_distance_is_0(self):
        assert distance_to_similarity(1.0) == 0

    def test_clamped_above(self):
        assert distance_to_similarity(-0.3) == 100

    def test_clamped_below(self):
        assert distance_to_similarity(1.7) == 0

    def test_rounds_to_nearest(self):
        assert distance_to_similarity(0.25) == 75
        assert distance_to_similarity(0.004) == 100
        assert distance_to_similarity(0.006) == 99
        assert distance_to_similarity(0.333) == 67

    def test_returns_int(self):
        assert isinstance(distance_to_similarity(0.42), int)
