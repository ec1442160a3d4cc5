"""Tests for edit-distance matching."""
from polisgeo.core.fuzzy import levenshtein_distance, rank_by_distance


def test_levenshtein_distance():
    """Test exact edit distances."""
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("stokholm", "stockholm") == 1
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("malmö", "malmö") == 0


def test_levenshtein_distance_cutoff():
    """Test distances above the cutoff are reported as cutoff + 1."""
    assert levenshtein_distance("kitten", "sitting", max_distance=1) == 2
    assert levenshtein_distance("stokholm", "stockholm", max_distance=2) == 1


def test_rank_by_distance():
    """Test ranking order and tie-breaking."""
    matches = rank_by_distance("abc", ["abd", "abx", "abc"])
    assert matches == [("abc", 0, 2), ("abd", 1, 0), ("abx", 1, 1)]


def test_rank_by_distance_filters_and_limits():
    """Test max distance and limit."""
    choices = ["stockholm", "sollentuna", "solna", "stocksund"]

    matches = rank_by_distance("stokholm", choices, max_distance=2)
    assert [m[0] for m in matches] == ["stockholm"]

    matches = rank_by_distance("solna", choices, limit=2)
    assert len(matches) == 2
    assert matches[0][0] == "solna"

    assert rank_by_distance("xyz", choices, max_distance=1) == []


def test_rank_by_distance_empty():
    """Test empty inputs."""
    assert rank_by_distance("abc", []) == []
    assert rank_by_distance("", ["abc"]) == []
