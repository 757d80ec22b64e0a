"""Tests for string similarity."""

import pytest

from billmatch.matching.similarity import similarity


def test_exact_match_case_insensitive():
    assert similarity("Netflix", "NETFLIX") == 1.0
    assert similarity("  spotify ", "Spotify") == 1.0


def test_empty_inputs_score_zero():
    assert similarity("", "netflix") == 0.0
    assert similarity("netflix", None) == 0.0
    assert similarity("   ", "   ") == 0.0


def test_containment_scores_point_nine():
    assert similarity("Netflix", "NETFLIX.COM") == 0.9
    assert similarity("NETFLIX.COM", "Netflix") == 0.9


def test_edit_distance_ratio():
    # kitten -> sitting: distance 3, max length 7
    assert similarity("kitten", "sitting") == pytest.approx(4 / 7)
    assert similarity("abc", "xyz") == 0.0


def test_symmetric():
    pairs = [("comcast", "comcst cable"), ("geico", "gieco"), ("rent", "landlord")]
    for a, b in pairs:
        assert similarity(a, b) == similarity(b, a)


def test_bounded():
    for a, b in [("a", "b"), ("hulu", "hulu llc"), ("x" * 20, "y")]:
        assert 0.0 <= similarity(a, b) <= 1.0
