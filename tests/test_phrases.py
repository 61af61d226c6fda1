"""Tests for phrase generation."""

import pytest

from search_detective.exceptions import InvalidInputError
from search_detective.modules.keyword_research.phrases import generate_phrases


class TestGeneratePhrases:
    """keyword x city expansion in both orientations."""

    def test_single_pair_both_orientations(self):
        assert generate_phrases(["AC repair"], ["Boise"]) == [
            "AC repair Boise",
            "Boise AC repair",
        ]

    def test_keyword_major_city_minor_order(self):
        phrases = generate_phrases(["AC repair", "furnace repair"], ["Boise", "Reno"])
        assert phrases == [
            "AC repair Boise",
            "Boise AC repair",
            "AC repair Reno",
            "Reno AC repair",
            "furnace repair Boise",
            "Boise furnace repair",
            "furnace repair Reno",
            "Reno furnace repair",
        ]

    def test_duplicate_city_emits_each_phrase_once(self):
        phrases = generate_phrases(["HVAC repair"], ["Reno", "Reno"])
        assert phrases == ["HVAC repair Reno", "Reno HVAC repair"]
        assert phrases.count("HVAC repair Reno") == 1

    def test_repeated_keyword_is_deduplicated(self):
        phrases = generate_phrases(["x", "x"], ["y"])
        assert phrases == ["x y", "y x"]

    def test_keyword_equal_to_city_collapses_orientations(self):
        assert generate_phrases(["Boise"], ["Boise"]) == ["Boise Boise"]

    @pytest.mark.parametrize("keywords,cities", [
        (["AC repair", "heating repair", "HVAC service"], ["Boise", "Reno", "Salem"]),
        (["a", "b", "a"], ["c", "c", "d"]),
        (["plumber near me"], ["Austin"]),
    ])
    def test_no_duplicates_and_bounded_length(self, keywords, cities):
        phrases = generate_phrases(keywords, cities)
        assert len(phrases) == len(set(phrases))
        assert len(phrases) <= 2 * len(keywords) * len(cities)

    def test_deterministic(self):
        keywords = ["AC repair", "furnace repair", "HVAC installation"]
        cities = ["Boise", "Reno", "Nampa"]
        assert generate_phrases(keywords, cities) == generate_phrases(keywords, cities)

    def test_empty_keywords_raises(self):
        with pytest.raises(InvalidInputError):
            generate_phrases([], ["Boise"])

    def test_empty_cities_raises(self):
        with pytest.raises(InvalidInputError):
            generate_phrases(["AC repair"], [])

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            generate_phrases([], [])
