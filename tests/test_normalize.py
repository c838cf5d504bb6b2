"""Tests for index-preserving normalisation."""

from textanchor.normalize import (
    aggressive_normalize,
    collapse_whitespace,
    normalize_whitespace,
    similarity_normalize,
)


class TestCollapseWhitespace:
    """Tests for whitespace collapsing."""

    def test_collapses_and_trims(self) -> None:
        assert normalize_whitespace("  Hello \n\t brave   new  ") == "Hello brave new"

    def test_positions_point_at_source(self) -> None:
        source = "Hello   brave\nnew world"
        normalized = collapse_whitespace(source)

        index = normalized.find("brave new")
        assert index == 6
        assert normalized.to_original(index) == 8
        assert normalized.to_original_end(index + len("brave new")) == 17
        assert source[8:17] == "brave\nnew"

    def test_out_of_range_indexes_are_clamped(self) -> None:
        normalized = collapse_whitespace("abc ")
        assert normalized.to_original(-3) == 0
        assert normalized.to_original(10) == 4
        assert normalized.to_original_end(0) == 0
        assert normalized.to_original_end(10) == 4


class TestAggressiveNormalize:
    """Tests for punctuation-insensitive normalisation."""

    def test_strips_punctuation_and_case(self) -> None:
        assert aggressive_normalize("Hello, World! (It's—fine)").text == "hello world itsfine"

    def test_maps_back_past_removed_characters(self) -> None:
        source = "Say: 'BRAVE' new"
        normalized = aggressive_normalize(source)
        index = normalized.find("brave")
        assert source[normalized.to_original(index)] == "B"


class TestSimilarityNormalize:
    """Tests for the normalisation used when scoring similarity."""

    def test_keeps_word_characters_only(self) -> None:
        assert similarity_normalize("Type-Safety & IDE_support!").text == "typesafety ide_support"

    def test_empty_input(self) -> None:
        normalized = similarity_normalize("   ")
        assert normalized.text == ""
        assert normalized.positions == ()
