"""Tests for marginalia.assignment.code module."""

from __future__ import annotations

import pytest

from marginalia.assignment import code
from marginalia.errors import CodeGenerationExhausted


class TestNormalize(object):
    """Tests for code.normalize()."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("ABC123", "ABC123"),
            ("abc123", "ABC123"),
            (" abc-123 ", "ABC123"),
            ("abc_123", "ABC123"),
            ("ab c1 23", "ABC123"),
            ("O0I1L1", "001111"),
        ],
    )
    def test_folds_human_input(self, value: str, expected: str) -> None:
        """normalize() strips separators, uppercases and folds confusable letters."""
        assert code.normalize(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "ABC12", "ABC1234", "ABC!23"])
    def test_rejects_non_codes(self, value: str | None) -> None:
        """normalize() returns None for anything that cannot be a code."""
        assert code.normalize(value) is None

    def test_idempotent(self) -> None:
        """Normalizing a normalized code changes nothing."""
        for _ in range(50):
            generated = code.generate()
            assert code.normalize(generated) == generated
            assert code.normalize(code.normalize(f" {generated.lower()} ")) == generated


class TestGenerate(object):
    """Tests for code.generate() and code.generate_unique()."""

    def test_generated_codes_are_valid(self) -> None:
        """Generated codes use only the unambiguous alphabet."""
        for _ in range(200):
            generated = code.generate()
            assert code.validate(generated)
            assert not set(generated) & set("OIL")

    def test_generate_unique_skips_collisions(self) -> None:
        """generate_unique() keeps drawing until a candidate is unused."""
        seen: list[str] = []

        def exists(candidate: str) -> bool:
            seen.append(candidate)
            return len(seen) < 3

        result = code.generate_unique(exists)

        assert len(seen) == 3
        assert result == seen[-1]

    def test_generate_unique_exhausted(self) -> None:
        """generate_unique() gives up after max_attempts collisions."""
        with pytest.raises(CodeGenerationExhausted) as excinfo:
            code.generate_unique(lambda _: True, max_attempts=4)

        assert excinfo.value.details["attempts"] == 4
        assert excinfo.value.transient


class TestFormatting(object):
    """Tests for code.format_code() and code.explain()."""

    def test_format_code(self) -> None:
        assert code.format_code("abc123") == "ABC-123"

    def test_format_invalid_code_raises(self) -> None:
        with pytest.raises(ValueError):
            code.format_code("nope")

    def test_explain_length(self) -> None:
        """explain() reports the character count of a wrong-length code."""
        assert "got 4" in code.explain("AB12")

    def test_explain_empty(self) -> None:
        assert code.explain("  ") == "please enter an assignment code"

    def test_explain_bad_characters(self) -> None:
        assert "#" in code.explain("AB#123")


class TestSuggestions(object):
    """Tests for code.distance() and code.suggest_similar()."""

    def test_distance(self) -> None:
        assert code.distance("ABC123", "ABC123") == 0
        assert code.distance("ABC123", "ABC124") == 1
        assert code.distance("ABC123", "AB123") == 1
        assert code.distance("kitten", "sitting") == 3

    def test_suggest_closest_first(self) -> None:
        """suggest_similar() orders by distance, ties in pool order."""
        pool = ["XYZ789", "ABD124", "ABC124", "ABC125"]

        assert code.suggest_similar("abc123", pool) == ["ABC124", "ABC125", "ABD124"]

    def test_suggest_respects_limits(self) -> None:
        pool = ["ABC124", "ABC125", "ABC126", "ABC127"]

        assert code.suggest_similar("ABC123", pool, limit=2) == ["ABC124", "ABC125"]
        assert code.suggest_similar("QQQ999", pool) == []
        assert code.suggest_similar("", pool) == []
