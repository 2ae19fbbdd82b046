"""Tests for metadata filters."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from vectorbridge.exceptions import ErrorCode, ValidationError
from vectorbridge.vectorstore.filters import (
    Comparison,
    Filter,
    IsEqualTo,
    IsIn,
    Not,
    metadata_key,
    to_milvus_expression,
)


class TestMetadataKey:
    """Tests for the fluent filter builder."""

    def test_is_equal_to(self) -> None:
        """is_equal_to builds an equality comparison."""
        flt = metadata_key("author").is_equal_to("ada")
        assert isinstance(flt, IsEqualTo)
        assert flt.key == "author"
        assert flt.value == "ada"

    def test_is_in_collects_values(self) -> None:
        """is_in takes the values as arguments."""
        flt = metadata_key("year").is_in(2022, 2023)
        assert isinstance(flt, IsIn)
        assert flt.values == (2022, 2023)

    def test_is_in_rejects_empty(self) -> None:
        """A membership filter needs at least one value."""
        with pytest.raises(PydanticValidationError):
            metadata_key("year").is_in()

    def test_blank_key_rejected(self) -> None:
        """Keys cannot be empty."""
        with pytest.raises(PydanticValidationError):
            metadata_key("").is_equal_to(1)

    def test_operators_combine_filters(self) -> None:
        """&, | and ~ build composite filters."""
        a = metadata_key("a").is_equal_to(1)
        b = metadata_key("b").is_equal_to(2)

        assert (a & b).left == a
        assert (a | b).right == b
        assert isinstance(~a, Not)

    def test_filters_are_immutable(self) -> None:
        """Filters are frozen once built."""
        flt = metadata_key("a").is_equal_to(1)
        with pytest.raises(PydanticValidationError):
            flt.value = 2


class TestToMilvusExpression:
    """Tests for filter compilation."""

    @pytest.mark.parametrize(
        ("flt", "expected"),
        [
            (metadata_key("k").is_equal_to("v"), 'metadata["k"] == "v"'),
            (metadata_key("k").is_not_equal_to(3), 'metadata["k"] != 3'),
            (metadata_key("k").is_greater_than(1.5), 'metadata["k"] > 1.5'),
            (metadata_key("k").is_greater_than_or_equal_to(2), 'metadata["k"] >= 2'),
            (metadata_key("k").is_less_than(0), 'metadata["k"] < 0'),
            (metadata_key("k").is_less_than_or_equal_to(9), 'metadata["k"] <= 9'),
            (metadata_key("k").is_equal_to(True), 'metadata["k"] == true'),
        ],
    )
    def test_comparisons(self, flt: Filter, expected: str) -> None:
        """Each comparison maps to its Milvus operator."""
        assert to_milvus_expression(flt) == expected

    def test_membership(self) -> None:
        """in and not in render value lists."""
        assert to_milvus_expression(metadata_key("k").is_in("a", "b")) == 'metadata["k"] in ["a", "b"]'
        assert to_milvus_expression(metadata_key("k").is_not_in(1, 2)) == 'metadata["k"] not in [1, 2]'

    def test_composite(self) -> None:
        """Composite filters are parenthesised."""
        flt = metadata_key("year").is_greater_than(2020) & ~metadata_key("draft").is_equal_to(True)
        assert to_milvus_expression(flt) == (
            '(metadata["year"] > 2020 and not(metadata["draft"] == true))'
        )

    def test_or(self) -> None:
        """Or renders with the or keyword."""
        flt = metadata_key("a").is_equal_to(1) | metadata_key("b").is_equal_to(2)
        assert to_milvus_expression(flt) == '(metadata["a"] == 1 or metadata["b"] == 2)'

    def test_string_values_are_escaped(self) -> None:
        """Quotes inside values cannot break out of the literal."""
        flt = metadata_key("title").is_equal_to('say "hi"')
        assert to_milvus_expression(flt) == 'metadata["title"] == "say \\"hi\\""'

    def test_unsupported_filter(self) -> None:
        """Unknown filter types are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            to_milvus_expression(Comparison(key="k", value=1))

        assert exc_info.value.code == ErrorCode.INVALID_FILTER
