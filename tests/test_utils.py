"""Tests for utility functions."""

from keyword_funnel.utils.text_utils import (
    coerce_float,
    coerce_int,
    dedupe_preserving_order,
    normalize_identity,
    parse_delimited,
    split_locale,
    split_suggestions,
)


class TestParseDelimited:
    def test_basic_rows(self):
        rows = parse_delimited("Keyword,Volume\nshoes,100\n")
        assert rows == [["Keyword", "Volume"], ["shoes", "100"]]

    def test_quoted_delimiter(self):
        rows = parse_delimited('Keyword,Volume\n"shoes, red",100\n')
        assert rows[1] == ["shoes, red", "100"]

    def test_embedded_newline(self):
        rows = parse_delimited('Keyword,Note\n"shoes","line one\nline two"\n')
        assert rows[1] == ["shoes", "line one\nline two"]

    def test_doubled_quote(self):
        rows = parse_delimited('Keyword\n"the ""best"" shoes"\n')
        assert rows[1] == ['the "best" shoes']

    def test_blank_lines_dropped(self):
        rows = parse_delimited("a,b\n\n1,2\n\n")
        assert rows == [["a", "b"], ["1", "2"]]

    def test_bom_stripped(self):
        rows = parse_delimited("\ufeffKeyword,Volume\nshoes,1\n")
        assert rows[0][0] == "Keyword"

    def test_custom_delimiter(self):
        rows = parse_delimited("Keyword;Volume\nshoes;1 000\n", delimiter=";")
        assert rows[1] == ["shoes", "1 000"]


class TestCoerceInt:
    def test_thousands_and_text(self):
        assert coerce_int("1,234 searches") == 1234

    def test_no_digits(self):
        assert coerce_int("n/a") == 0

    def test_empty_and_none(self):
        assert coerce_int("") == 0
        assert coerce_int(None) == 0

    def test_sign_is_stripped(self):
        assert coerce_int("-45") == 45


class TestCoerceFloat:
    def test_currency(self):
        assert coerce_float("$1.20") == 1.2

    def test_decimal_comma(self):
        assert coerce_float("0,45") == 0.45

    def test_missing(self):
        assert coerce_float("n/a") is None
        assert coerce_float("") is None


class TestIdentity:
    def test_normalize(self):
        assert normalize_identity("  Running Shoes ") == "running shoes"


class TestSplitSuggestions:
    def test_trims_and_drops_empty(self):
        assert split_suggestions(" a , b,, ,c ") == ["a", "b", "c"]

    def test_empty_text(self):
        assert split_suggestions("") == []


class TestDedupe:
    def test_case_insensitive_first_wins(self):
        assert dedupe_preserving_order(["Shoes", "shoes", "boots"]) == ["Shoes", "boots"]


class TestSplitLocale:
    def test_language_region(self):
        assert split_locale("pt-PT") == ("pt", "PT")

    def test_underscore_and_case(self):
        assert split_locale("en_us") == ("en", "US")

    def test_language_only(self):
        assert split_locale("de") == ("de", None)
