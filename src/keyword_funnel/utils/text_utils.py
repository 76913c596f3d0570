"""Text utilities for keyword import and curation."""

import csv
import io
import re


_NON_DIGITS = re.compile(r"[^\d]")
_NUMBER = re.compile(r"-?\d+(?:[.,]\d+)?")


def parse_delimited(text: str, delimiter: str = ",") -> list[list[str]]:
    """
    Split delimited text into rows of fields.

    Quoted fields may contain the delimiter and literal newlines; a doubled
    quote inside a quoted field is one literal quote. Blank lines are dropped.

    Args:
        text: Full file contents
        delimiter: Field delimiter

    Returns:
        List of rows, each a list of raw cell strings
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    return [row for row in reader if row]


def coerce_int(value: str | None) -> int:
    """
    Coerce a loosely formatted numeric cell to an integer.

    Every non-digit character is stripped first, so "1,234 searches" is 1234.
    A cell with no digits at all coerces to 0.
    """
    digits = _NON_DIGITS.sub("", value or "")
    return int(digits) if digits else 0


def coerce_float(value: str | None) -> float | None:
    """Parse the first number in a cell ("$1.20", "0,45"), or None if there is none."""
    match = _NUMBER.search(value or "")
    if not match:
        return None
    return float(match.group(0).replace(",", "."))


def normalize_identity(keyword: str) -> str:
    """Identity of a keyword: trimmed and lowercased."""
    return keyword.strip().lower()


def split_suggestions(text: str) -> list[str]:
    """Split comma-separated suggestion text, trimming and dropping empties."""
    return [part.strip() for part in text.split(",") if part.strip()]


def dedupe_preserving_order(values: list[str]) -> list[str]:
    """Remove case-insensitive duplicates, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for value in values:
        key = normalize_identity(value)
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def split_locale(locale: str) -> tuple[str, str | None]:
    """
    Split a locale tag into language and region.

    "pt-PT" -> ("pt", "PT"), "en_us" -> ("en", "US"), "de" -> ("de", None)
    """
    parts = re.split(r"[-_]", locale.strip(), maxsplit=1)
    language = parts[0].lower()
    region = parts[1].upper() if len(parts) > 1 and parts[1] else None
    return language, region
