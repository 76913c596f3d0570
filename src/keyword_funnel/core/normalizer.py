"""Normalization of imported keyword spreadsheets."""

from __future__ import annotations

import csv
from pathlib import Path

import aiofiles

from keyword_funnel.models.keyword import RawRow
from keyword_funnel.utils.logging import get_logger
from keyword_funnel.utils.text_utils import coerce_float, coerce_int, parse_delimited


logger = get_logger(__name__)

MAX_DIFFICULTY = 100

# Tried in order; the last one decodes any byte sequence
IMPORT_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")


class KeywordImportError(ValueError):
    """Raised when an imported file cannot be turned into keyword rows."""


class MissingColumnsError(KeywordImportError):
    """Raised when required logical columns are not found in the header."""

    def __init__(self, missing: list[str], headers: list[str] | None = None) -> None:
        super().__init__(
            f"Required columns not found: {', '.join(missing)}. "
            "Please check your CSV format."
        )
        self.missing = missing
        self.headers = headers or []


class EmptyFileError(KeywordImportError):
    """Raised when the imported file has no header row."""

    def __init__(self) -> None:
        super().__init__("The imported file is empty")


class TabularNormalizer:
    """Turns delimited text with a header row into normalized keyword rows."""

    # Logical field -> header substrings, matched case-insensitively
    REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
        "keyword": ("keyword", "term"),
        "volume": ("volume", "search volume"),
        "difficulty": ("difficulty", "kd"),
    }

    OPTIONAL_FIELDS: dict[str, tuple[str, ...]] = {
        "intent": ("intent",),
        "cpc": ("cpc",),
        "trend": ("trend",),
    }

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    @staticmethod
    def decode(data: bytes) -> str:
        """Decode file bytes, falling back to single-byte encodings for non-UTF-8 exports."""
        *strict, fallback = IMPORT_ENCODINGS
        for encoding in strict:
            try:
                text = data.decode(encoding)
            except UnicodeDecodeError:
                continue
            if encoding != IMPORT_ENCODINGS[0]:
                logger.warning("Import file is not UTF-8, decoded as %s", encoding)
            return text

        logger.warning("Import file is not UTF-8, decoded as %s", fallback)
        return data.decode(fallback)

    async def read_file(self, path: Path) -> str:
        """
        Read an import file in full.

        Raises:
            KeywordImportError: if the file cannot be read
        """
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as exc:
            raise KeywordImportError(f"Could not read {path}: {exc}") from exc
        return self.decode(data)

    @staticmethod
    def _find_column(headers: list[str], aliases: tuple[str, ...]) -> int | None:
        for idx, header in enumerate(headers):
            if any(alias in header for alias in aliases):
                return idx
        return None

    def resolve_columns(self, header_row: list[str]) -> dict[str, int]:
        """
        Locate logical fields in a header row.

        Raises:
            MissingColumnsError: if any required field has no matching header
        """
        headers = [h.lower().strip() for h in header_row]

        columns: dict[str, int] = {}
        missing = []
        for field, aliases in self.REQUIRED_FIELDS.items():
            idx = self._find_column(headers, aliases)
            if idx is None:
                missing.append(field)
            else:
                columns[field] = idx

        if missing:
            raise MissingColumnsError(missing, headers=header_row)

        taken = set(columns.values())
        for field, aliases in self.OPTIONAL_FIELDS.items():
            idx = self._find_column(headers, aliases)
            if idx is not None and idx not in taken:
                columns[field] = idx

        return columns

    def normalize(self, raw_text: str) -> list[RawRow]:
        """
        Parse raw delimited text into keyword rows.

        Row 0 is the header. Rows with an empty keyword cell are skipped;
        numeric cells are coerced leniently (no digits -> 0).

        Raises:
            KeywordImportError: if the text cannot be split into fields
            EmptyFileError: if the text has no header row
            MissingColumnsError: if a required column is missing
        """
        if not raw_text.strip():
            raise EmptyFileError()

        try:
            rows = parse_delimited(raw_text, delimiter=self.delimiter)
        except csv.Error as exc:
            raise KeywordImportError(f"Malformed delimited text: {exc}") from exc
        if not rows:
            raise EmptyFileError()

        columns = self.resolve_columns(rows[0])

        def cell(row: list[str], field: str) -> str:
            idx = columns.get(field)
            if idx is None or idx >= len(row):
                return ""
            return row[idx]

        result: list[RawRow] = []
        skipped = 0
        for row in rows[1:]:
            keyword = cell(row, "keyword").strip()
            if not keyword:
                skipped += 1
                continue

            result.append(RawRow(
                keyword=keyword,
                volume=coerce_int(cell(row, "volume")),
                difficulty=min(coerce_int(cell(row, "difficulty")), MAX_DIFFICULTY),
                intent=cell(row, "intent").strip() or None,
                cpc=coerce_float(cell(row, "cpc")),
                trend=cell(row, "trend").strip() or None,
            ))

        logger.debug(
            "Normalized %d rows (%d skipped without keyword), columns=%s",
            len(result), skipped, columns,
        )
        return result
