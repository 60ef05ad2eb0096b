"""Render one language column of a TranslationTable as .properties text."""

from __future__ import annotations

from properties_editor.core.table import TranslationTable


def serialize(table: TranslationTable, language: str) -> str:
    """Return ``key=value`` lines for *language*, one per row, in row order.

    Each line ends with ``\\n``; an empty table gives ``""``. Comments and
    blank lines of the uploaded file are not kept. Raises
    UnknownLanguageError for a language that is not a column.
    """
    column = table.column(language)
    return "".join(f"{key}={value}\n" for key, value in column.items())


def output_filename(language: str) -> str:
    return f"{language}.properties"
