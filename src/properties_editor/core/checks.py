"""Translation heuristics: sibling-copy suggestion and missing/length flags.

These are placeholders, not quality checks. A suggestion is just another
language's value for the same key; a length flag only says the value is
much shorter or longer than the same key in the other languages.
"""

from __future__ import annotations

from properties_editor.core.models import Severity, TranslationCheck
from properties_editor.core.table import TranslationTable
from properties_editor.i18n import t

#: A value is flagged below LOW_RATIO × or above HIGH_RATIO × the mean length
#: of the other non-empty languages.
LOW_RATIO = 0.3
HIGH_RATIO = 3.0


def available_sources(table: TranslationTable, key: str, target: str) -> list[str]:
    """Languages other than *target* that have a value for *key*, in column order."""
    row = table.row(key)
    return [lang for lang, val in row.values.items() if lang != target and val]


def suggest_translation(table: TranslationTable, key: str, source: str, target: str) -> str:
    """Heuristic suggestion for (key, target): the *source* language's value, verbatim."""
    table.value(key, target)  # raises for an unknown key or target language
    return table.value(key, source)


def check_translation(
    table: TranslationTable, key: str, language: str, value: str | None = None
) -> TranslationCheck:
    """Check one cell. *value* defaults to the value currently in the table."""
    row = table.row(key)
    if value is None:
        value = table.value(key, language)

    if not value:
        return TranslationCheck(
            key=key,
            language=language,
            valid=False,
            message=t("check.missing"),
            severity=Severity.WARNING,
        )

    other_lengths = [len(v) for lang, v in row.values.items() if lang != language and v]
    if other_lengths:
        avg = sum(other_lengths) / len(other_lengths)
        n = len(value)
        if n < avg * LOW_RATIO or n > avg * HIGH_RATIO:
            return TranslationCheck(
                key=key,
                language=language,
                valid=False,
                message=t("check.length"),
                severity=Severity.SUSPICION,
            )

    return TranslationCheck(key=key, language=language)


def check_table(table: TranslationTable) -> list[TranslationCheck]:
    """Return the failing checks for every cell, row by row."""
    findings: list[TranslationCheck] = []
    for key in table.keys:
        for language in table.languages:
            result = check_translation(table, key, language)
            if not result.valid:
                findings.append(result)
    return findings
