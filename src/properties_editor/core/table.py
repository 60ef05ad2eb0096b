"""TranslationTable: the keyed grid of translations, backed by a pandas DataFrame.

Layout of the DataFrame:
- index: property keys (object dtype, unique at all times)
- columns: language labels, in upload order
- cells: ``str``; a missing translation is ``""``, never NaN

The table is the single owner of its DataFrame. Every change goes through
one of the mutation methods below (or a Command wrapping them), which keep
the key-uniqueness invariant.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

import pandas as pd

from properties_editor.core.errors import (
    DuplicateKeyError,
    InvalidKeyError,
    UnknownKeyError,
    UnknownLanguageError,
)
from properties_editor.core.models import ParsedFile, Row

_log = logging.getLogger(__name__)

KEY_INDEX_NAME = "key"
NEW_KEY_PREFIX = "new.key."

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def _key_index(keys: Iterable[str]) -> pd.Index:
    return pd.Index(list(keys), dtype=object, name=KEY_INDEX_NAME)


def _empty_frame(languages: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame(
        {lang: pd.Series([], dtype=object) for lang in languages},
        index=_key_index([]),
    )


def normalize_value(value: object) -> str:
    """Return *value* as it would read back from a .properties line."""
    if value is None:
        return ""
    return _LINE_BREAK_RE.sub(" ", str(value)).strip()


def validate_key(key: object) -> str:
    """Return the stripped key, or raise InvalidKeyError if it cannot round-trip."""
    text = "" if key is None else str(key).strip()
    if not text:
        raise InvalidKeyError(text, "key is empty")
    if "=" in text:
        raise InvalidKeyError(text, "key contains '='")
    if _LINE_BREAK_RE.search(text):
        raise InvalidKeyError(text, "key contains a line break")
    if text.startswith(("#", "!")):
        raise InvalidKeyError(text, "key starts with a comment marker")
    return text


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def merge(parsed_files: Iterable[ParsedFile]) -> "TranslationTable":
    """Build a fresh table from parsed files.

    Columns follow upload order. A label that appears twice keeps its first
    position; the later file's values overwrite the earlier ones key by key.
    Rows are the union of all keys, sorted by ordinal string comparison.
    """
    languages: list[str] = []
    mappings: dict[str, dict[str, str]] = {}
    for parsed in parsed_files:
        if parsed.language not in mappings:
            languages.append(parsed.language)
            mappings[parsed.language] = {}
        mappings[parsed.language].update(parsed.properties)

    keys = sorted(set().union(*(m.keys() for m in mappings.values())))
    if not keys:
        return TranslationTable(_empty_frame(languages))

    df = pd.DataFrame(
        {lang: [mappings[lang].get(key, "") for key in keys] for lang in languages},
        index=_key_index(keys),
        dtype=object,
    )
    _log.info("Merged %d language(s) into %d row(s)", len(languages), len(keys))
    return TranslationTable(df)


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class TranslationTable:
    """Ordered rows × ordered languages, with invariant-preserving mutations."""

    def __init__(self, df: pd.DataFrame | None = None, next_suffix: int = 1) -> None:
        self._df = df if df is not None else _empty_frame([])
        self._next_suffix = next_suffix

    @classmethod
    def empty(cls, languages: Sequence[str] = ()) -> "TranslationTable":
        return cls(_empty_frame(list(languages)))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @property
    def df(self) -> pd.DataFrame:
        """The backing DataFrame. Read it, do not mutate it."""
        return self._df

    @property
    def languages(self) -> list[str]:
        return [str(c) for c in self._df.columns]

    @property
    def keys(self) -> list[str]:
        return [str(k) for k in self._df.index]

    def __len__(self) -> int:
        return len(self._df.index)

    def __contains__(self, key: object) -> bool:
        return key in self._df.index

    def has_language(self, language: str) -> bool:
        return language in self._df.columns

    def position(self, key: str) -> int:
        self._require_key(key)
        return self._df.index.get_loc(key)

    def value(self, key: str, language: str) -> str:
        self._require_key(key)
        self._require_language(language)
        return str(self._df.at[key, language])

    def row(self, key: str) -> Row:
        self._require_key(key)
        return Row(key=key, values={lang: str(self._df.at[key, lang]) for lang in self.languages})

    def rows(self) -> list[Row]:
        languages = self.languages
        return [
            Row(key=str(key), values={lang: str(v) for lang, v in zip(languages, values)})
            for key, values in zip(self._df.index, self._df.to_numpy(dtype=object))
        ]

    def column(self, language: str) -> dict[str, str]:
        """Return ``key → value`` for one language, in row order."""
        self._require_language(language)
        return {str(k): str(v) for k, v in self._df[language].items()}

    def missing_counts(self) -> dict[str, int]:
        return {lang: int((self._df[lang] == "").sum()) for lang in self.languages}

    def copy(self) -> "TranslationTable":
        return TranslationTable(self._df.copy(), next_suffix=self._next_suffix)

    def equals(self, other: "TranslationTable") -> bool:
        """Same languages, same keys in the same order, same values."""
        return (
            self.languages == other.languages
            and self.keys == other.keys
            and self.rows() == other.rows()
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TranslationTable):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TranslationTable(rows={len(self)}, languages={self.languages!r})"

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def edit_cell(self, key: str, language: str, value: object) -> str:
        """Set one translation and return the previous value."""
        self._require_key(key)
        self._require_language(language)
        old_value = str(self._df.at[key, language])
        self._df.at[key, language] = normalize_value(value)
        return old_value

    def rename_key(self, old_key: str, new_key: str) -> bool:
        """Rename a row in place. Returns False when nothing changed.

        Raises:
            UnknownKeyError: *old_key* is not a row.
            InvalidKeyError: *new_key* cannot be written as a key.
            DuplicateKeyError: *new_key* already names another row.
        """
        self._require_key(old_key)
        if new_key == old_key:
            return False
        new_key = validate_key(new_key)
        if new_key == old_key:
            return False
        if new_key in self._df.index:
            raise DuplicateKeyError(new_key)

        keys = list(self._df.index)
        keys[self._df.index.get_loc(old_key)] = new_key
        self._df.index = _key_index(keys)
        return True

    def add_row(self) -> str:
        """Append an empty row under a fresh placeholder key and return that key."""
        while True:
            key = f"{NEW_KEY_PREFIX}{self._next_suffix}"
            self._next_suffix += 1
            if key not in self._df.index:
                break
        self.insert_row(key, {}, len(self))
        return key

    def insert_row(self, key: str, values: dict[str, str], position: int) -> None:
        """Insert a row at *position* (clamped to the table bounds)."""
        if key in self._df.index:
            raise DuplicateKeyError(key)
        keys = list(self._df.index)
        keys.insert(max(0, min(position, len(keys))), key)
        self._df = self._df.reindex(_key_index(keys), fill_value="")
        for lang in self.languages:
            if lang in values:
                self._df.at[key, lang] = values[lang]

    def delete_row(self, key: str) -> Row | None:
        """Remove a row and return it; no-op returning None if absent."""
        if key not in self._df.index:
            return None
        removed = self.row(key)
        self._df = self._df.drop(index=key)
        return removed

    def sort_by_key(self) -> None:
        """Stable ascending sort by key (ordinal string comparison)."""
        self._df = self._df.sort_index(kind="mergesort")

    def reorder(self, keys: Sequence[str]) -> None:
        """Put rows in exactly the given key order (a permutation of the keys)."""
        if len(keys) != len(self) or set(keys) != set(self._df.index):
            raise ValueError("reorder() needs a permutation of the current keys")
        self._df = self._df.reindex(_key_index(keys))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_key(self, key: str) -> None:
        if key not in self._df.index:
            raise UnknownKeyError(key)

    def _require_language(self, language: str) -> None:
        if language not in self._df.columns:
            raise UnknownLanguageError(language)
