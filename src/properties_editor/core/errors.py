"""Exceptions raised by the table and exporters.

Malformed input lines are not represented here: the parser drops them
without raising.
"""

from __future__ import annotations


class PropertiesEditorError(Exception):
    """Base class for all domain errors."""


class DuplicateKeyError(PropertiesEditorError, ValueError):
    """A rename target already names a different row."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key {key!r} already exists")
        self.key = key


class InvalidKeyError(PropertiesEditorError, ValueError):
    """A key that could not be written to and read back from a .properties file."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Invalid key {key!r}: {reason}")
        self.key = key
        self.reason = reason


class UnknownKeyError(PropertiesEditorError, KeyError):
    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown key {self.key!r}"


class UnknownLanguageError(PropertiesEditorError, KeyError):
    def __init__(self, language: str) -> None:
        super().__init__(language)
        self.language = language

    def __str__(self) -> str:
        return f"Unknown language {self.language!r}"


class ArchiveGenerationError(PropertiesEditorError):
    """Packaging all languages into one archive failed."""
