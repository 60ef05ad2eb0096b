"""Command pattern for undoable table edits.

Every user-visible change to a TranslationTable goes through a Command so
that the undo/redo stack stays consistent. A command whose execute() raises
(e.g. a rename collision) leaves the table untouched and is never pushed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from properties_editor.core.models import Row
from properties_editor.core.table import TranslationTable, normalize_value, validate_key


class Command(ABC):
    """Abstract base for all undoable commands."""

    @abstractmethod
    def execute(self) -> None: ...

    @abstractmethod
    def undo(self) -> None: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    def changed(self) -> bool:
        """False when the last execute() turned out to be a no-op."""
        return True


class EditCellCommand(Command):
    """Set one translation: table[key, language] = new_value."""

    def __init__(self, table: TranslationTable, key: str, language: str, new_value: str) -> None:
        self._table = table
        self._key = key
        self._language = language
        self._new_value = normalize_value(new_value)
        self._old_value: str | None = None

    def execute(self) -> None:
        self._old_value = self._table.edit_cell(self._key, self._language, self._new_value)

    def undo(self) -> None:
        if self._old_value is not None:
            self._table.edit_cell(self._key, self._language, self._old_value)

    @property
    def changed(self) -> bool:
        return self._old_value != self._new_value

    @property
    def description(self) -> str:
        return f"Edit {self._key} [{self._language}]: {self._old_value!r} → {self._new_value!r}"


class RenameKeyCommand(Command):
    """Rename a row's key; position and values are kept."""

    def __init__(self, table: TranslationTable, old_key: str, new_key: str) -> None:
        self._table = table
        self._old_key = old_key
        self._new_key = new_key
        self._applied = False

    def execute(self) -> None:
        self._applied = self._table.rename_key(self._old_key, self._new_key)
        if self._applied:
            self._new_key = validate_key(self._new_key)

    def undo(self) -> None:
        if self._applied:
            self._table.rename_key(self._new_key, self._old_key)

    @property
    def new_key(self) -> str:
        return self._new_key

    @property
    def changed(self) -> bool:
        return self._applied

    @property
    def description(self) -> str:
        return f"Rename {self._old_key} → {self._new_key}"


class AddRowCommand(Command):
    """Append an empty row under a placeholder key. Redo reuses the same key."""

    def __init__(self, table: TranslationTable) -> None:
        self._table = table
        self._key: str | None = None
        self._position = 0

    def execute(self) -> None:
        if self._key is None:
            self._key = self._table.add_row()
            self._position = self._table.position(self._key)
        else:
            self._table.insert_row(self._key, {}, self._position)

    def undo(self) -> None:
        if self._key is not None:
            self._table.delete_row(self._key)

    @property
    def key(self) -> str | None:
        return self._key

    @property
    def description(self) -> str:
        return f"Add row {self._key}"


class DeleteRowCommand(Command):
    """Remove a row; undo puts it back at its former position."""

    def __init__(self, table: TranslationTable, key: str) -> None:
        self._table = table
        self._key = key
        self._removed: Row | None = None
        self._position = 0

    def execute(self) -> None:
        if self._key in self._table:
            self._position = self._table.position(self._key)
        self._removed = self._table.delete_row(self._key)

    def undo(self) -> None:
        if self._removed is not None:
            self._table.insert_row(self._removed.key, self._removed.values, self._position)

    @property
    def changed(self) -> bool:
        return self._removed is not None

    @property
    def description(self) -> str:
        return f"Delete row {self._key}"


class SortByKeyCommand(Command):
    """Sort rows by key; undo restores the previous order."""

    def __init__(self, table: TranslationTable) -> None:
        self._table = table
        self._previous: list[str] = []

    def execute(self) -> None:
        self._previous = self._table.keys
        self._table.sort_by_key()

    def undo(self) -> None:
        self._table.reorder(self._previous)

    @property
    def changed(self) -> bool:
        return self._previous != self._table.keys

    @property
    def description(self) -> str:
        return "Sort rows by key"
