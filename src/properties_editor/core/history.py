"""CommandHistory: bounded undo/redo stack for table commands."""

from __future__ import annotations

import logging
from collections import deque

from properties_editor.core.commands import Command

_log = logging.getLogger(__name__)


class CommandHistory:
    """Executes commands and keeps the ones that changed something undoable."""

    def __init__(self, max_depth: int = 500) -> None:
        self._undo_stack: deque[Command] = deque(maxlen=max_depth)
        self._redo_stack: deque[Command] = deque(maxlen=max_depth)

    def push(self, cmd: Command) -> bool:
        """Execute *cmd*; record it only if it changed the table.

        Exceptions from execute() propagate and nothing is recorded.
        Recording a command clears the redo stack.
        """
        cmd.execute()
        if not cmd.changed:
            _log.debug("No-op, not recorded: %s", cmd.description)
            return False
        self._undo_stack.append(cmd)
        self._redo_stack.clear()
        return True

    def undo(self) -> Command | None:
        """Undo the most recent command."""
        if not self._undo_stack:
            return None
        cmd = self._undo_stack.pop()
        cmd.undo()
        self._redo_stack.append(cmd)
        return cmd

    def redo(self) -> Command | None:
        """Re-execute the most recently undone command."""
        if not self._redo_stack:
            return None
        cmd = self._redo_stack.pop()
        cmd.execute()
        self._undo_stack.append(cmd)
        return cmd

    @property
    def undo_count(self) -> int:
        return len(self._undo_stack)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_description(self) -> str | None:
        return self._undo_stack[-1].description if self._undo_stack else None

    @property
    def redo_description(self) -> str | None:
        return self._redo_stack[-1].description if self._redo_stack else None

    def clear(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()

    def to_dict(self) -> dict:
        return {
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
            "undo": self.undo_description,
            "redo": self.redo_description,
        }
