"""Session store for the properties-editor web app.

Each browser session owns one TranslationTable and its undo history. Sessions
live in memory (dict); exported files go to a per-session temp directory.
Sessions idle for longer than ``TTL_SECONDS`` are removed by a sweeper thread.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from properties_editor.core.commands import Command
from properties_editor.core.history import CommandHistory
from properties_editor.core.models import ParsedFile
from properties_editor.core.table import TranslationTable, merge

_log = logging.getLogger(__name__)

TTL_SECONDS = int(os.environ.get("PROPEDIT_SESSION_TTL", "3600"))


@dataclass
class Session:
    id: str
    work_dir: Path = field(default_factory=Path)
    table: TranslationTable = field(default_factory=TranslationTable)
    history: CommandHistory = field(default_factory=CommandHistory)
    # Upload info of the batch currently loaded
    filenames: list[str] = field(default_factory=list)
    encodings: dict[str, str] = field(default_factory=dict)
    read_errors: dict[str, str] = field(default_factory=dict)
    # Expiry
    last_used: float = field(default_factory=time.time)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def exports_dir(self) -> Path:
        path = self.work_dir / "exports"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def load(self, parsed_files: Iterable[ParsedFile], filenames: Iterable[str] = ()) -> int:
        """Replace the table with a fresh merge of *parsed_files*.

        Edits made to the previous table are discarded together with the
        undo history. Returns the number of discarded undoable edits.
        """
        parsed_files = list(parsed_files)
        with self.lock:
            discarded = self.history.undo_count
            if discarded:
                _log.warning(
                    "Session %s: re-upload discards %d unsaved edit(s)", self.id, discarded
                )
            self.table = merge(parsed_files)
            self.history.clear()
            self.filenames = list(filenames)
            self.encodings = {p.language: p.encoding for p in parsed_files if p.read_error is None}
            self.read_errors = {p.language: p.read_error for p in parsed_files if p.read_error}
        return discarded

    def run(self, cmd: Command) -> bool:
        """Execute *cmd* through the history under the session lock."""
        with self.lock:
            return self.history.push(cmd)


class SessionManager:
    """Thread-safe in-memory session store with automatic expiry."""

    def __init__(self, ttl: int = TTL_SECONDS, sweep: bool = True) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._ttl = ttl
        if sweep:
            self._start_cleanup_thread()

    def create(self) -> Session:
        session_id = str(uuid.uuid4())
        work_dir = Path(tempfile.mkdtemp(prefix=f"propedit_{session_id}_"))
        session = Session(id=session_id, work_dir=work_dir)
        with self._lock:
            self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is not None:
            session.last_used = time.time()
        return session

    def delete(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.work_dir.exists():
            shutil.rmtree(session.work_dir, ignore_errors=True)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def cleanup_expired(self, now: float | None = None) -> list[str]:
        now = time.time() if now is None else now
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items() if now - s.last_used > self._ttl
            ]
        for session_id in expired:
            self.delete(session_id)
        if expired:
            _log.info("Expired %d session(s)", len(expired))
        return expired

    def _start_cleanup_thread(self) -> None:
        def _loop() -> None:
            while True:
                time.sleep(300)  # check every 5 minutes
                self.cleanup_expired()

        t = threading.Thread(target=_loop, daemon=True)
        t.start()


# Singleton used by FastAPI routes
session_manager = SessionManager()
