"""Core data model dataclasses.

Keep this module free of side effects so it can be imported from tests and
from the web layer without pulling in pandas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    WARNING = "WARNING"
    SUSPICION = "SUSPICION"

    def __lt__(self, other: "Severity") -> bool:
        order = {Severity.WARNING: 0, Severity.SUSPICION: 1}
        return order[self] < order[other]


# ---------------------------------------------------------------------------
# Parsed input
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedFile:
    """One uploaded file after parsing. Superseded wholesale on re-upload."""

    language: str
    properties: dict[str, str] = field(default_factory=dict)
    encoding: str = "utf-8"
    read_error: str | None = None  # set when the read failed; properties is then empty


@dataclass
class UploadSource:
    """A named file whose bytes are read asynchronously (e.g. a FastAPI UploadFile)."""

    name: str
    read: Callable[[], Awaitable[bytes]]


# ---------------------------------------------------------------------------
# Table rows
# ---------------------------------------------------------------------------


@dataclass
class Row:
    key: str
    values: dict[str, str]  # language → value, "" when missing

    def to_dict(self) -> dict:
        return {"key": self.key, "values": dict(self.values)}


# ---------------------------------------------------------------------------
# Heuristic check result
# ---------------------------------------------------------------------------


@dataclass
class TranslationCheck:
    """Outcome of the missing/length heuristics for one cell."""

    key: str
    language: str
    valid: bool = True
    message: str = ""
    severity: Severity | None = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "language": self.language,
            "valid": self.valid,
            "message": self.message,
            "severity": self.severity.value if self.severity else None,
        }
