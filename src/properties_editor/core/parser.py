"""PropertiesParser: turn raw .properties text into a key → value mapping.

Handles:
- Comment lines (``#`` or ``!``) and blank lines, which are skipped
- ``key=value`` lines split on the first ``=``, both sides stripped
- Lines without ``=`` (or with an empty key), which are dropped silently
- Duplicate keys: the last occurrence wins
- Encoding detection of raw upload bytes via chardet (first 32 KB)

There is no escape, ``\\uXXXX`` or continuation-line handling.
"""

from __future__ import annotations

import codecs
import logging
import re
from pathlib import Path

import chardet

from properties_editor.core.models import ParsedFile

_log = logging.getLogger(__name__)

PROPERTIES_SUFFIX = ".properties"

_COMMENT_MARKERS = ("#", "!")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class PropertiesParser:
    """Parse .properties content, from text, raw bytes or a file on disk."""

    def parse(self, content: str, language: str) -> dict[str, str]:
        """Return the ``key → value`` mapping found in *content*.

        Args:
            content: Full text of one .properties file.
            language: Label of the file; only used for logging.

        Returns:
            A dict in first-seen key order. Never raises on bad lines.
        """
        properties: dict[str, str] = {}
        dropped = 0

        for lineno, line in enumerate(_LINE_BREAK_RE.split(content), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith(_COMMENT_MARKERS):
                continue

            sep = line.find("=")
            if sep == -1:
                dropped += 1
                _log.debug("%s:%d: no '=' separator, line dropped", language, lineno)
                continue

            key = line[:sep].strip()
            if not key:
                dropped += 1
                _log.debug("%s:%d: empty key, line dropped", language, lineno)
                continue

            properties[key] = line[sep + 1 :].strip()

        if dropped:
            _log.debug("%s: %d malformed line(s) dropped", language, dropped)
        return properties

    def parse_bytes(self, raw_bytes: bytes, language: str) -> ParsedFile:
        """Decode *raw_bytes* and parse them into a ParsedFile."""
        text, encoding = self.decode(raw_bytes)
        return ParsedFile(
            language=language,
            properties=self.parse(text, language),
            encoding=encoding,
        )

    def load(self, path: str | Path, language: str | None = None) -> ParsedFile:
        """Read a .properties file from disk.

        The language label defaults to the file name without its
        ``.properties`` suffix.
        """
        path = Path(path)
        label = language or language_from_filename(path.name)
        return self.parse_bytes(path.read_bytes(), label)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def decode(raw_bytes: bytes) -> tuple[str, str]:
        """Return ``(text, encoding)`` for *raw_bytes*; undecodable bytes are replaced."""
        if raw_bytes.startswith(codecs.BOM_UTF8):
            encoding = "utf-8-sig"
        elif raw_bytes.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
            encoding = "utf-16"
        else:
            encoding = PropertiesParser._detect_encoding(raw_bytes)
        return raw_bytes.decode(encoding, errors="replace"), encoding

    @staticmethod
    def _detect_encoding(raw_bytes: bytes) -> str:
        sample = raw_bytes[:32768]
        if not sample:
            return "utf-8"
        result = chardet.detect(sample)
        encoding = result.get("encoding") or "utf-8"
        confidence = result.get("confidence") or 0.0
        # Low confidence: UTF-8 is the safest guess for translation files
        if confidence < 0.7:
            encoding = "utf-8"
        normalized = encoding.lower().replace("-", "").replace("_", "")
        alias_map = {
            "utf8": "utf-8",
            "ascii": "utf-8",
            "latin1": "latin-1",
            "iso88591": "latin-1",
            "windows1252": "cp1252",
        }
        candidate = alias_map.get(normalized, encoding)
        try:
            candidate = codecs.lookup(candidate).name
        except LookupError:
            candidate = "utf-8"
        return candidate


def language_from_filename(name: str) -> str:
    """Derive a language label from an upload file name.

    ``"i18n/messages_de.properties"`` → ``"messages_de"``; names without the
    suffix are returned unchanged (minus any directory part).
    """
    base = re.split(r"[\\/]", name)[-1]
    if base.lower().endswith(PROPERTIES_SUFFIX) and len(base) > len(PROPERTIES_SUFFIX):
        return base[: -len(PROPERTIES_SUFFIX)]
    return base


_default_parser = PropertiesParser()


def parse(content: str, language: str) -> dict[str, str]:
    """Module-level shortcut for :meth:`PropertiesParser.parse`."""
    return _default_parser.parse(content, language)
