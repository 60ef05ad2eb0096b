"""Read a batch of uploads and parse them once every read has settled.

The merge step needs the union of all keys, so the reads are joined with
``asyncio.gather`` before anything is parsed. A failed read contributes an
empty mapping; its language column still exists.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from properties_editor.core.models import ParsedFile, UploadSource
from properties_editor.core.parser import PropertiesParser, language_from_filename

_log = logging.getLogger(__name__)


async def load_uploads(
    sources: Sequence[UploadSource],
    parser: PropertiesParser | None = None,
) -> list[ParsedFile]:
    """Read every source concurrently and return ParsedFiles in upload order."""
    parser = parser or PropertiesParser()
    results = await asyncio.gather(*(src.read() for src in sources), return_exceptions=True)

    parsed: list[ParsedFile] = []
    for src, result in zip(sources, results):
        language = language_from_filename(src.name)
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            _log.warning("Could not read %s, treating it as empty: %s", src.name, result)
            parsed.append(
                ParsedFile(language=language, read_error=str(result) or type(result).__name__)
            )
            continue
        parsed_file = parser.parse_bytes(result, language)
        _log.info(
            "Parsed %s → %s (%d keys, %s)",
            src.name,
            language,
            len(parsed_file.properties),
            parsed_file.encoding,
        )
        parsed.append(parsed_file)
    return parsed


def load_paths(paths: Sequence, parser: PropertiesParser | None = None) -> list[ParsedFile]:
    """Synchronous counterpart for files on disk; unreadable files become empty."""
    parser = parser or PropertiesParser()
    parsed: list[ParsedFile] = []
    for path in paths:
        try:
            parsed.append(parser.load(path))
        except OSError as exc:
            _log.warning("Could not read %s, treating it as empty: %s", path, exc)
            parsed.append(ParsedFile(language=language_from_filename(str(path)), read_error=str(exc)))
    return parsed
