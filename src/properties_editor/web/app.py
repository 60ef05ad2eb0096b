"""properties-editor web app: FastAPI backend.

Workflow:
  POST /api/sessions                 → upload .properties files → session_id
  GET  /api/sessions/{id}/rows       → paginated/filtered grid rows
  PUT  /api/sessions/{id}/cells      → edit one translation
  POST /api/sessions/{id}/rows       → add a placeholder row
  PUT  /api/sessions/{id}/rows/{key} → rename a key
  GET  /api/sessions/{id}/download/{language} → one .properties file
  GET  /api/sessions/{id}/download-all        → zip of every language

Run with:
  uvicorn properties_editor.web.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable
from urllib.parse import quote

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from fastapi.staticfiles import StaticFiles

from properties_editor.core.checks import (
    available_sources,
    check_table,
    check_translation,
    suggest_translation,
)
from properties_editor.core.commands import (
    AddRowCommand,
    Command,
    DeleteRowCommand,
    EditCellCommand,
    RenameKeyCommand,
    SortByKeyCommand,
)
from properties_editor.core.errors import (
    ArchiveGenerationError,
    DuplicateKeyError,
    InvalidKeyError,
    PropertiesEditorError,
    UnknownKeyError,
    UnknownLanguageError,
)
from properties_editor.core.exporters import (
    ArchiveExporter,
    GridCSVExporter,
    GridXLSXExporter,
    PropertiesExporter,
)
from properties_editor.core.loader import load_paths, load_uploads
from properties_editor.core.models import UploadSource
from properties_editor.core.parser import PROPERTIES_SUFFIX
from properties_editor.core.resources import sample_paths
from properties_editor.core.serializer import output_filename
from properties_editor.i18n import severity_label, t
from properties_editor.web.sessions import Session, session_manager

# ---------------------------------------------------------------------------
# Configuration via environment variables
# ---------------------------------------------------------------------------

_ENV = os.environ.get("PROPEDIT_ENV", "dev")

_MAX_UPLOAD_MB = int(os.environ.get("PROPEDIT_MAX_UPLOAD_MB", "10"))
_MAX_UPLOAD_BYTES = _MAX_UPLOAD_MB * 1024 * 1024

# CORS origins: "*" = any, otherwise a comma-separated list
_CORS_ORIGINS_RAW = os.environ.get("PROPEDIT_CORS_ORIGINS", "*")
_CORS_ORIGINS: list[str] = (
    ["*"]
    if _CORS_ORIGINS_RAW in ("*", "")
    else [o.strip() for o in _CORS_ORIGINS_RAW.split(",") if o.strip()]
)
# allow_credentials cannot be combined with allow_origins=["*"]
_CORS_ALLOW_CREDENTIALS = "*" not in _CORS_ORIGINS

_ALLOWED_EXTENSIONS = {PROPERTIES_SUFFIX, ".txt"}

_ARCHIVE_NAME = "translations.zip"

_logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title=t("app.title"),
    description=t("app.description"),
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_CORS_ORIGINS,
    allow_credentials=_CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(_static_dir)), name="static")


@app.on_event("startup")
async def _log_startup() -> None:
    _logger.info(
        "Properties Editor started: env=%s max_upload=%dMB cors=%s",
        _ENV,
        _MAX_UPLOAD_MB,
        _CORS_ORIGINS_RAW,
    )


# ---------------------------------------------------------------------------
# Root / health
# ---------------------------------------------------------------------------


@app.get("/", include_in_schema=False)
async def root():
    index = _static_dir / "index.html"
    return HTMLResponse(index.read_text(encoding="utf-8"))


@app.get("/health")
async def health():
    from properties_editor import __version__
    return {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# Session creation (upload)
# ---------------------------------------------------------------------------


@app.post("/api/sessions")
async def create_session(files: list[UploadFile] = File(...)):
    """Upload a batch of .properties files and create an editing session."""
    _validate_uploads(files)
    session = session_manager.create()
    await _load_uploads_into(session, files)
    _logger.info("Session %s created from %d file(s)", session.id, len(files))
    return _summary(session)


@app.post("/api/sessions/sample")
async def create_sample_session():
    """Create a session preloaded with the bundled en/de/fr samples."""
    session = session_manager.create()
    paths = sample_paths()
    session.load(load_paths(paths), [p.name for p in paths])
    return _summary(session)


@app.put("/api/sessions/{session_id}/files")
async def replace_files(session_id: str, files: list[UploadFile] = File(...)):
    """Replace the session's table with a new batch. Prior edits are discarded."""
    session = _get_session(session_id)
    _validate_uploads(files)
    discarded = await _load_uploads_into(session, files)
    return {**_summary(session), "discarded_edits": discarded}


def _validate_uploads(files: list[UploadFile]) -> None:
    if not files:
        raise HTTPException(status_code=400, detail=t("error.no_files"))
    for f in files:
        name = f.filename or ""
        if Path(name).suffix.lower() not in _ALLOWED_EXTENSIONS:
            raise HTTPException(status_code=415, detail=t("error.unsupported_file", name=name))
        if f.size is not None and f.size > _MAX_UPLOAD_BYTES:
            raise HTTPException(
                status_code=413, detail=t("error.too_large", name=name, mb=_MAX_UPLOAD_MB)
            )


async def _load_uploads_into(session: Session, files: list[UploadFile]) -> int:
    sources = [UploadSource(name=f.filename or "upload", read=f.read) for f in files]
    parsed = await load_uploads(sources)
    return session.load(parsed, [s.name for s in sources])


# ---------------------------------------------------------------------------
# Session status
# ---------------------------------------------------------------------------


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str):
    return _summary(_get_session(session_id))


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    if not session_manager.delete(session_id):
        raise HTTPException(status_code=404, detail=t("error.session_not_found"))
    return {"ok": True}


# ---------------------------------------------------------------------------
# Rows (paginated + filterable)
# ---------------------------------------------------------------------------


@app.get("/api/sessions/{session_id}/rows")
async def get_rows(
    session_id: str,
    page: int = 1,
    per_page: int = 100,
    q: str = "",
    missing_only: bool = False,
):
    """Return grid rows in table order, optionally filtered by text or gaps."""
    session = _get_session(session_id)
    with session.lock:
        rows = session.table.rows()
        languages = session.table.languages

    needle = q.strip().lower()
    if needle:
        rows = [
            r for r in rows
            if needle in r.key.lower() or any(needle in v.lower() for v in r.values.values())
        ]
    if missing_only:
        rows = [r for r in rows if any(v == "" for v in r.values.values())]

    page = max(1, page)
    per_page = max(1, per_page)
    total = len(rows)
    start = (page - 1) * per_page
    page_items = rows[start : start + per_page]

    return {
        "languages": languages,
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": max(1, (total + per_page - 1) // per_page),
        "rows": [
            {
                **r.to_dict(),
                "missing": [lang for lang, v in r.values.items() if v == ""],
            }
            for r in page_items
        ],
    }


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@app.put("/api/sessions/{session_id}/cells")
async def edit_cell(session_id: str, request: Request):
    """Body: ``{"key": ..., "language": ..., "value": ...}``."""
    session = _get_session(session_id)
    body = await request.json()
    key = str(body.get("key", ""))
    language = str(body.get("language", ""))
    # Build, run and read back against the same table; a re-upload may swap it
    with session.lock:
        changed = _run(session, EditCellCommand(session.table, key, language, body.get("value", "")))
        return {
            "ok": True,
            "changed": changed,
            "key": key,
            "language": language,
            "value": session.table.value(key, language),
            "history": session.history.to_dict(),
        }


@app.post("/api/sessions/{session_id}/rows")
async def add_row(session_id: str):
    """Append a row under a placeholder key; the client is expected to rename it."""
    session = _get_session(session_id)
    with session.lock:
        cmd = AddRowCommand(session.table)
        _run(session, cmd)
        return {"ok": True, "key": cmd.key, "history": session.history.to_dict()}


@app.put("/api/sessions/{session_id}/rows/{key:path}")
async def rename_key(session_id: str, key: str, request: Request):
    """Body: ``{"new_key": ...}``. 409 if the new key is already taken."""
    session = _get_session(session_id)
    body = await request.json()
    with session.lock:
        cmd = RenameKeyCommand(session.table, key, str(body.get("new_key", "")))
        changed = _run(session, cmd)
        return {
            "ok": True,
            "changed": changed,
            "key": cmd.new_key if changed else key,
            "history": session.history.to_dict(),
        }


@app.delete("/api/sessions/{session_id}/rows/{key:path}")
async def delete_row(session_id: str, key: str):
    session = _get_session(session_id)
    with session.lock:
        changed = _run(session, DeleteRowCommand(session.table, key))
        return {"ok": True, "changed": changed, "history": session.history.to_dict()}


@app.post("/api/sessions/{session_id}/sort")
async def sort_rows(session_id: str):
    session = _get_session(session_id)
    with session.lock:
        changed = _run(session, SortByKeyCommand(session.table))
        return {"ok": True, "changed": changed, "history": session.history.to_dict()}


@app.post("/api/sessions/{session_id}/undo")
async def undo(session_id: str):
    session = _get_session(session_id)
    with session.lock:
        cmd = session.history.undo()
        return {
            "ok": cmd is not None,
            "undone": cmd.description if cmd else None,
            "history": session.history.to_dict(),
        }


@app.post("/api/sessions/{session_id}/redo")
async def redo(session_id: str):
    session = _get_session(session_id)
    with session.lock:
        cmd = session.history.redo()
        return {
            "ok": cmd is not None,
            "redone": cmd.description if cmd else None,
            "history": session.history.to_dict(),
        }


# ---------------------------------------------------------------------------
# Heuristics (suggestion / checks)
# ---------------------------------------------------------------------------


@app.get("/api/sessions/{session_id}/suggest")
async def suggest(session_id: str, key: str, target: str, source: str = ""):
    """Copy another language's value as a suggestion for (key, target).

    Without *source*, the first language (in column order) that has a value
    is used.
    """
    session = _get_session(session_id)
    with session.lock:
        try:
            session.table.value(key, target)  # 404 for an unknown key or target
            sources = available_sources(session.table, key, target)
            if not source:
                if not sources:
                    return {"key": key, "target": target, "source": None, "suggestion": "", "sources": []}
                source = sources[0]
            suggestion = suggest_translation(session.table, key, source, target)
        except PropertiesEditorError as exc:
            raise _http_error(exc) from exc
    return {
        "key": key,
        "target": target,
        "source": source,
        "suggestion": suggestion,
        "sources": sources,
    }


@app.get("/api/sessions/{session_id}/checks")
async def checks(session_id: str, key: str = "", language: str = ""):
    """Heuristic flags: one cell when key and language are given, else the whole table."""
    session = _get_session(session_id)
    with session.lock:
        try:
            if key and language:
                results = [check_translation(session.table, key, language)]
            else:
                results = check_table(session.table)
        except PropertiesEditorError as exc:
            raise _http_error(exc) from exc
    return {
        "total": len(results),
        "checks": [
            {**r.to_dict(), "label": severity_label(r.severity.value) if r.severity else None}
            for r in results
        ],
    }


# ---------------------------------------------------------------------------
# Downloads
# ---------------------------------------------------------------------------


@app.get("/api/sessions/{session_id}/download/{language}")
async def download_language(session_id: str, language: str):
    """Download one language as ``<language>.properties``."""
    session = _get_session(session_id)
    with session.lock:
        if not session.table.has_language(language) and language.endswith(PROPERTIES_SUFFIX):
            language = language[: -len(PROPERTIES_SUFFIX)]
        if not session.table.has_language(language):
            raise _http_error(UnknownLanguageError(language))
        table = session.table
        content = _render(
            session, PROPERTIES_SUFFIX, lambda p: PropertiesExporter().export(table, language, p)
        )
    filename = output_filename(language)
    _logger.info("Session %s: download %s", session.id, filename)
    return _attachment(content, "text/plain; charset=utf-8", filename)


@app.get("/api/sessions/{session_id}/download-all")
async def download_all(session_id: str):
    """Download every language as one zip archive."""
    session = _get_session(session_id)
    with session.lock:
        table = session.table
        try:
            content = _render(session, ".zip", lambda p: ArchiveExporter().export(table, p))
        except ArchiveGenerationError as exc:
            raise HTTPException(status_code=500, detail=t("error.archive_failed")) from exc
    return _attachment(content, "application/zip", _ARCHIVE_NAME)


@app.get("/api/sessions/{session_id}/export/{fmt}")
async def export_grid(session_id: str, fmt: str, bom: bool = False):
    """Export the whole grid as CSV (;) or XLSX for review outside the editor."""
    session = _get_session(session_id)
    fmt = fmt.lower()
    with session.lock:
        table = session.table
        if fmt == "csv":
            content = _render(session, ".csv", lambda p: GridCSVExporter().export(table, p, bom=bom))
            media_type = "text/csv; charset=utf-8"
        elif fmt == "xlsx":
            content = _render(session, ".xlsx", lambda p: GridXLSXExporter().export(table, p))
            media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        else:
            raise HTTPException(status_code=404, detail=t("error.unknown_format", fmt=fmt))
    return _attachment(content, media_type, f"translations.{fmt}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_session(session_id: str) -> Session:
    session = session_manager.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=t("error.session_not_found"))
    return session


def _run(session: Session, cmd: Command) -> bool:
    try:
        return session.run(cmd)
    except PropertiesEditorError as exc:
        raise _http_error(exc) from exc


def _render(session: Session, suffix: str, write: Callable[[Path], object]) -> bytes:
    """Run an exporter into a file unique to this request and return its bytes.

    The file is removed before returning, so concurrent downloads on one
    session never share (or truncate) an export file.
    """
    fd, name = tempfile.mkstemp(suffix=suffix, dir=session.exports_dir)
    os.close(fd)
    path = Path(name)
    try:
        write(path)
        return path.read_bytes()
    finally:
        path.unlink(missing_ok=True)


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    quoted = quote(filename)
    if quoted == filename:
        disposition = f'attachment; filename="{filename}"'
    else:
        disposition = f"attachment; filename*=utf-8''{quoted}"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": disposition},
    )


def _http_error(exc: PropertiesEditorError) -> HTTPException:
    if isinstance(exc, DuplicateKeyError):
        return HTTPException(status_code=409, detail=t("error.duplicate_key", key=exc.key))
    if isinstance(exc, InvalidKeyError):
        return HTTPException(
            status_code=422, detail=t("error.invalid_key", key=exc.key, reason=exc.reason)
        )
    if isinstance(exc, UnknownKeyError):
        return HTTPException(status_code=404, detail=t("error.unknown_key", key=exc.key))
    if isinstance(exc, UnknownLanguageError):
        return HTTPException(
            status_code=404, detail=t("error.unknown_language", language=exc.language)
        )
    return HTTPException(status_code=500, detail=str(exc))


def _summary(session: Session) -> dict:
    with session.lock:
        table = session.table
        return {
            "session_id": session.id,
            "filenames": session.filenames,
            "languages": table.languages,
            "rows": len(table),
            "missing": table.missing_counts(),
            "encodings": session.encodings,
            "read_errors": session.read_errors,
            "history": session.history.to_dict(),
        }
