"""i18n: user-facing strings for properties-editor.

Usage::

    from properties_editor.i18n import t, severity_label

    t("error.duplicate_key", key="app.title")
    severity_label("SUSPICION")   # → "Suspicious"

Only English is shipped. Other languages can be added by swapping the
active dictionary.
"""

from __future__ import annotations

EN: dict[str, str] = {
    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    "app.title": "Properties Editor",
    "app.description": "Edit multiple .properties files side by side",

    # ------------------------------------------------------------------
    # API errors
    # ------------------------------------------------------------------
    "error.session_not_found": "Session not found or expired",
    "error.no_files": "No files were uploaded.",
    "error.unsupported_file": "Unsupported file type: {name}. Upload .properties files.",
    "error.too_large": "{name} exceeds the maximum upload size ({mb} MB).",
    "error.duplicate_key": "The key {key!r} already exists. Choose another name.",
    "error.invalid_key": "Invalid key {key!r}: {reason}.",
    "error.unknown_key": "Unknown key {key!r}.",
    "error.unknown_language": "Unknown language {language!r}.",
    "error.archive_failed": (
        "Could not build the zip archive. Download each language separately instead."
    ),
    "error.unknown_format": "Unknown export format {fmt!r}. Use csv or xlsx.",

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------
    "check.missing": "Missing translation",
    "check.length": "Translation length looks suspicious",

    # ------------------------------------------------------------------
    # Severity labels
    # ------------------------------------------------------------------
    "severity.WARNING": "Warning",
    "severity.SUSPICION": "Suspicious",

    # ------------------------------------------------------------------
    # Grid exports (exporters.py)
    # ------------------------------------------------------------------
    "export.key_header": "key",
    "xlsx.sheet.translations": "Translations",
}

_ACTIVE: dict[str, str] = EN


def t(msg_id: str, /, **kwargs: object) -> str:
    """Return the string for *msg_id*, with optional format substitutions.

    *msg_id* is positional-only so that ``key=`` can be passed as a
    substitution. Unknown ids are returned as-is (fail-visible).
    """
    template = _ACTIVE.get(msg_id, msg_id)
    if kwargs:
        try:
            return template.format(**kwargs)
        except (KeyError, ValueError):
            return template
    return template


def severity_label(value: str) -> str:
    """Return the display label for a Severity value string."""
    return _ACTIVE.get(f"severity.{value}", value)
