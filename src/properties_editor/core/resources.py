"""importlib.resources helpers for the bundled sample .properties files.

Works both in development (editable install) and in a packaged wheel.
"""

from __future__ import annotations

from pathlib import Path

#: Upload order of the bundled samples (column order of the sample table).
SAMPLE_LANGUAGES = ("en", "de", "fr")


def get_samples_dir() -> Path:
    """Return the absolute Path to resources/samples/ inside the package."""
    import importlib.resources as _ir

    # hatchling ships the samples as plain files, so this is a real directory
    return Path(str(_ir.files("properties_editor.resources.samples")))


def sample_paths() -> list[Path]:
    """Return the sample files in SAMPLE_LANGUAGES order."""
    folder = get_samples_dir()
    return [folder / f"{lang}.properties" for lang in SAMPLE_LANGUAGES]
