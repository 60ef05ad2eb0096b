"""Exporters: per-language .properties, zip bundle, grid CSV (always ;) and XLSX."""

from __future__ import annotations

import csv
import logging
import zipfile
from pathlib import Path

from properties_editor.core.errors import ArchiveGenerationError
from properties_editor.core.serializer import output_filename, serialize
from properties_editor.core.table import TranslationTable
from properties_editor.i18n import t

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Single language
# ---------------------------------------------------------------------------


class PropertiesExporter:
    """Write one language column as ``<language>.properties`` (UTF-8)."""

    def export(self, table: TranslationTable, language: str, path: Path) -> Path:
        text = serialize(table, language)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="")
        return path

    def export_to_dir(self, table: TranslationTable, language: str, folder: Path) -> Path:
        return self.export(table, language, folder / output_filename(language))


# ---------------------------------------------------------------------------
# Zip bundle
# ---------------------------------------------------------------------------


class ArchiveExporter:
    """Package every language into one zip, one ``<language>.properties`` entry each.

    Any failure is raised as ArchiveGenerationError and the partial archive
    is removed; the table is only read.
    """

    def export(self, table: TranslationTable, path: Path) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
                for language in table.languages:
                    zf.writestr(output_filename(language), serialize(table, language).encode("utf-8"))
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            _log.exception("Archive generation failed for %s", path)
            if path.is_file():
                path.unlink()
            raise ArchiveGenerationError(str(exc)) from exc
        _log.info("Wrote %d language file(s) to %s", len(table.languages), path)
        return path


# ---------------------------------------------------------------------------
# Grid overview: CSV (ALWAYS ; delimiter)
# ---------------------------------------------------------------------------


class GridCSVExporter:
    """Export the whole grid, one row per key and one column per language.

    - Delimiter: ;
    - Quoting: QUOTE_MINIMAL
    - Encoding: UTF-8 or UTF-8-BOM
    """

    def export(self, table: TranslationTable, path: Path, bom: bool = False) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        encoding = "utf-8-sig" if bom else "utf-8"

        with path.open("w", encoding=encoding, newline="") as f:
            writer = csv.writer(f, delimiter=";", quotechar='"', quoting=csv.QUOTE_MINIMAL)
            writer.writerow([t("export.key_header"), *table.languages])
            for row in table.rows():
                writer.writerow([row.key, *row.values.values()])
        return path


# ---------------------------------------------------------------------------
# Grid overview: XLSX
# ---------------------------------------------------------------------------


class GridXLSXExporter:
    """Export the whole grid to XLSX with a bold header and empty cells highlighted."""

    def export(self, table: TranslationTable, path: Path) -> Path:
        import openpyxl
        from openpyxl.styles import Font, PatternFill

        path.parent.mkdir(parents=True, exist_ok=True)
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = t("xlsx.sheet.translations")

        header_font = Font(bold=True)
        missing_fill = PatternFill(start_color="FFF8E1", end_color="FFF8E1", fill_type="solid")

        for col_idx, name in enumerate([t("export.key_header"), *table.languages], start=1):
            cell = ws.cell(row=1, column=col_idx, value=name)
            cell.font = header_font

        for row_idx, row in enumerate(table.rows(), start=2):
            ws.cell(row=row_idx, column=1, value=row.key)
            for col_idx, value in enumerate(row.values.values(), start=2):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                if not value:
                    cell.fill = missing_fill

        ws.freeze_panes = "B2"
        wb.save(path)
        return path
