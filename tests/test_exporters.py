"""Tests for the .properties, zip, CSV and XLSX exporters."""

from __future__ import annotations

import csv
import zipfile
from pathlib import Path

import pytest

from properties_editor.core.errors import ArchiveGenerationError
from properties_editor.core.exporters import (
    ArchiveExporter,
    GridCSVExporter,
    GridXLSXExporter,
    PropertiesExporter,
)
from properties_editor.core.parser import parse


class TestPropertiesExporter:
    def test_writes_language_file(self, tmp_path: Path, en_de_table):
        out = PropertiesExporter().export_to_dir(en_de_table, "de", tmp_path)
        assert out.name == "de.properties"
        assert out.read_bytes() == b"a=\nb=Banane\nc=Kirsche\n"

    def test_output_is_utf8(self, tmp_path: Path, app_table):
        out = PropertiesExporter().export(app_table, "fr", tmp_path / "sub" / "fr.properties")
        text = out.read_text(encoding="utf-8")
        assert parse(text, "fr")["app.title"] == "Éditeur de propriétés"


class TestArchiveExporter:
    def test_one_entry_per_language(self, tmp_path: Path, en_de_table):
        out = ArchiveExporter().export(en_de_table, tmp_path / "translations.zip")
        with zipfile.ZipFile(out) as zf:
            assert zf.namelist() == ["en.properties", "de.properties"]
            assert zf.read("en.properties").decode("utf-8") == "a=Apple\nb=Banana\nc=\n"

    def test_failure_raises_archive_error(self, tmp_path: Path, en_de_table):
        target = tmp_path / "translations.zip"
        target.mkdir()
        with pytest.raises(ArchiveGenerationError):
            ArchiveExporter().export(en_de_table, target)
        assert target.is_dir()

    def test_table_unchanged(self, tmp_path: Path, en_de_table):
        before = en_de_table.copy()
        ArchiveExporter().export(en_de_table, tmp_path / "t.zip")
        assert en_de_table == before


class TestGridCSVExporter:
    def test_header_and_rows(self, tmp_path: Path, en_de_table):
        out = GridCSVExporter().export(en_de_table, tmp_path / "grid.csv")
        with out.open(encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f, delimiter=";"))
        assert rows[0] == ["key", "en", "de"]
        assert rows[1:] == [["a", "Apple", ""], ["b", "Banana", "Banane"], ["c", "", "Kirsche"]]

    def test_bom(self, tmp_path: Path, en_de_table):
        out = GridCSVExporter().export(en_de_table, tmp_path / "grid.csv", bom=True)
        assert out.read_bytes().startswith(b"\xef\xbb\xbf")


class TestGridXLSXExporter:
    def test_read_back(self, tmp_path: Path, en_de_table):
        openpyxl = pytest.importorskip("openpyxl")
        out = GridXLSXExporter().export(en_de_table, tmp_path / "grid.xlsx")
        ws = openpyxl.load_workbook(out).active
        assert [c.value for c in ws[1]] == ["key", "en", "de"]
        assert ws.cell(row=3, column=3).value == "Banane"
        assert ws.cell(row=1, column=1).font.bold
        assert ws.freeze_panes == "B2"
