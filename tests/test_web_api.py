"""Tests for the session HTTP API.

Covers:
  - POST /api/sessions (upload) and /api/sessions/sample
  - GET /rows with search, gap filter and pagination
  - cell edit, row add / rename / delete, sort, undo / redo
  - suggestion and check endpoints
  - per-language download, zip download, grid exports
  - 404 / 409 / 415 / 422 error mapping
"""

from __future__ import annotations

import io
import threading
import time
import zipfile

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from properties_editor.core.models import ParsedFile  # noqa: E402
from properties_editor.web.app import app  # noqa: E402
from properties_editor.web.sessions import session_manager  # noqa: E402

client = TestClient(app)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

EN = b"# English\napp.title=Properties Editor\nbutton.save=Save\nbutton.cancel=Cancel\n"
DE = b"app.title=Eigenschaften-Editor\nbutton.save=Speichern\nmenu.file=Datei\n"


def _files(*items: tuple[str, bytes]) -> list[tuple]:
    return [("files", (name, io.BytesIO(data), "text/plain")) for name, data in items]


def _upload(*items: tuple[str, bytes]) -> str:
    if not items:
        items = (("en.properties", EN), ("de.properties", DE))
    resp = client.post("/api/sessions", files=_files(*items))
    assert resp.status_code == 200, resp.text
    return resp.json()["session_id"]


def _rows(session_id: str, **params) -> dict:
    resp = client.get(f"/api/sessions/{session_id}/rows", params=params)
    assert resp.status_code == 200
    return resp.json()


def _keys(session_id: str) -> list[str]:
    return [r["key"] for r in _rows(session_id, per_page=1000)["rows"]]


# ---------------------------------------------------------------------------
# Upload / session
# ---------------------------------------------------------------------------


class TestUpload:
    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_upload_merges_files(self):
        resp = client.post(
            "/api/sessions", files=_files(("en.properties", EN), ("de.properties", DE))
        )
        data = resp.json()
        assert data["languages"] == ["en", "de"]
        assert data["rows"] == 4
        assert data["missing"] == {"en": 1, "de": 1}
        assert data["filenames"] == ["en.properties", "de.properties"]
        assert data["history"]["can_undo"] is False

    def test_rows_sorted_with_empty_gaps(self):
        session_id = _upload()
        data = _rows(session_id)
        assert [r["key"] for r in data["rows"]] == [
            "app.title",
            "button.cancel",
            "button.save",
            "menu.file",
        ]
        cancel = data["rows"][1]
        assert cancel["values"] == {"en": "Cancel", "de": ""}
        assert cancel["missing"] == ["de"]

    def test_unsupported_extension(self):
        resp = client.post("/api/sessions", files=_files(("data.csv", b"a;b\n")))
        assert resp.status_code == 415

    def test_index_builds_links_as_text(self):
        resp = client.get("/")
        assert resp.status_code == 200
        assert "a.textContent = label" in resp.text
        assert ".innerHTML = links" not in resp.text

    def test_unknown_session(self):
        assert client.get("/api/sessions/does-not-exist").status_code == 404

    def test_delete_session(self):
        session_id = _upload()
        assert client.delete(f"/api/sessions/{session_id}").status_code == 200
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_sample_session(self):
        resp = client.post("/api/sessions/sample")
        assert resp.status_code == 200
        data = resp.json()
        assert data["languages"] == ["en", "de", "fr"]
        assert data["rows"] > 0

    def test_reupload_replaces_table(self):
        session_id = _upload()
        client.put(
            f"/api/sessions/{session_id}/cells",
            json={"key": "menu.file", "language": "en", "value": "File"},
        )
        resp = client.put(
            f"/api/sessions/{session_id}/files", files=_files(("fr.properties", b"k=v\n"))
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["discarded_edits"] == 1
        assert data["languages"] == ["fr"]
        assert _keys(session_id) == ["k"]


# ---------------------------------------------------------------------------
# Rows listing
# ---------------------------------------------------------------------------


class TestRows:
    def test_search_matches_key_or_value(self):
        session_id = _upload()
        assert [r["key"] for r in _rows(session_id, q="speich")["rows"]] == ["button.save"]
        assert _rows(session_id, q="BUTTON")["total"] == 2

    def test_missing_only(self):
        session_id = _upload()
        keys = [r["key"] for r in _rows(session_id, missing_only=True)["rows"]]
        assert keys == ["button.cancel", "menu.file"]

    def test_pagination(self):
        session_id = _upload()
        data = _rows(session_id, page=2, per_page=3)
        assert data["pages"] == 2
        assert [r["key"] for r in data["rows"]] == ["menu.file"]


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TestMutations:
    def test_edit_cell(self):
        session_id = _upload()
        resp = client.put(
            f"/api/sessions/{session_id}/cells",
            json={"key": "button.cancel", "language": "de", "value": "Abbrechen"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["changed"] is True
        assert data["value"] == "Abbrechen"
        assert data["history"]["can_undo"] is True

    def test_edit_unknown_key(self):
        session_id = _upload()
        resp = client.put(
            f"/api/sessions/{session_id}/cells",
            json={"key": "nope", "language": "de", "value": "x"},
        )
        assert resp.status_code == 404

    def test_edit_unknown_language(self):
        session_id = _upload()
        resp = client.put(
            f"/api/sessions/{session_id}/cells",
            json={"key": "app.title", "language": "it", "value": "x"},
        )
        assert resp.status_code == 404

    def test_add_then_rename_row(self):
        session_id = _upload()
        new_key = client.post(f"/api/sessions/{session_id}/rows").json()["key"]
        assert _keys(session_id)[-1] == new_key

        resp = client.put(
            f"/api/sessions/{session_id}/rows/{new_key}", json={"new_key": "help.about"}
        )
        assert resp.status_code == 200
        assert resp.json()["key"] == "help.about"
        assert _keys(session_id)[-1] == "help.about"

    def test_rename_collision_is_409(self):
        session_id = _upload()
        resp = client.put(
            f"/api/sessions/{session_id}/rows/button.save", json={"new_key": "app.title"}
        )
        assert resp.status_code == 409
        assert "'app.title'" in resp.json()["detail"]
        assert "button.save" in _keys(session_id)

    def test_rename_invalid_is_422(self):
        session_id = _upload()
        resp = client.put(
            f"/api/sessions/{session_id}/rows/button.save", json={"new_key": "a=b"}
        )
        assert resp.status_code == 422
        assert "'a=b'" in resp.json()["detail"]

    def test_delete_row(self):
        session_id = _upload()
        resp = client.delete(f"/api/sessions/{session_id}/rows/menu.file")
        assert resp.json()["changed"] is True
        assert "menu.file" not in _keys(session_id)

    def test_sort_undo_redo(self):
        session_id = _upload()
        client.put(f"/api/sessions/{session_id}/rows/app.title", json={"new_key": "zz.title"})
        assert _keys(session_id)[0] == "zz.title"

        client.post(f"/api/sessions/{session_id}/sort")
        assert _keys(session_id)[-1] == "zz.title"

        resp = client.post(f"/api/sessions/{session_id}/undo")
        assert resp.json()["ok"] is True
        assert _keys(session_id)[0] == "zz.title"

        client.post(f"/api/sessions/{session_id}/redo")
        assert _keys(session_id)[-1] == "zz.title"

    def test_undo_with_empty_history(self):
        session_id = _upload()
        resp = client.post(f"/api/sessions/{session_id}/undo")
        assert resp.json()["ok"] is False


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


class TestHeuristics:
    def test_suggest_from_first_source(self):
        session_id = _upload()
        resp = client.get(
            f"/api/sessions/{session_id}/suggest",
            params={"key": "button.cancel", "target": "de"},
        )
        data = resp.json()
        assert data["source"] == "en"
        assert data["suggestion"] == "Cancel"

    def test_suggest_does_not_modify(self):
        session_id = _upload()
        client.get(
            f"/api/sessions/{session_id}/suggest",
            params={"key": "button.cancel", "target": "de"},
        )
        row = _rows(session_id, q="button.cancel")["rows"][0]
        assert row["values"]["de"] == ""

    def test_suggest_unknown_target(self):
        session_id = _upload()
        resp = client.get(
            f"/api/sessions/{session_id}/suggest",
            params={"key": "button.cancel", "target": "it"},
        )
        assert resp.status_code == 404

    def test_checks_flag_missing(self):
        session_id = _upload()
        data = client.get(f"/api/sessions/{session_id}/checks").json()
        flagged = {(c["key"], c["language"]) for c in data["checks"]}
        assert ("button.cancel", "de") in flagged
        assert ("menu.file", "en") in flagged

    def test_single_cell_check(self):
        session_id = _upload()
        data = client.get(
            f"/api/sessions/{session_id}/checks",
            params={"key": "menu.file", "language": "en"},
        ).json()
        assert data["checks"][0]["severity"] == "WARNING"
        assert data["checks"][0]["label"] == "Warning"


# ---------------------------------------------------------------------------
# Downloads
# ---------------------------------------------------------------------------


class TestDownloads:
    def test_download_language(self):
        session_id = _upload()
        resp = client.get(f"/api/sessions/{session_id}/download/de")
        assert resp.status_code == 200
        assert resp.text == (
            "app.title=Eigenschaften-Editor\n"
            "button.cancel=\n"
            "button.save=Speichern\n"
            "menu.file=Datei\n"
        )
        assert "de.properties" in resp.headers["content-disposition"]

    def test_download_with_suffix(self):
        session_id = _upload()
        resp = client.get(f"/api/sessions/{session_id}/download/en.properties")
        assert resp.status_code == 200
        assert resp.text.startswith("app.title=Properties Editor\n")

    def test_download_reflects_edits(self):
        session_id = _upload()
        client.put(
            f"/api/sessions/{session_id}/cells",
            json={"key": "menu.file", "language": "en", "value": "File"},
        )
        resp = client.get(f"/api/sessions/{session_id}/download/en")
        assert "menu.file=File\n" in resp.text

    def test_download_unknown_language(self):
        session_id = _upload()
        assert client.get(f"/api/sessions/{session_id}/download/it").status_code == 404

    def test_download_all(self):
        session_id = _upload()
        resp = client.get(f"/api/sessions/{session_id}/download-all")
        assert resp.status_code == 200
        with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
            assert zf.namelist() == ["en.properties", "de.properties"]

    def test_export_csv(self):
        session_id = _upload()
        resp = client.get(f"/api/sessions/{session_id}/export/csv")
        assert resp.status_code == 200
        assert resp.text.splitlines()[0] == "key;en;de"

    def test_export_xlsx(self):
        session_id = _upload()
        resp = client.get(f"/api/sessions/{session_id}/export/xlsx")
        assert resp.status_code == 200
        assert resp.content[:2] == b"PK"

    def test_export_unknown_format(self):
        session_id = _upload()
        assert client.get(f"/api/sessions/{session_id}/export/pdf").status_code == 404

    def test_download_sets_content_length(self):
        session_id = _upload()
        resp = client.get(f"/api/sessions/{session_id}/download/en")
        assert int(resp.headers["content-length"]) == len(resp.content)

    def test_downloads_leave_no_export_files(self):
        session_id = _upload()
        session = session_manager.get(session_id)
        client.get(f"/api/sessions/{session_id}/download/en")
        client.get(f"/api/sessions/{session_id}/download-all")
        client.get(f"/api/sessions/{session_id}/export/csv")
        assert list(session.exports_dir.iterdir()) == []

    def test_successive_downloads_are_independent(self):
        session_id = _upload()
        first = client.get(f"/api/sessions/{session_id}/download-all").content
        client.put(
            f"/api/sessions/{session_id}/cells",
            json={"key": "menu.file", "language": "en", "value": "File"},
        )
        second = client.get(f"/api/sessions/{session_id}/download-all").content
        with zipfile.ZipFile(io.BytesIO(first)) as zf:
            assert "menu.file=\n" in zf.read("en.properties").decode("utf-8")
        with zipfile.ZipFile(io.BytesIO(second)) as zf:
            assert "menu.file=File\n" in zf.read("en.properties").decode("utf-8")

    def test_non_ascii_language_filename(self):
        session_id = _upload(("español.properties", b"k=v\n"))
        resp = client.get(f"/api/sessions/{session_id}/download/español")
        assert resp.status_code == 200
        assert resp.text == "k=v\n"
        assert "espa%C3%B1ol.properties" in resp.headers["content-disposition"]


# ---------------------------------------------------------------------------
# Concurrency with re-upload
# ---------------------------------------------------------------------------


class TestReloadDuringEdit:
    def test_edit_waiting_on_lock_targets_the_new_table(self):
        session_id = _upload()
        session = session_manager.get(session_id)
        result: dict = {}

        def send_edit() -> None:
            resp = TestClient(app).put(
                f"/api/sessions/{session_id}/cells",
                json={"key": "menu.file", "language": "en", "value": "File"},
            )
            result["status"] = resp.status_code

        with session.lock:
            worker = threading.Thread(target=send_edit)
            worker.start()
            time.sleep(0.3)
            session.load([ParsedFile(language="fr", properties={"k": "v"})], ["fr.properties"])
        worker.join(timeout=10)

        # The edit runs against the reloaded table, where the key is unknown
        assert result["status"] == 404
        assert not session.history.can_undo
        assert session.table.column("fr") == {"k": "v"}
