"""
Unit tests for archive_files module.

Tests serialization, the forbidden-field export block and export file
naming and storage.
"""

import json
from dataclasses import replace

import pytest

from OC_Libs.ArchiveLib.archive_files import (
    ExportBlockedError,
    export_file_name,
    export_project,
    get_exports_dir,
    list_export_files,
    load_export_bytes,
    save_export_file,
)
from OC_Libs.ArchiveLib.secret_scan import find_forbidden_fields


class TestExportProject:
    """Tests for export_project function."""

    def test_returns_pretty_json_bytes(self, two_canvas_args):
        """Should return indented UTF-8 JSON ending with a newline."""
        data = export_project(two_canvas_args)

        assert data.endswith(b"\n")
        assert data.startswith(b'{\n  "assets"')
        assert json.loads(data)["format"] == "opencanvasjson"

    def test_same_input_same_bytes(self, two_canvas_args):
        """Should be byte-for-byte deterministic."""
        assert export_project(two_canvas_args) == export_project(two_canvas_args)

    def test_blocks_forbidden_field_in_node_data(self, two_canvas_args):
        """Should refuse to export a document containing a forbidden key."""
        leaking = replace(two_canvas_args)
        leaking.canvases = [c for c in two_canvas_args.canvases]
        leaking.canvases[0] = replace(
            leaking.canvases[0],
            graph=replace(
                leaking.canvases[0].graph,
                nodes=[{"id": "x", "data": {"config": {"api_key": "sk-123"}}}],
            ),
        )

        with pytest.raises(ExportBlockedError) as exc_info:
            export_project(leaking)

        assert exc_info.value.found == ["api_key"]


class TestFindForbiddenFields:
    """Tests for find_forbidden_fields function."""

    def test_clean_text(self):
        """Should report ok for text without forbidden names."""
        scan = find_forbidden_fields('{"name":"Loan Model"}')

        assert scan.ok
        assert scan.found == []

    def test_finds_nested_keys(self):
        """Should find forbidden keys at any depth."""
        scan = find_forbidden_fields('{"a":{"b":[{"password":"x"}]},"refresh_token":1}')

        assert not scan.ok
        assert set(scan.found) == {"password", "refresh_token"}


class TestExportFileName:
    """Tests for export_file_name function."""

    def test_sanitizes_project_name(self):
        """Should replace unsafe characters and append the compact timestamp."""
        assert export_file_name("My Project", "2026-02-27T12:00:00Z") == "My_Project_20260227120000.ocjson"

    def test_timestamp_keeps_whole_seconds(self):
        """Should keep the full YYYYMMDDHHMMSS stamp, dropping fractions and zone."""
        name = export_file_name("Budget", "2026-02-27T12:34:56.789+00:00")

        assert name == "Budget_20260227123456.ocjson"

    def test_empty_name_uses_default_stem(self):
        """Should fall back to a default stem for names with no safe characters."""
        assert export_file_name("///", "2026-02-27T12:00:00Z").startswith("open_canvas_")


class TestSaveExportFile:
    """Tests for save_export_file and related helpers."""

    def test_writes_into_exports_dir(self, tmp_path, two_canvas_args):
        """Should write the archive into the Exports directory."""
        path = save_export_file(tmp_path, two_canvas_args)

        assert path.parent == get_exports_dir(tmp_path)
        assert path.suffix == ".ocjson"
        assert load_export_bytes(path) == export_project(two_canvas_args)

    def test_never_overwrites(self, tmp_path, two_canvas_args):
        """Should add a numeric suffix when the name is taken."""
        first = save_export_file(tmp_path, two_canvas_args)
        second = save_export_file(tmp_path, two_canvas_args)

        assert first != second
        assert second.stem == f"{first.stem}_1"
        assert list_export_files(tmp_path) == sorted([first, second])

    def test_load_missing_file_raises(self, tmp_path):
        """Should raise FileNotFoundError for a missing archive."""
        with pytest.raises(FileNotFoundError):
            load_export_bytes(tmp_path / "missing.ocjson")
