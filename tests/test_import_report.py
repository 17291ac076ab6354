"""
Unit tests for import_report module.

Tests summaries, report structure, text rendering and saved report files.
"""

import json
from dataclasses import replace

from OC_Libs.ArchiveLib.asset_codec import reference
from OC_Libs.ArchiveLib.document_model import ImportIssue, ValidationResult
from OC_Libs.ArchiveLib.export_builder import build_export
from OC_Libs.ImportLib.import_report import (
    ImportOperations,
    build_import_report,
    extract_import_summary,
    format_import_report,
    report_file_name,
    report_to_json,
    save_import_report,
)

TIMESTAMP = "2026-02-27T12:30:45.123456+00:00"


def _report(document, **kwargs):
    operations = kwargs.pop(
        "operations",
        ImportOperations(project_created=True, new_project_id="new-1", canvases_imported=2,
                         assets_uploaded=1, unreferenced_assets=["scan.tif (storageRef: store/scan.tif)"]),
    )
    return build_import_report(
        "loan.ocjson",
        document,
        kwargs.pop("validation", ValidationResult()),
        operations,
        {"c1": "new-2", "c2": "new-3"},
        timestamp=TIMESTAMP,
    )


class TestExtractImportSummary:
    """Tests for extract_import_summary function."""

    def test_counts(self, args_with_asset, csv_bytes):
        """Should count canvases, variables and both asset kinds."""
        args = replace(args_with_asset, assets=list(args_with_asset.assets) + [
            reference("scan.tif", "image/tiff", 2048, "store/scan.tif"),
        ])

        summary = extract_import_summary(build_export(args))

        assert summary.project_name == "Loan Model"
        assert summary.canvas_count == 2
        assert summary.variable_count == 2
        assert summary.embedded_asset_count == 1
        assert summary.referenced_asset_count == 1
        assert summary.total_embedded_bytes == len(csv_bytes)
        assert summary.exported_at == "2026-02-27T12:00:00Z"
        assert summary.exporter_version == "1.4.0"
        assert summary.to_dict()["canvasCount"] == 2


class TestBuildImportReport:
    """Tests for build_import_report function."""

    def test_structure(self, args_with_asset):
        """Should carry file meta, counts, validation, operations and remap."""
        data = _report(build_export(args_with_asset)).to_dict()

        assert set(data) == {
            "timestamp", "fileName", "fileMeta", "counts", "validation", "operations", "canvasIdRemap",
        }
        assert data["fileMeta"] == {
            "format": "opencanvasjson",
            "version": 1,
            "exportedAt": "2026-02-27T12:00:00Z",
            "exporterVersion": "1.4.0",
            "projectName": "Loan Model",
        }
        assert data["counts"]["embeddedAssets"] == 1
        assert data["validation"] == {"passed": True, "errors": [], "warnings": []}
        assert data["canvasIdRemap"] == {"c1": "new-2", "c2": "new-3"}

    def test_default_timestamp_is_set(self, two_canvas_args):
        """Should stamp the report with the current time when none is given."""
        report = build_import_report("a.ocjson", build_export(two_canvas_args), ValidationResult(), ImportOperations())

        assert report.timestamp
        assert report.canvas_id_remap == {}

    def test_json_is_valid(self, two_canvas_args):
        """Should serialize to JSON with the same content as to_dict."""
        report = _report(build_export(two_canvas_args))

        assert json.loads(report_to_json(report)) == report.to_dict()


class TestFormatImportReport:
    """Tests for format_import_report function."""

    def test_success_text(self, two_canvas_args):
        """Should describe the outcome and operations."""
        text = format_import_report(_report(build_export(two_canvas_args)))

        assert text.startswith("Import Report: loan.ocjson")
        assert "Status: PASSED" in text
        assert "Canvases imported: 2" in text
        assert "Not restored: scan.tif (storageRef: store/scan.tif)" in text
        assert "c1 -> new-2" in text

    def test_failure_text_lists_errors(self, two_canvas_args):
        """Should list each error with its code and path."""
        validation = ValidationResult(
            errors=[ImportIssue("PROJECT_HASH_MISMATCH", "Project hash mismatch", "hashes.projectHash")],
            warnings=[ImportIssue("CANVAS_ID_MISMATCH", "graph id differs")],
        )

        text = format_import_report(_report(build_export(two_canvas_args), validation=validation,
                                            operations=ImportOperations()))

        assert "Status: FAILED" in text
        assert "[PROJECT_HASH_MISMATCH] at hashes.projectHash: Project hash mismatch" in text
        assert "[CANVAS_ID_MISMATCH] graph id differs" in text
        assert "Project created: no" in text


class TestSaveImportReport:
    """Tests for report_file_name and save_import_report functions."""

    def test_file_name(self, two_canvas_args):
        """Should derive a compact name from the timestamp."""
        assert report_file_name(_report(build_export(two_canvas_args))) == "import-report_2026-02-27T1230.json"

    def test_saves_into_reports_dir(self, tmp_path, two_canvas_args):
        """Should write JSON into Reports without overwriting."""
        report = _report(build_export(two_canvas_args))

        first = save_import_report(tmp_path, report)
        second = save_import_report(tmp_path, report)

        assert first.parent.name == "Reports"
        assert second.name == "import-report_2026-02-27T1230_1.json"
        assert json.loads(first.read_text(encoding="utf-8"))["fileName"] == "loan.ocjson"
