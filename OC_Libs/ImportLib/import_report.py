"""
Import summaries and reports.

An ``ImportSummary`` is shown before an import is committed; an
``ImportReport`` is produced after every import attempt, successful or not,
and records the validation outcome, the operations performed and the canvas
id remap. Reports can be saved as JSON or rendered as text.

Classes:
    ImportSummary: Pre-import overview of an archive
    ImportOperations: What an import actually did
    ImportReport: Auditable record of one import attempt

Functions:
    extract_import_summary: Summarize a parsed archive
    build_import_report: Assemble a report
    report_to_json: Pretty JSON text of a report
    format_import_report: Human-readable report
    report_file_name: File name for a saved report
    save_import_report: Write a report into a Reports directory
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from OC_Libs.ArchiveLib.document_model import (
    EmbeddedAsset,
    ProjectDocument,
    ValidationResult,
)
from OC_Libs.constants import REPORTS_DIR_NAME

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    project_name: str
    canvas_count: int
    variable_count: int
    embedded_asset_count: int
    referenced_asset_count: int
    total_embedded_bytes: int
    exported_at: str
    exporter_version: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "canvasCount": self.canvas_count,
            "variableCount": self.variable_count,
            "embeddedAssetCount": self.embedded_asset_count,
            "referencedAssetCount": self.referenced_asset_count,
            "totalEmbeddedBytes": self.total_embedded_bytes,
            "exportedAt": self.exported_at,
            "exporterVersion": self.exporter_version,
        }


def extract_import_summary(document: ProjectDocument) -> ImportSummary:
    """
    Summarize a parsed archive for a confirmation prompt.

    Example:
        >>> summary = extract_import_summary(document)
        >>> summary.canvas_count, summary.embedded_asset_count
        (2, 1)
    """
    embedded = [asset for asset in document.assets if isinstance(asset, EmbeddedAsset)]
    return ImportSummary(
        project_name=document.project.name,
        canvas_count=len(document.canvases),
        variable_count=len(document.project.variables),
        embedded_asset_count=len(embedded),
        referenced_asset_count=len(document.assets) - len(embedded),
        total_embedded_bytes=sum(asset.size_bytes for asset in embedded),
        exported_at=document.exported_at,
        exporter_version=document.exporter.app_version,
    )


@dataclass
class ImportOperations:
    project_created: bool = False
    new_project_id: Optional[str] = None
    canvases_imported: int = 0
    assets_uploaded: int = 0
    unreferenced_assets: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectCreated": self.project_created,
            "newProjectId": self.new_project_id,
            "canvasesImported": self.canvases_imported,
            "assetsUploaded": self.assets_uploaded,
            "unreferencedAssets": list(self.unreferenced_assets),
        }


@dataclass
class ImportReport:
    """Record of one import attempt.

    Attributes:
        timestamp: ISO time the report was built
        file_name: Name of the imported file
        file_meta: format, version, exportedAt, exporterVersion, projectName
        counts: canvases, variables, embeddedAssets, referencedAssets,
            totalEmbeddedBytes
        validation: Validation outcome (including import-time failures)
        operations: What was persisted
        canvas_id_remap: Old canvas id -> new canvas id
    """
    timestamp: str
    file_name: str
    file_meta: Dict[str, Any]
    counts: Dict[str, int]
    validation: ValidationResult
    operations: ImportOperations
    canvas_id_remap: Dict[str, str] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.validation.ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "fileName": self.file_name,
            "fileMeta": dict(self.file_meta),
            "counts": dict(self.counts),
            "validation": {
                "passed": self.validation.ok,
                "errors": [issue.to_dict() for issue in self.validation.errors],
                "warnings": [issue.to_dict() for issue in self.validation.warnings],
            },
            "operations": self.operations.to_dict(),
            "canvasIdRemap": dict(self.canvas_id_remap),
        }


def build_import_report(
    file_name: str,
    document: ProjectDocument,
    validation: ValidationResult,
    operations: ImportOperations,
    canvas_id_remap: Optional[Dict[str, str]] = None,
    timestamp: Optional[str] = None,
) -> ImportReport:
    """
    Assemble the report for an import attempt.

    Args:
        file_name: Name of the imported file
        document: Parsed archive
        validation: Validation outcome
        operations: Operations performed
        canvas_id_remap: Old -> new canvas ids (empty when nothing was created)
        timestamp: Report time (default: now, UTC)

    Returns:
        ImportReport
    """
    summary = extract_import_summary(document)
    return ImportReport(
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        file_name=file_name,
        file_meta={
            "format": document.format,
            "version": document.version,
            "exportedAt": document.exported_at,
            "exporterVersion": document.exporter.app_version,
            "projectName": document.project.name,
        },
        counts={
            "canvases": summary.canvas_count,
            "variables": summary.variable_count,
            "embeddedAssets": summary.embedded_asset_count,
            "referencedAssets": summary.referenced_asset_count,
            "totalEmbeddedBytes": summary.total_embedded_bytes,
        },
        validation=validation,
        operations=operations,
        canvas_id_remap=dict(canvas_id_remap or {}),
    )


def report_to_json(report: ImportReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def format_import_report(report: ImportReport) -> str:
    """
    Render a report as readable text.

    Example:
        >>> print(format_import_report(report))
        Import Report: budget.ocjson
          Project: Budget
          Status: PASSED
        ...
    """
    operations = report.operations
    counts = report.counts

    lines = [
        f"Import Report: {report.file_name}",
        f"  Project: {report.file_meta.get('projectName', '')}",
        f"  Exported: {report.file_meta.get('exportedAt', '')} (app {report.file_meta.get('exporterVersion', '')})",
        f"  Status: {'PASSED' if report.passed else 'FAILED'}",
        "",
        "Contents:",
        f"  Canvases: {counts.get('canvases', 0)}",
        f"  Variables: {counts.get('variables', 0)}",
        f"  Embedded assets: {counts.get('embeddedAssets', 0)} ({counts.get('totalEmbeddedBytes', 0)} bytes)",
        f"  Referenced assets: {counts.get('referencedAssets', 0)}",
        "",
    ]

    if report.validation.errors:
        lines.append(f"Errors ({len(report.validation.errors)}):")
        for issue in report.validation.errors:
            location = f" at {issue.path}" if issue.path else ""
            lines.append(f"  [{issue.code}]{location}: {issue.message}")
        lines.append("")

    if report.validation.warnings:
        lines.append(f"Warnings ({len(report.validation.warnings)}):")
        for issue in report.validation.warnings:
            lines.append(f"  [{issue.code}] {issue.message}")
        lines.append("")

    lines.append("Operations:")
    lines.append(f"  Project created: {'yes' if operations.project_created else 'no'}")
    if operations.new_project_id:
        lines.append(f"  New project id: {operations.new_project_id}")
    lines.append(f"  Canvases imported: {operations.canvases_imported}")
    lines.append(f"  Assets uploaded: {operations.assets_uploaded}")
    for name in operations.unreferenced_assets:
        lines.append(f"  Not restored: {name}")

    if report.canvas_id_remap:
        lines.append("")
        lines.append("Canvas id remap:")
        for old_id, new_id in report.canvas_id_remap.items():
            lines.append(f"  {old_id} -> {new_id}")

    return "\n".join(lines)


def report_file_name(report: ImportReport) -> str:
    """
    File name for a saved report.

    Example:
        >>> report_file_name(report)  # timestamp 2026-02-27T12:30:45.123+00:00
        'import-report_2026-02-27T1230.json'
    """
    stamp = "".join(c for c in report.timestamp if c not in ":.")[:15]
    return f"import-report_{stamp}.json"


def save_import_report(base_dir: Path, report: ImportReport) -> Path:
    """
    Write a report into ``<base_dir>/Reports``.

    Existing files are never overwritten; a numeric suffix is added instead.

    Returns:
        Path to the written report
    """
    reports_dir = Path(base_dir) / REPORTS_DIR_NAME
    reports_dir.mkdir(parents=True, exist_ok=True)

    file_name = report_file_name(report)
    stem = file_name[: -len(".json")]
    report_path = reports_dir / file_name
    counter = 1
    while report_path.exists():
        report_path = reports_dir / f"{stem}_{counter}.json"
        counter += 1

    report_path.write_text(report_to_json(report), encoding="utf-8")
    logger.info(f"Saved import report to {report_path}")
    return report_path
