"""
ImportLib - Archive import pipeline

Parse, migrate, validate, verify, plan and persist Open Canvas archives.
"""

from OC_Libs.ImportLib.import_parser import ImportParseError, parse_document, parse_document_dict
from OC_Libs.ImportLib.legacy_migrator import empty_graph, migrate_graph, parse_canvas_graph
from OC_Libs.ImportLib.security_validator import find_non_finite, scan_document
from OC_Libs.ImportLib.integrity_verifier import validate_import, verify_integrity
from OC_Libs.ImportLib.import_planner import (
    NormalizedImportPlan,
    PlannedCanvas,
    default_id_generator,
    deterministic_id_generator,
    plan_import,
)
from OC_Libs.ImportLib.import_report import (
    ImportOperations,
    ImportReport,
    ImportSummary,
    build_import_report,
    extract_import_summary,
    format_import_report,
    report_file_name,
    report_to_json,
    save_import_report,
)
from OC_Libs.ImportLib.import_orchestrator import (
    ImportOptions,
    ImportProgress,
    ImportResult,
    PreImportResult,
    pre_import,
    run_import,
)

__all__ = [
    "ImportParseError",
    "parse_document",
    "parse_document_dict",
    "empty_graph",
    "migrate_graph",
    "parse_canvas_graph",
    "find_non_finite",
    "scan_document",
    "validate_import",
    "verify_integrity",
    "NormalizedImportPlan",
    "PlannedCanvas",
    "default_id_generator",
    "deterministic_id_generator",
    "plan_import",
    "ImportOperations",
    "ImportReport",
    "ImportSummary",
    "build_import_report",
    "extract_import_summary",
    "format_import_report",
    "report_file_name",
    "report_to_json",
    "save_import_report",
    "ImportOptions",
    "ImportProgress",
    "ImportResult",
    "PreImportResult",
    "pre_import",
    "run_import",
]
