"""
Security and consistency scan for parsed archives.

``scan_document`` collects every problem it finds instead of stopping at
the first, so a caller can show the complete list before committing an
import. It never raises.

Blocking errors:
    SECRET_DETECTED      forbidden field name anywhere in the document
    EMAIL_DETECTED       email address in the project name or description
    INVALID_NUMBER       NaN or infinite value in variables, nodes or edges
    SCHEMA_VERSION       canvas graph not at the current schema version
    DUPLICATE_CANVAS_ID  two canvases share an id
    ASSET_TOO_LARGE      embedded asset above the embed ceiling

Warnings:
    CANVAS_ID_MISMATCH   graph.canvasId differs from the canvas id
                         (corrected during import planning)

Functions:
    scan_document: Run every scan over a document
    find_non_finite: Paths of non-finite numbers in a value tree
"""

import json
import logging
import math
import re
from typing import Any, List

import numpy as np

from OC_Libs.ArchiveLib.asset_codec import decoded_length
from OC_Libs.ArchiveLib.document_model import (
    EmbeddedAsset,
    ImportIssue,
    ProjectDocument,
    ValidationResult,
)
from OC_Libs.ArchiveLib.secret_scan import find_forbidden_fields
from OC_Libs.constants import (
    CODE_ASSET_TOO_LARGE,
    CODE_CANVAS_ID_MISMATCH,
    CODE_DUPLICATE_CANVAS_ID,
    CODE_EMAIL_DETECTED,
    CODE_INVALID_NUMBER,
    CODE_SCHEMA_VERSION,
    CODE_SECRET_DETECTED,
    EMBED_SIZE_LIMIT,
    GRAPH_SCHEMA_VERSION,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def find_non_finite(value: Any, path: str) -> List[str]:
    """
    Return the paths of all non-finite numbers in a value tree.

    Integers are always finite, whatever their size; only floats are checked.

    Example:
        >>> find_non_finite({"a": [1.0, float("nan")], "b": 2**64}, "data")
        ['data.a[1]']
    """
    found: List[str] = []
    stack = [(value, path)]
    while stack:
        item, item_path = stack.pop()
        if isinstance(item, np.ndarray):
            item = item.tolist()
        if isinstance(item, dict):
            children = [(child, f"{item_path}.{key}") for key, child in item.items()]
            stack.extend(reversed(children))
        elif isinstance(item, (list, tuple)):
            children = [(child, f"{item_path}[{index}]") for index, child in enumerate(item)]
            stack.extend(reversed(children))
        elif isinstance(item, (float, np.floating)) and not math.isfinite(item):
            found.append(item_path)
    return found


def _scan_secrets(document: ProjectDocument, errors: List[ImportIssue]) -> None:
    # Same layout as canonical_text, but tolerant of values the numeric scan
    # reports separately.
    try:
        text = json.dumps(
            document.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
    except RecursionError:
        # Such a document cannot be hashed either; verify_integrity blocks it.
        logger.warning("Document too deeply nested for the forbidden-field scan")
        return

    scan = find_forbidden_fields(text)
    for field_name in scan.found:
        errors.append(
            ImportIssue(
                code=CODE_SECRET_DETECTED,
                message=f'Forbidden field "{field_name}" found in import data.',
                path=field_name,
            )
        )


def _scan_emails(document: ProjectDocument, errors: List[ImportIssue]) -> None:
    if EMAIL_PATTERN.search(document.project.name or ""):
        errors.append(
            ImportIssue(
                code=CODE_EMAIL_DETECTED,
                message="Email address detected in project name.",
                path="project.name",
            )
        )
    if EMAIL_PATTERN.search(document.project.description or ""):
        errors.append(
            ImportIssue(
                code=CODE_EMAIL_DETECTED,
                message="Email address detected in project description.",
                path="project.description",
            )
        )


def _scan_numbers(document: ProjectDocument, errors: List[ImportIssue]) -> None:
    for key, variable in document.project.variables.items():
        for path in find_non_finite(variable.value, f'project.variables["{key}"].value'):
            errors.append(
                ImportIssue(
                    code=CODE_INVALID_NUMBER,
                    message=f'Variable "{variable.name}" has a NaN or Infinity value.',
                    path=path,
                )
            )

    for index, canvas in enumerate(document.canvases):
        prefix = f"canvases[{index}].graph"
        for section, payload in (("nodes", canvas.graph.nodes), ("edges", canvas.graph.edges)):
            for path in find_non_finite(payload, f"{prefix}.{section}"):
                errors.append(
                    ImportIssue(
                        code=CODE_INVALID_NUMBER,
                        message=f'Canvas "{canvas.name}" {section} contain a NaN or Infinity value.',
                        path=path,
                    )
                )


def _scan_canvases(
    document: ProjectDocument,
    errors: List[ImportIssue],
    warnings: List[ImportIssue],
) -> None:
    seen_ids = set()
    for index, canvas in enumerate(document.canvases):
        if canvas.graph.schema_version != GRAPH_SCHEMA_VERSION:
            errors.append(
                ImportIssue(
                    code=CODE_SCHEMA_VERSION,
                    message=(
                        f'Canvas "{canvas.name}" has schemaVersion {canvas.graph.schema_version}, '
                        f"expected {GRAPH_SCHEMA_VERSION}."
                    ),
                    path=f"canvases[{index}].graph.schemaVersion",
                )
            )

        if canvas.graph.canvas_id and canvas.graph.canvas_id != canvas.id:
            warnings.append(
                ImportIssue(
                    code=CODE_CANVAS_ID_MISMATCH,
                    message=(
                        f'Canvas "{canvas.name}" graph.canvasId "{canvas.graph.canvas_id}" differs from '
                        f'canvas.id "{canvas.id}". Will normalize on import.'
                    ),
                    path=f"canvases[{index}].graph.canvasId",
                )
            )

        if canvas.id in seen_ids:
            errors.append(
                ImportIssue(
                    code=CODE_DUPLICATE_CANVAS_ID,
                    message=f'Duplicate canvas ID "{canvas.id}" at index {index}.',
                    path=f"canvases[{index}].id",
                )
            )
        seen_ids.add(canvas.id)


def _scan_assets(document: ProjectDocument, errors: List[ImportIssue]) -> None:
    for index, asset in enumerate(document.assets):
        if not isinstance(asset, EmbeddedAsset):
            continue
        size = max(asset.size_bytes, decoded_length(asset.data))
        if size > EMBED_SIZE_LIMIT:
            errors.append(
                ImportIssue(
                    code=CODE_ASSET_TOO_LARGE,
                    message=f'Embedded asset "{asset.name}" is {size} bytes (max {EMBED_SIZE_LIMIT}).',
                    path=f"assets[{index}]",
                )
            )


def scan_document(document: ProjectDocument) -> ValidationResult:
    """
    Run every security and consistency scan over a parsed document.

    Args:
        document: Parsed archive

    Returns:
        ValidationResult with blocking errors and informational warnings
    """
    errors: List[ImportIssue] = []
    warnings: List[ImportIssue] = []

    _scan_secrets(document, errors)
    _scan_emails(document, errors)
    _scan_numbers(document, errors)
    _scan_canvases(document, errors, warnings)
    _scan_assets(document, errors)

    if errors:
        logger.warning(f"Security scan found {len(errors)} error(s): {', '.join(i.code for i in errors)}")

    return ValidationResult(errors=errors, warnings=warnings)
