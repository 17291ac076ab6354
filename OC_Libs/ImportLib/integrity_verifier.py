"""
Hash manifest verification for parsed archives.

Recomputes every digest in ``hashes`` from the document content and records
a blocking error for each one that is missing or different. Any edit made
to nodes, edges or variables after export is caught here.

Functions:
    verify_integrity: Compare recomputed digests with the manifest
    validate_import: Security scan followed by integrity verification
"""

import logging
from typing import List

from OC_Libs.ArchiveLib.content_hasher import hash_canvas, hash_project
from OC_Libs.ArchiveLib.document_model import (
    ExportArgs,
    ImportIssue,
    ProjectDocument,
    ValidationResult,
)
from OC_Libs.ImportLib.security_validator import scan_document
from OC_Libs.constants import (
    CODE_CANVAS_HASH_MISMATCH,
    CODE_MISSING_CANVAS_HASH,
    CODE_PROJECT_HASH_MISMATCH,
    DIGEST_PREFIX_LENGTH,
)

logger = logging.getLogger(__name__)


def _prefix(digest: str) -> str:
    return f"{digest[:DIGEST_PREFIX_LENGTH]}..."


def verify_integrity(document: ProjectDocument, errors: List[ImportIssue]) -> None:
    """
    Recompute canvas and project digests and append mismatches to ``errors``.

    Does nothing when ``errors`` already holds entries: digests of a document
    that failed structural checks carry no meaning.

    Args:
        document: Parsed archive
        errors: Error list to extend in place
    """
    if errors:
        return

    variables = document.project.variables

    for index, canvas in enumerate(document.canvases):
        expected = document.hashes.canvas_hash(canvas.id)
        if expected is None:
            errors.append(
                ImportIssue(
                    code=CODE_MISSING_CANVAS_HASH,
                    message=f'No hash entry for canvas "{canvas.name}" ({canvas.id}).',
                    path="hashes.canvases",
                )
            )
            continue

        try:
            computed = hash_canvas(canvas.graph, variables)
        except (TypeError, ValueError, RecursionError) as e:
            errors.append(
                ImportIssue(
                    code=CODE_CANVAS_HASH_MISMATCH,
                    message=f'Canvas "{canvas.name}" could not be hashed: {e}',
                    path=f"canvases[{index}]",
                )
            )
            continue

        if computed != expected:
            logger.warning(f"Canvas hash mismatch for {canvas.id}")
            errors.append(
                ImportIssue(
                    code=CODE_CANVAS_HASH_MISMATCH,
                    message=(
                        f'Canvas "{canvas.name}" hash mismatch: expected {_prefix(expected)}, '
                        f"computed {_prefix(computed)}"
                    ),
                    path=f"canvases[{index}]",
                )
            )

    try:
        computed_project = hash_project(ExportArgs.from_document(document))
    except (TypeError, ValueError, RecursionError) as e:
        errors.append(
            ImportIssue(
                code=CODE_PROJECT_HASH_MISMATCH,
                message=f"Project hash could not be computed: {e}",
                path="hashes.projectHash",
            )
        )
        return

    if computed_project != document.hashes.project_hash:
        logger.warning("Project hash mismatch")
        errors.append(
            ImportIssue(
                code=CODE_PROJECT_HASH_MISMATCH,
                message=(
                    f"Project hash mismatch: expected {_prefix(document.hashes.project_hash)}, "
                    f"computed {_prefix(computed_project)}"
                ),
                path="hashes.projectHash",
            )
        )


def validate_import(document: ProjectDocument) -> ValidationResult:
    """
    Full pre-import validation: security scan, then integrity verification.

    Args:
        document: Parsed archive

    Returns:
        ValidationResult; ``ok`` is False when any blocking error was found

    Example:
        >>> result = validate_import(document)
        >>> result.ok, result.error_codes()
        (True, [])
    """
    result = scan_document(document)
    verify_integrity(document, result.errors)
    return result
