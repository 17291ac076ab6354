"""
Archive file serialization and storage for Open Canvas.

This module turns archive documents into bytes and back onto disk. Files
are written in the ``.ocjson`` format: pretty-printed canonical JSON, so the
bytes for one document are always identical.

Functions:
    serialize_document: Pretty canonical bytes of a document
    export_project: Build, serialize and secret-check an export
    export_file_name: File name for an export of a project
    get_exports_dir: Exports directory under a base directory
    list_export_files: List archive files in the Exports directory
    save_export_file: Export a project and write it without overwriting
    load_export_bytes: Read an archive file
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from OC_Libs.ArchiveLib.canonical import pretty_bytes
from OC_Libs.ArchiveLib.document_model import ExportArgs, ProjectDocument
from OC_Libs.ArchiveLib.export_builder import build_export
from OC_Libs.ArchiveLib.secret_scan import find_forbidden_fields
from OC_Libs.constants import (
    DEFAULT_EXPORT_STEM,
    EXPORT_EXTENSION,
    EXPORTS_DIR_NAME,
    FILENAME_REPLACEMENT_CHAR,
    MAX_FILENAME_STEM,
    SAFE_FILENAME_CHARS,
)

logger = logging.getLogger(__name__)


class ExportBlockedError(ValueError):
    """Raised when an export would contain forbidden fields."""

    def __init__(self, found: List[str]):
        self.found = list(found)
        super().__init__(f"Export blocked: forbidden fields detected: {', '.join(self.found)}")


def serialize_document(document: Union[ProjectDocument, dict]) -> bytes:
    """
    Serialize a document to its on-disk bytes.

    Raises:
        ValueError: If the document holds a non-finite number
    """
    return pretty_bytes(document)


def export_project(
    args: ExportArgs,
    use_threading: bool = False,
    max_workers: Optional[int] = None,
) -> bytes:
    """
    Build an archive for ``args`` and return its serialized bytes.

    Raises:
        ExportBlockedError: If a forbidden field name appears in the output
        ValueError: If the project holds a non-finite number
    """
    document = build_export(args, use_threading=use_threading, max_workers=max_workers)
    data = serialize_document(document)

    scan = find_forbidden_fields(data.decode("utf-8"))
    if not scan.ok:
        logger.warning(f"Export of '{args.project_name}' blocked: {', '.join(scan.found)}")
        raise ExportBlockedError(scan.found)

    return data


def _safe_stem(name: str) -> str:
    safe_name = "".join(
        c if c.isalnum() or c in SAFE_FILENAME_CHARS else FILENAME_REPLACEMENT_CHAR
        for c in name
    ).strip(FILENAME_REPLACEMENT_CHAR)
    return safe_name[:MAX_FILENAME_STEM] or DEFAULT_EXPORT_STEM


def _compact_timestamp(iso: str) -> str:
    return "".join(c for c in iso if c not in "-:T")[:14]


def export_file_name(project_name: str, exported_at: str) -> str:
    """
    Build the file name for an export.

    Example:
        >>> export_file_name("My Project", "2026-02-27T12:00:00Z")
        'My_Project_20260227120000.ocjson'
    """
    return f"{_safe_stem(project_name)}_{_compact_timestamp(exported_at)}{EXPORT_EXTENSION}"


def get_exports_dir(base_dir: Path) -> Path:
    exports_dir = Path(base_dir) / EXPORTS_DIR_NAME
    exports_dir.mkdir(parents=True, exist_ok=True)
    return exports_dir


def list_export_files(base_dir: Path) -> List[Path]:
    exports_dir = get_exports_dir(base_dir)
    return sorted(exports_dir.glob(f"*{EXPORT_EXTENSION}"))


def save_export_file(base_dir: Path, args: ExportArgs) -> Path:
    """
    Export a project into the Exports directory.

    Existing files are never overwritten; a numeric suffix is added instead.

    Args:
        base_dir: Base directory containing the Exports folder
        args: Project snapshot

    Returns:
        Path to the written archive

    Raises:
        ExportBlockedError: If the export contains forbidden fields
    """
    data = export_project(args)
    exports_dir = get_exports_dir(base_dir)

    file_name = export_file_name(args.project_name, args.exported_at)
    stem = file_name[: -len(EXPORT_EXTENSION)]
    export_path = exports_dir / file_name
    counter = 1
    while export_path.exists():
        export_path = exports_dir / f"{stem}_{counter}{EXPORT_EXTENSION}"
        counter += 1

    export_path.write_bytes(data)
    logger.info(f"Exported project '{args.project_name}' to {export_path}")
    return export_path


def load_export_bytes(export_path: Path) -> bytes:
    """
    Read an archive file.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    return Path(export_path).read_bytes()
