"""
ArchiveLib - Project archive model and export

This module builds portable, content-addressed project archives:
deterministic canonical serialization, SHA-256 hash manifests, asset
encoding and the export file surface.
"""

from OC_Libs.ArchiveLib.document_model import (
    AssetHash,
    CanvasEntry,
    CanvasHash,
    EmbeddedAsset,
    ExportArgs,
    ExporterInfo,
    GraphDocument,
    HashManifest,
    ImportIssue,
    ProjectDocument,
    ProjectMeta,
    ReferencedAsset,
    ValidationResult,
    Variable,
    asset_from_dict,
)
from OC_Libs.ArchiveLib.canonical import canonicalize, canonical_text, pretty_bytes
from OC_Libs.ArchiveLib.content_hasher import hash_canvas, hash_project, sha256_hex
from OC_Libs.ArchiveLib.asset_codec import (
    asset_from_bytes,
    decode,
    embed,
    embed_file,
    guess_mime_type,
    reference,
    verify_asset_bytes,
)
from OC_Libs.ArchiveLib.secret_scan import SecretScan, find_forbidden_fields
from OC_Libs.ArchiveLib.export_builder import build_export, snapshot_export_args
from OC_Libs.ArchiveLib.archive_files import (
    ExportBlockedError,
    export_file_name,
    export_project,
    get_exports_dir,
    list_export_files,
    load_export_bytes,
    save_export_file,
    serialize_document,
)

__all__ = [
    "AssetHash",
    "CanvasEntry",
    "CanvasHash",
    "EmbeddedAsset",
    "ExportArgs",
    "ExporterInfo",
    "GraphDocument",
    "HashManifest",
    "ImportIssue",
    "ProjectDocument",
    "ProjectMeta",
    "ReferencedAsset",
    "ValidationResult",
    "Variable",
    "asset_from_dict",
    "canonicalize",
    "canonical_text",
    "pretty_bytes",
    "hash_canvas",
    "hash_project",
    "sha256_hex",
    "asset_from_bytes",
    "decode",
    "embed",
    "embed_file",
    "guess_mime_type",
    "reference",
    "verify_asset_bytes",
    "SecretScan",
    "find_forbidden_fields",
    "build_export",
    "snapshot_export_args",
    "ExportBlockedError",
    "export_file_name",
    "export_project",
    "get_exports_dir",
    "list_export_files",
    "load_export_bytes",
    "save_export_file",
    "serialize_document",
]
