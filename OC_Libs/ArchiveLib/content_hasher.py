"""
SHA-256 content hashing for project archives.

Two digests make up the hash manifest:

- a per-canvas hash over the canvas nodes, edges and the project variables
- a project hash over the project metadata, the position-sorted canvases
  and the asset manifest

Both are computed over canonical bytes, so key order and formatting never
change a digest. Positions are part of the hashed content: moving a canvas
changes the project hash even when its graph is untouched.

Functions:
    sha256_hex: Digest of raw bytes
    hash_canvas: Per-canvas digest
    hash_canvases: Digests for many canvases, optionally in parallel
    build_asset_manifest: Sorted asset summary used in the project hash
    project_hash_payload: The exact value hashed by hash_project
    hash_project: Project-level digest
"""

import concurrent.futures
import hashlib
from typing import Any, Dict, List, Optional, Sequence

from OC_Libs.ArchiveLib.canonical import canonicalize
from OC_Libs.ArchiveLib.document_model import (
    Asset,
    CanvasEntry,
    ExportArgs,
    GraphDocument,
    Variable,
    variables_to_dict,
)
from OC_Libs.constants import (
    ENCODING_STORAGE_REF,
    FIELD_ACTIVE_CANVAS_ID,
    FIELD_DATASET_REFS,
    FIELD_DESCRIPTION,
    FIELD_EDGES,
    FIELD_ENCODING,
    FIELD_GRAPH,
    FIELD_ID,
    FIELD_MIME_TYPE,
    FIELD_NAME,
    FIELD_NODES,
    FIELD_POSITION,
    FIELD_SHA256,
    FIELD_SIZE_BYTES,
    FIELD_STORAGE_PATH,
    FIELD_VARIABLES,
)


def sha256_hex(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def hash_canvas(graph: GraphDocument, variables: Dict[str, Variable]) -> str:
    """
    Compute the digest of one canvas.

    The graph's own identifiers (canvas id, project id) are not hashed, so an
    import that rewrites them keeps the content digest intact.

    Args:
        graph: Canvas graph document
        variables: Project variables (a snapshot is hashed with every canvas)

    Returns:
        64-character hex digest

    Raises:
        ValueError: If the content holds a non-finite number
        TypeError: If the content is not JSON serializable
    """
    payload = {
        FIELD_NODES: graph.nodes,
        FIELD_EDGES: graph.edges,
        FIELD_VARIABLES: variables_to_dict(variables),
    }
    return sha256_hex(canonicalize(payload))


def hash_canvases(
    canvases: Sequence[CanvasEntry],
    variables: Dict[str, Variable],
    use_threading: bool = False,
    max_workers: Optional[int] = None,
) -> List[str]:
    """
    Hash every canvas, returning digests in the order of ``canvases``.

    With ``use_threading`` the digests are computed in a thread pool; results
    are collected by index, so completion order never affects the output.

    Raises:
        ValueError / TypeError: From the first canvas that fails to hash
    """
    if not use_threading or len(canvases) < 2:
        return [hash_canvas(canvas.graph, variables) for canvas in canvases]

    digests: List[Optional[str]] = [None] * len(canvases)
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures: Dict[concurrent.futures.Future, int] = {
            executor.submit(hash_canvas, canvas.graph, variables): index
            for index, canvas in enumerate(canvases)
        }
        for future in concurrent.futures.as_completed(futures):
            digests[futures[future]] = future.result()

    return [str(digest) for digest in digests]


def asset_sort_key(asset: Asset) -> tuple:
    """Deterministic asset order: by name, then by storage path."""
    return (asset.name, asset.storage_path)


def build_asset_manifest(assets: Sequence[Asset]) -> List[Dict[str, Any]]:
    """Summarize assets for the project hash, sorted by (name, storage path)."""
    manifest: List[Dict[str, Any]] = []
    for asset in sorted(assets, key=asset_sort_key):
        entry: Dict[str, Any] = {
            FIELD_NAME: asset.name,
            FIELD_MIME_TYPE: asset.mime_type,
            FIELD_SIZE_BYTES: asset.size_bytes,
            FIELD_ENCODING: asset.encoding,
            FIELD_SHA256: asset.sha256,
        }
        if asset.encoding == ENCODING_STORAGE_REF:
            entry[FIELD_STORAGE_PATH] = asset.storage_path
        manifest.append(entry)
    return manifest


def project_hash_payload(args: ExportArgs) -> Dict[str, Any]:
    """Return the value whose canonical bytes make up the project hash."""
    sorted_canvases = sorted(args.canvases, key=lambda canvas: canvas.position)
    return {
        "project": {
            FIELD_ID: args.project_id,
            FIELD_NAME: args.project_name,
            FIELD_DESCRIPTION: args.project_description,
            FIELD_VARIABLES: variables_to_dict(args.variables),
            FIELD_ACTIVE_CANVAS_ID: args.active_canvas_id,
        },
        "canvases": [
            {
                FIELD_ID: canvas.id,
                FIELD_NAME: canvas.name,
                FIELD_POSITION: canvas.position,
                FIELD_GRAPH: {
                    FIELD_NODES: canvas.graph.nodes,
                    FIELD_EDGES: canvas.graph.edges,
                    FIELD_DATASET_REFS: canvas.graph.dataset_refs,
                },
            }
            for canvas in sorted_canvases
        ],
        "assetsManifest": build_asset_manifest(args.assets),
    }


def hash_project(args: ExportArgs) -> str:
    """
    Compute the aggregate project digest.

    Args:
        args: Project snapshot (canvases and assets in any order)

    Returns:
        64-character hex digest
    """
    return sha256_hex(canonicalize(project_hash_payload(args)))
