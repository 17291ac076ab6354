"""
Export builder for project archives.

Assembles a ``ProjectDocument`` from a project snapshot. Building is pure:
no file or network I/O happens here, and the document never shares mutable
state with the snapshot it was built from.

Steps:
    1. Sort canvases by position
    2. Hash each canvas (optionally in parallel)
    3. Sort assets by (name, storage path)
    4. Build the asset hash manifest
    5. Hash the project over the sorted data
    6. Assemble the document

Functions:
    build_export: Build an archive document from ExportArgs
    snapshot_export_args: Read a stored project into ExportArgs
"""

import copy
import logging
from dataclasses import replace
from typing import Iterable, Optional

from OC_Libs.ArchiveLib.content_hasher import asset_sort_key, hash_canvases, hash_project
from OC_Libs.ArchiveLib.document_model import (
    Asset,
    AssetHash,
    CanvasEntry,
    CanvasHash,
    ExportArgs,
    ExporterInfo,
    HashManifest,
    ProjectDocument,
    ProjectMeta,
    Variable,
)

logger = logging.getLogger(__name__)


def build_export(
    args: ExportArgs,
    use_threading: bool = False,
    max_workers: Optional[int] = None,
) -> ProjectDocument:
    """
    Build a complete archive document.

    Args:
        args: Project snapshot
        use_threading: Hash canvases in a thread pool (default: False)
        max_workers: Maximum hashing threads (default: None = executor default)

    Returns:
        ProjectDocument with canvases sorted by position, assets sorted by
        (name, storage path) and a fully populated hash manifest

    Raises:
        ValueError: If canvas or project content holds a non-finite number
        TypeError: If canvas or project content is not JSON serializable

    Example:
        >>> document = build_export(args)
        >>> len(document.hashes.project_hash)
        64
    """
    snapshot = copy.deepcopy(args)

    sorted_canvases = sorted(snapshot.canvases, key=lambda canvas: canvas.position)
    canvas_digests = hash_canvases(
        sorted_canvases,
        snapshot.variables,
        use_threading=use_threading,
        max_workers=max_workers,
    )
    canvas_hashes = [
        CanvasHash(id=canvas.id, hash=digest)
        for canvas, digest in zip(sorted_canvases, canvas_digests)
    ]

    sorted_assets = sorted(snapshot.assets, key=asset_sort_key)
    asset_hashes = [
        AssetHash(path_or_name=asset.path_or_name, sha256=asset.sha256, bytes=asset.size_bytes)
        for asset in sorted_assets
    ]

    project_hash = hash_project(replace(snapshot, canvases=sorted_canvases, assets=sorted_assets))

    logger.info(
        f"Built export for project '{snapshot.project_name}': "
        f"{len(sorted_canvases)} canvas(es), {len(sorted_assets)} asset(s), hash {project_hash[:16]}"
    )

    return ProjectDocument(
        exported_at=snapshot.exported_at,
        exporter=snapshot.exporter,
        hashes=HashManifest(
            project_hash=project_hash,
            canvases=canvas_hashes,
            assets=asset_hashes,
        ),
        project=ProjectMeta(
            id=snapshot.project_id,
            name=snapshot.project_name,
            description=snapshot.project_description,
            active_canvas_id=snapshot.active_canvas_id,
            variables=snapshot.variables,
            created_at=snapshot.created_at,
            updated_at=snapshot.updated_at,
        ),
        canvases=sorted_canvases,
        assets=sorted_assets,
    )


def snapshot_export_args(
    store,
    project_id: str,
    exporter: ExporterInfo,
    exported_at: str,
    assets: Iterable[Asset] = (),
) -> ExportArgs:
    """
    Read a stored project into export arguments.

    Canvas graphs are loaded through the store, which upgrades legacy graph
    shapes to the current schema.

    Args:
        store: Project store exposing get_project, list_canvases and load_canvas_graph
        project_id: Stored project id
        exporter: Exporting application metadata
        exported_at: Timestamp to record
        assets: Attachments to include, already encoded

    Returns:
        ExportArgs ready for build_export

    Raises:
        KeyError: If the project does not exist in the store
    """
    project = store.get_project(project_id)
    canvases = []
    for row in store.list_canvases(project_id):
        graph = store.load_canvas_graph(project_id, row["id"])
        canvases.append(
            CanvasEntry(
                id=row["id"],
                name=row["name"],
                position=row["position"],
                graph=graph,
            )
        )

    variables = {
        key: Variable.from_dict(value)
        for key, value in (project.get("variables") or {}).items()
    }

    return ExportArgs(
        exported_at=exported_at,
        exporter=exporter,
        project_name=project["name"],
        canvases=canvases,
        variables=variables,
        project_id=project["id"],
        project_description=project.get("description") or "",
        active_canvas_id=project.get("active_canvas_id"),
        created_at=project.get("created_at"),
        updated_at=project.get("updated_at"),
        assets=list(assets),
    )
