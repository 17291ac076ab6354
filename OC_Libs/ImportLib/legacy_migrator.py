"""
Legacy graph migration.

Older projects stored one graph directly on the project
(``{"graph": {"nodes": [...], "edges": [...]}}``, schema versions 1-3).
The current format keeps one graph document per canvas. Migration lifts the
legacy shape into a current ``GraphDocument``, stamping the supplied canvas
and project ids.

Migration is total and idempotent: it never raises, missing arrays become
empty, and an already-current graph comes back unchanged.

Functions:
    migrate_graph: Upgrade any graph shape to the current schema
    parse_canvas_graph: Load a stored canvas graph (missing -> empty)
    empty_graph: A new, empty current graph
"""

from typing import Any, List

from OC_Libs.ArchiveLib.document_model import GraphDocument
from OC_Libs.constants import (
    FIELD_CANVAS_ID,
    FIELD_DATASET_REFS,
    FIELD_EDGES,
    FIELD_GRAPH,
    FIELD_NODES,
    FIELD_PROJECT_ID,
    FIELD_SCHEMA_VERSION,
    GRAPH_SCHEMA_VERSION,
)


def empty_graph(canvas_id: str, project_id: str) -> GraphDocument:
    return GraphDocument(canvas_id=canvas_id, project_id=project_id)


def _list_or_empty(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def _text_or_default(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def migrate_graph(raw: Any, canvas_id: str, project_id: str) -> GraphDocument:
    """
    Upgrade a stored graph to the current per-canvas schema.

    - A ``GraphDocument`` is returned as-is.
    - A current-version mapping is converted without changing its content;
      missing ids fall back to the supplied ones.
    - Anything else is treated as a legacy project graph: nodes and edges are
      taken from its ``graph`` block when they are lists, otherwise empty.

    Args:
        raw: Parsed stored JSON (any shape, including None)
        canvas_id: Canvas id to stamp on migrated graphs
        project_id: Project id to stamp on migrated graphs

    Returns:
        A current GraphDocument

    Example:
        >>> graph = migrate_graph({"graph": {"nodes": [{"id": "n1"}]}}, "c1", "p1")
        >>> graph.schema_version, graph.canvas_id, graph.edges
        (4, 'c1', [])
    """
    if isinstance(raw, GraphDocument):
        return raw

    if isinstance(raw, dict) and raw.get(FIELD_SCHEMA_VERSION) == GRAPH_SCHEMA_VERSION:
        return GraphDocument(
            canvas_id=_text_or_default(raw.get(FIELD_CANVAS_ID), canvas_id),
            project_id=_text_or_default(raw.get(FIELD_PROJECT_ID), project_id),
            nodes=_list_or_empty(raw.get(FIELD_NODES)),
            edges=_list_or_empty(raw.get(FIELD_EDGES)),
            dataset_refs=_list_or_empty(raw.get(FIELD_DATASET_REFS)),
        )

    legacy_graph = raw.get(FIELD_GRAPH) if isinstance(raw, dict) else None
    if not isinstance(legacy_graph, dict):
        legacy_graph = {}

    return GraphDocument(
        canvas_id=canvas_id,
        project_id=project_id,
        nodes=_list_or_empty(legacy_graph.get(FIELD_NODES)),
        edges=_list_or_empty(legacy_graph.get(FIELD_EDGES)),
    )


def parse_canvas_graph(raw: Any, canvas_id: str, project_id: str) -> GraphDocument:
    """Load a stored canvas graph; a missing file (None) yields an empty graph."""
    if raw is None:
        return empty_graph(canvas_id, project_id)
    return migrate_graph(raw, canvas_id, project_id)
