"""
In-memory project and asset store.

Implements both ``ProjectStore`` and ``AssetStore`` with plain dictionaries.
Useful for tests and for previewing an import without touching disk.
"""

import copy
import logging
from typing import Any, Dict, List

from OC_Libs.ArchiveLib.document_model import GraphDocument
from OC_Libs.ImportLib.legacy_migrator import parse_canvas_graph

logger = logging.getLogger(__name__)


class MemoryProjectStore:
    """Dictionary-backed store.

    Attributes:
        projects: project_id -> project record
        canvases: project_id -> list of canvas rows
        graphs: storage path -> stored graph (dict form)
        assets: project_id -> list of asset records (bytes under "data")
    """

    def __init__(self):
        self.projects: Dict[str, Dict[str, Any]] = {}
        self.canvases: Dict[str, List[Dict[str, Any]]] = {}
        self.graphs: Dict[str, Dict[str, Any]] = {}
        self.assets: Dict[str, List[Dict[str, Any]]] = {}

    @staticmethod
    def graph_path(project_id: str, canvas_id: str) -> str:
        return f"{project_id}/{canvas_id}.json"

    # Projects

    def create_project(self, record: Dict[str, Any]) -> None:
        project_id = record["id"]
        if project_id in self.projects:
            raise RuntimeError(f"Project already exists: {project_id}")
        self.projects[project_id] = copy.deepcopy(record)
        self.canvases[project_id] = []
        self.assets[project_id] = []

    def delete_project(self, project_id: str) -> None:
        self.projects.pop(project_id, None)
        self.canvases.pop(project_id, None)
        self.assets.pop(project_id, None)

    def get_project(self, project_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self.projects[project_id])

    # Canvases

    def upload_canvas_graph(self, project_id: str, canvas_id: str, graph: GraphDocument) -> str:
        path = self.graph_path(project_id, canvas_id)
        self.graphs[path] = copy.deepcopy(graph.to_dict())
        return path

    def delete_canvas_graph(self, project_id: str, canvas_id: str) -> None:
        self.graphs.pop(self.graph_path(project_id, canvas_id), None)

    def create_canvas(self, row: Dict[str, Any]) -> None:
        project_id = row["project_id"]
        if project_id not in self.projects:
            raise KeyError(project_id)
        self.canvases[project_id].append(dict(row))

    def delete_canvases(self, project_id: str) -> None:
        if project_id in self.canvases:
            self.canvases[project_id] = []

    def list_canvases(self, project_id: str) -> List[Dict[str, Any]]:
        if project_id not in self.projects:
            raise KeyError(project_id)
        return sorted(
            (dict(row) for row in self.canvases.get(project_id, [])),
            key=lambda row: row["position"],
        )

    def load_canvas_graph(self, project_id: str, canvas_id: str) -> GraphDocument:
        raw = self.graphs.get(self.graph_path(project_id, canvas_id))
        return parse_canvas_graph(copy.deepcopy(raw), canvas_id, project_id)

    # Assets

    def upload_asset(
        self,
        project_id: str,
        name: str,
        mime_type: str,
        data: bytes,
        sha256: str,
        kind: str,
    ) -> str:
        if project_id not in self.projects:
            raise KeyError(project_id)
        pointer = f"{project_id}/assets/{name}"
        self.assets[project_id].append(
            {
                "name": name,
                "mime_type": mime_type,
                "size_bytes": len(data),
                "sha256": sha256,
                "kind": kind,
                "storage_path": pointer,
                "data": bytes(data),
            }
        )
        logger.debug(f"Stored asset {name} ({len(data)} bytes) for project {project_id}")
        return pointer

    # Queries

    def get_project_canvases(self, project_id: str) -> List[Dict[str, Any]]:
        """Canvas rows of a project with their graphs attached under "graph"."""
        rows = []
        for row in self.list_canvases(project_id):
            row["graph"] = self.load_canvas_graph(project_id, row["id"])
            rows.append(row)
        return rows

    def get_project_assets(self, project_id: str) -> List[Dict[str, Any]]:
        return [dict(record) for record in self.assets.get(project_id, [])]
