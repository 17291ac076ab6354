"""
Storage collaborator interfaces.

The import orchestrator and the export snapshot talk to storage only
through these protocols, so any backend (in-memory, files, a database)
can be plugged in. Implementations raise ``KeyError`` for unknown ids and
``RuntimeError``/``OSError`` for storage failures.

Classes:
    ProjectStore: Project rows, canvas rows and canvas graph blobs
    AssetStore: Attachment bytes and metadata
"""

from typing import Any, Dict, List, Protocol

from OC_Libs.ArchiveLib.document_model import GraphDocument


class ProjectStore(Protocol):
    def create_project(self, record: Dict[str, Any]) -> None: ...

    def delete_project(self, project_id: str) -> None: ...

    def get_project(self, project_id: str) -> Dict[str, Any]: ...

    def upload_canvas_graph(self, project_id: str, canvas_id: str, graph: GraphDocument) -> str: ...

    def delete_canvas_graph(self, project_id: str, canvas_id: str) -> None: ...

    def create_canvas(self, row: Dict[str, Any]) -> None: ...

    def delete_canvases(self, project_id: str) -> None: ...

    def list_canvases(self, project_id: str) -> List[Dict[str, Any]]: ...

    def load_canvas_graph(self, project_id: str, canvas_id: str) -> GraphDocument: ...


class AssetStore(Protocol):
    def upload_asset(
        self,
        project_id: str,
        name: str,
        mime_type: str,
        data: bytes,
        sha256: str,
        kind: str,
    ) -> str: ...
