"""
File-backed project and asset store.

Projects live under ``<base_dir>/Projects/<project_id>/``:

    project.json          project record
    canvas_rows.json      canvas rows (id, name, position, storage path)
    canvases/<id>.json    one graph document per canvas
    assets/<name>         attachment bytes
    assets.json           attachment records

All JSON is written pretty-printed with ``indent=2``. Stored graphs are read
back through the legacy migrator, so projects saved with older graph shapes
load as current graphs.

Classes:
    FileProjectStore: ProjectStore and AssetStore over a directory tree

Functions:
    get_projects_dir: Projects directory under a base directory
"""

import json
import logging
import shutil
import threading
from pathlib import Path
from typing import Any, Dict, List

from OC_Libs.ArchiveLib.document_model import GraphDocument
from OC_Libs.ImportLib.legacy_migrator import parse_canvas_graph
from OC_Libs.constants import (
    FILENAME_REPLACEMENT_CHAR,
    PROJECTS_DIR_NAME,
    SAFE_FILENAME_CHARS,
)

logger = logging.getLogger(__name__)

PROJECT_FILE_NAME = "project.json"
CANVAS_ROWS_FILE_NAME = "canvas_rows.json"
ASSETS_FILE_NAME = "assets.json"
CANVASES_DIR_NAME = "canvases"
ASSETS_DIR_NAME = "assets"


def get_projects_dir(base_dir: Path) -> Path:
    projects_dir = Path(base_dir) / PROJECTS_DIR_NAME
    projects_dir.mkdir(parents=True, exist_ok=True)
    return projects_dir


def _safe_component(name: str, fallback: str) -> str:
    # Dots are kept for file extensions, but never at either end.
    safe_name = "".join(
        c if c.isalnum() or c in SAFE_FILENAME_CHARS or c == "." else FILENAME_REPLACEMENT_CHAR
        for c in name
    ).strip(FILENAME_REPLACEMENT_CHAR + ".")
    return safe_name or fallback


def _checked_id(value: str, kind: str) -> str:
    """Return ``value`` if it is usable as a path component unchanged.

    Raises:
        ValueError: If sanitizing would alter the id
    """
    if not value or _safe_component(value, "") != value:
        raise ValueError(f"{kind} id {value!r} is not a safe path component")
    return value


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


class FileProjectStore:
    """
    Store projects as directories of JSON files.

    Args:
        base_dir: Base directory containing the Projects folder

    Example:
        >>> store = FileProjectStore(Path("~/OpenCanvas").expanduser())
        >>> store.create_project({"id": "p1", "name": "Budget", "variables": {}})
        >>> store.get_project("p1")["name"]
        'Budget'
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.projects_dir = get_projects_dir(self.base_dir)
        self._asset_lock = threading.Lock()

    def project_dir(self, project_id: str) -> Path:
        return self.projects_dir / _checked_id(project_id, "Project")

    def _require_project_dir(self, project_id: str) -> Path:
        project_dir = self.project_dir(project_id)
        if not (project_dir / PROJECT_FILE_NAME).exists():
            raise KeyError(project_id)
        return project_dir

    def list_project_ids(self) -> List[str]:
        return sorted(
            path.parent.name for path in self.projects_dir.glob(f"*/{PROJECT_FILE_NAME}")
        )

    # Projects

    def create_project(self, record: Dict[str, Any]) -> None:
        project_dir = self.project_dir(record["id"])
        if (project_dir / PROJECT_FILE_NAME).exists():
            raise RuntimeError(f"Project already exists: {record['id']}")
        _write_json(project_dir / PROJECT_FILE_NAME, record)
        _write_json(project_dir / CANVAS_ROWS_FILE_NAME, [])
        _write_json(project_dir / ASSETS_FILE_NAME, [])
        logger.debug(f"Created project directory {project_dir}")

    def delete_project(self, project_id: str) -> None:
        project_dir = self.project_dir(project_id)
        if project_dir.exists():
            shutil.rmtree(project_dir)
            logger.debug(f"Removed project directory {project_dir}")

    def get_project(self, project_id: str) -> Dict[str, Any]:
        project_dir = self._require_project_dir(project_id)
        return _read_json(project_dir / PROJECT_FILE_NAME)

    # Canvases

    def _graph_path(self, project_id: str, canvas_id: str) -> Path:
        return self.project_dir(project_id) / CANVASES_DIR_NAME / f"{_checked_id(canvas_id, 'Canvas')}.json"

    def upload_canvas_graph(self, project_id: str, canvas_id: str, graph: GraphDocument) -> str:
        self._require_project_dir(project_id)
        graph_path = self._graph_path(project_id, canvas_id)
        _write_json(graph_path, graph.to_dict())
        return graph_path.relative_to(self.projects_dir).as_posix()

    def delete_canvas_graph(self, project_id: str, canvas_id: str) -> None:
        graph_path = self._graph_path(project_id, canvas_id)
        if graph_path.exists():
            graph_path.unlink()

    def create_canvas(self, row: Dict[str, Any]) -> None:
        project_dir = self._require_project_dir(row["project_id"])
        rows = _read_json(project_dir / CANVAS_ROWS_FILE_NAME)
        rows.append(dict(row))
        _write_json(project_dir / CANVAS_ROWS_FILE_NAME, rows)

    def delete_canvases(self, project_id: str) -> None:
        project_dir = self.project_dir(project_id)
        if (project_dir / CANVAS_ROWS_FILE_NAME).exists():
            _write_json(project_dir / CANVAS_ROWS_FILE_NAME, [])

    def list_canvases(self, project_id: str) -> List[Dict[str, Any]]:
        project_dir = self._require_project_dir(project_id)
        rows = _read_json(project_dir / CANVAS_ROWS_FILE_NAME)
        return sorted(rows, key=lambda row: row["position"])

    def load_canvas_graph(self, project_id: str, canvas_id: str) -> GraphDocument:
        graph_path = self._graph_path(project_id, canvas_id)
        raw = None
        if graph_path.exists():
            try:
                raw = _read_json(graph_path)
            except json.JSONDecodeError:
                logger.warning(f"Unreadable canvas graph {graph_path}, loading empty graph")
        return parse_canvas_graph(raw, canvas_id, project_id)

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
        project_dir = self._require_project_dir(project_id)
        assets_dir = project_dir / ASSETS_DIR_NAME
        assets_dir.mkdir(parents=True, exist_ok=True)

        # Uploads may run from a thread pool; assets.json is read-modify-write.
        with self._asset_lock:
            safe_name = _safe_component(name, "asset")
            asset_path = assets_dir / safe_name
            counter = 1
            while asset_path.exists():
                asset_path = assets_dir / f"{Path(safe_name).stem}_{counter}{Path(safe_name).suffix}"
                counter += 1

            asset_path.write_bytes(data)
            pointer = asset_path.relative_to(self.projects_dir).as_posix()

            records = _read_json(project_dir / ASSETS_FILE_NAME)
            records.append(
                {
                    "name": name,
                    "mime_type": mime_type,
                    "size_bytes": len(data),
                    "sha256": sha256,
                    "kind": kind,
                    "storage_path": pointer,
                }
            )
            _write_json(project_dir / ASSETS_FILE_NAME, records)
        return pointer

    def get_project_assets(self, project_id: str) -> List[Dict[str, Any]]:
        project_dir = self._require_project_dir(project_id)
        return _read_json(project_dir / ASSETS_FILE_NAME)

    def read_asset_bytes(self, pointer: str) -> bytes:
        return (self.projects_dir / pointer).read_bytes()
