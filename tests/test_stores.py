"""
Unit tests for StoreLib stores.

Tests the in-memory and file-backed project stores against the same
contract, plus the on-disk layout of the file store.
"""

import json

import pytest

from OC_Libs.ArchiveLib.document_model import GraphDocument
from OC_Libs.ArchiveLib.archive_files import export_project
from OC_Libs.ArchiveLib.export_builder import build_export, snapshot_export_args
from OC_Libs.ImportLib.import_orchestrator import ImportOptions, pre_import, run_import
from OC_Libs.StoreLib.file_store import FileProjectStore, get_projects_dir
from OC_Libs.StoreLib.memory_store import MemoryProjectStore


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    """Each store implementation in turn."""
    if request.param == "memory":
        return MemoryProjectStore()
    return FileProjectStore(tmp_path)


def _record(project_id="p1"):
    return {"id": project_id, "name": "Loan Model", "description": "", "active_canvas_id": None, "variables": {}}


class TestStoreContract:
    """Tests shared by every store implementation."""

    def test_create_and_get_project(self, store):
        """Should return the stored project record."""
        store.create_project(_record())

        assert store.get_project("p1")["name"] == "Loan Model"

    def test_duplicate_project_rejected(self, store):
        """Should refuse to create the same project twice."""
        store.create_project(_record())

        with pytest.raises(RuntimeError):
            store.create_project(_record())

    def test_unknown_project_raises_key_error(self, store):
        """Should raise KeyError for unknown ids."""
        with pytest.raises(KeyError):
            store.get_project("missing")
        with pytest.raises(KeyError):
            store.list_canvases("missing")

    def test_canvas_rows_sorted_by_position(self, store):
        """Should list canvas rows in position order."""
        store.create_project(_record())
        store.create_canvas({"id": "b", "project_id": "p1", "name": "B", "position": 1})
        store.create_canvas({"id": "a", "project_id": "p1", "name": "A", "position": 0})

        assert [row["id"] for row in store.list_canvases("p1")] == ["a", "b"]

    def test_graph_round_trip(self, store):
        """Should load back an uploaded graph."""
        store.create_project(_record())
        graph = GraphDocument(canvas_id="c1", project_id="p1", nodes=[{"id": "n1", "data": {"v": 1.5}}])

        store.upload_canvas_graph("p1", "c1", graph)

        assert store.load_canvas_graph("p1", "c1") == graph

    def test_missing_graph_loads_empty(self, store):
        """Should return an empty graph for a canvas with no stored graph."""
        store.create_project(_record())

        graph = store.load_canvas_graph("p1", "nothing")

        assert graph.nodes == [] and graph.canvas_id == "nothing"

    def test_delete_graph_and_rows_and_project(self, store):
        """Should remove graphs, rows and the project."""
        store.create_project(_record())
        store.upload_canvas_graph("p1", "c1", GraphDocument(canvas_id="c1", project_id="p1", nodes=[{"id": "n"}]))
        store.create_canvas({"id": "c1", "project_id": "p1", "name": "A", "position": 0})

        store.delete_canvas_graph("p1", "c1")
        store.delete_canvases("p1")
        assert store.load_canvas_graph("p1", "c1").nodes == []
        assert store.list_canvases("p1") == []

        store.delete_project("p1")
        with pytest.raises(KeyError):
            store.get_project("p1")

    def test_deletes_are_idempotent(self, store):
        """Should not raise when deleting what does not exist."""
        store.delete_canvas_graph("p1", "c1")
        store.delete_canvases("p1")
        store.delete_project("p1")

    def test_upload_asset(self, store, csv_bytes):
        """Should record asset metadata and return a pointer."""
        store.create_project(_record())

        pointer = store.upload_asset("p1", "payments.csv", "text/csv", csv_bytes, "ab" * 32, "csv")

        records = store.get_project_assets("p1")
        assert records[0]["name"] == "payments.csv"
        assert records[0]["size_bytes"] == len(csv_bytes)
        assert records[0]["storage_path"] == pointer

    def test_upload_asset_unknown_project(self, store, csv_bytes):
        """Should raise KeyError for assets of unknown projects."""
        with pytest.raises(KeyError):
            store.upload_asset("missing", "a.csv", "text/csv", csv_bytes, "", "csv")

    def test_full_import(self, store, exported_bytes, id_generator):
        """Should accept a complete import."""
        pre = pre_import(exported_bytes)

        result = run_import(pre.document, pre.validation, ImportOptions(), store, id_generator=id_generator)

        assert result.ok
        assert len(store.list_canvases("new-1")) == 2


class TestFileProjectStore:
    """Tests specific to the file-backed store."""

    def test_layout(self, tmp_path):
        """Should lay a project out as JSON files under Projects/<id>."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record())
        store.upload_canvas_graph("p1", "c1", GraphDocument(canvas_id="c1", project_id="p1"))

        project_dir = get_projects_dir(tmp_path) / "p1"
        assert json.loads((project_dir / "project.json").read_text(encoding="utf-8"))["id"] == "p1"
        assert json.loads((project_dir / "canvas_rows.json").read_text(encoding="utf-8")) == []
        assert (project_dir / "canvases" / "c1.json").exists()
        assert store.list_project_ids() == ["p1"]

    def test_pretty_printed_json(self, tmp_path):
        """Should write indented JSON."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record())

        text = (get_projects_dir(tmp_path) / "p1" / "project.json").read_text(encoding="utf-8")
        assert text.startswith('{\n  "id"')

    def test_asset_names_never_overwrite(self, tmp_path, csv_bytes):
        """Should add a numeric suffix for repeated asset names."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record())

        first = store.upload_asset("p1", "data.csv", "text/csv", csv_bytes, "", "csv")
        second = store.upload_asset("p1", "data.csv", "text/csv", b"other", "", "csv")

        assert first.endswith("assets/data.csv")
        assert second.endswith("assets/data_1.csv")
        assert store.read_asset_bytes(second) == b"other"

    def test_unsafe_names_are_sanitized(self, tmp_path, csv_bytes):
        """Should keep asset files inside the project directory."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record())

        pointer = store.upload_asset("p1", "../../etc/passwd", "text/plain", csv_bytes, "", "file")

        assert pointer.startswith("p1/assets/")
        assert ".." not in pointer.split("/")

    def test_ids_that_need_sanitizing_are_rejected(self, tmp_path):
        """Should refuse ids that would share a directory with another id."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record("a_b"))

        with pytest.raises(ValueError):
            store.create_project(_record("a/b"))
        with pytest.raises(ValueError):
            store.upload_canvas_graph("a_b", "../c1", GraphDocument(canvas_id="c1", project_id="a_b"))
        assert store.list_project_ids() == ["a_b"]

    def test_uuid_ids_are_accepted(self, tmp_path):
        """Should store projects under their UUID ids unchanged."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record("3f2a9c1e-7b4d-4c2a-9f1e-0a1b2c3d4e5f"))

        assert store.list_project_ids() == ["3f2a9c1e-7b4d-4c2a-9f1e-0a1b2c3d4e5f"]

    def test_legacy_graph_file_is_migrated(self, tmp_path):
        """Should load a legacy graph file as a current graph."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record())
        legacy_path = get_projects_dir(tmp_path) / "p1" / "canvases" / "old.json"
        legacy_path.parent.mkdir(parents=True, exist_ok=True)
        legacy_path.write_text(json.dumps({"schemaVersion": 2, "graph": {"nodes": [{"id": "n"}], "edges": []}}),
                               encoding="utf-8")

        graph = store.load_canvas_graph("p1", "old")

        assert graph.schema_version == 4
        assert graph.nodes == [{"id": "n"}]

    def test_corrupt_graph_file_loads_empty(self, tmp_path):
        """Should load an empty graph from an unreadable file."""
        store = FileProjectStore(tmp_path)
        store.create_project(_record())
        path = get_projects_dir(tmp_path) / "p1" / "canvases" / "bad.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{oops", encoding="utf-8")

        assert store.load_canvas_graph("p1", "bad").nodes == []

    def test_import_then_export_matches(self, tmp_path, args_with_asset, exporter, id_generator):
        """Should re-export an imported project with identical canvas hashes."""
        store = FileProjectStore(tmp_path)
        pre = pre_import(export_project(args_with_asset))
        result = run_import(pre.document, pre.validation, ImportOptions(), store, id_generator=id_generator)

        args = snapshot_export_args(store, result.project_id, exporter, "2026-03-01T00:00:00Z")
        document = build_export(args)

        assert [h.hash for h in document.hashes.canvases] == [h.hash for h in pre.document.hashes.canvases]
