"""
Pytest configuration and shared fixtures for Open Canvas tests.

This module provides the golden two-canvas project, an embedded CSV asset,
deterministic id generators and storage backends used across test modules.
"""

from dataclasses import replace

import pytest

from OC_Libs.ArchiveLib.asset_codec import embed
from OC_Libs.ArchiveLib.archive_files import export_project
from OC_Libs.ArchiveLib.document_model import (
    CanvasEntry,
    ExportArgs,
    ExporterInfo,
    GraphDocument,
    Variable,
)
from OC_Libs.ImportLib.import_planner import deterministic_id_generator
from OC_Libs.StoreLib.file_store import FileProjectStore
from OC_Libs.StoreLib.memory_store import MemoryProjectStore


def make_canvas(canvas_id, name, position, project_id="p1", nodes=None, edges=None):
    """Build a canvas whose graph back-references match its own ids."""
    return CanvasEntry(
        id=canvas_id,
        name=name,
        position=position,
        graph=GraphDocument(
            canvas_id=canvas_id,
            project_id=project_id,
            nodes=nodes if nodes is not None else [],
            edges=edges if edges is not None else [],
        ),
    )


@pytest.fixture
def exporter():
    """Exporter metadata with fixed build values."""
    return ExporterInfo(
        app_version="1.4.0",
        build_sha="3f2a9c1",
        build_time="2026-02-20T08:00:00Z",
        build_env="test",
        engine_version="0.9.2",
        engine_contract_version=1,
    )


@pytest.fixture
def variables():
    """Two finite project variables."""
    return {
        "rate": Variable(id="rate", name="Rate", value=0.05),
        "periods": Variable(id="periods", name="Periods", value=12, description="Months"),
    }


@pytest.fixture
def two_canvas_args(exporter, variables):
    """
    Golden project: two canvases given out of position order.

    Returns:
        ExportArgs for project "Loan Model" with canvases c1 (position 0)
        and c2 (position 1)
    """
    main = make_canvas(
        "c1",
        "Main",
        0,
        nodes=[
            {"id": "n1", "type": "number", "position": {"x": 0, "y": 0}, "data": {"value": 1000}},
            {"id": "n2", "type": "variable", "position": {"x": 200, "y": 0}, "data": {"varId": "rate"}},
            {"id": "n3", "type": "multiply", "position": {"x": 400, "y": 0}, "data": {}},
        ],
        edges=[
            {"id": "e1", "source": "n1", "target": "n3", "targetHandle": "a"},
            {"id": "e2", "source": "n2", "target": "n3", "targetHandle": "b"},
        ],
    )
    summary = make_canvas(
        "c2",
        "Summary",
        1,
        nodes=[{"id": "s1", "type": "display", "position": {"x": 0, "y": 0}, "data": {"label": "Total"}}],
    )
    return ExportArgs(
        exported_at="2026-02-27T12:00:00Z",
        exporter=exporter,
        project_name="Loan Model",
        canvases=[summary, main],
        variables=variables,
        project_id="p1",
        project_description="Monthly payment model",
        active_canvas_id="c1",
        created_at="2026-01-05T09:30:00Z",
        updated_at="2026-02-27T11:59:00Z",
    )


@pytest.fixture
def csv_bytes():
    """Raw bytes of a small CSV attachment."""
    return b"month,payment\n1,85.61\n2,85.61\n3,85.61\n"


@pytest.fixture
def csv_asset(csv_bytes):
    """The CSV attachment, embedded."""
    return embed("payments.csv", "text/csv", csv_bytes)


@pytest.fixture
def args_with_asset(two_canvas_args, csv_asset):
    """Golden project carrying the embedded CSV asset."""
    return replace(two_canvas_args, assets=[csv_asset])


@pytest.fixture
def exported_bytes(two_canvas_args):
    """Serialized archive of the golden project."""
    return export_project(two_canvas_args)


@pytest.fixture
def id_generator():
    """Deterministic ids: new-1, new-2, ..."""
    return deterministic_id_generator("new")


@pytest.fixture
def memory_store():
    """Empty in-memory store."""
    return MemoryProjectStore()


@pytest.fixture
def file_store(tmp_path):
    """File-backed store rooted in a temporary directory."""
    return FileProjectStore(tmp_path)
