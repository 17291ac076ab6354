"""
Import planning.

Turns a validated archive into a ``NormalizedImportPlan``: fresh ids for the
project and every canvas, compacted canvas positions, a resolved active
canvas and graphs whose back-references point at the new ids. Planning is
pure; nothing is persisted here.

Classes:
    PlannedCanvas: One canvas as it will be created
    NormalizedImportPlan: Everything the orchestrator persists

Functions:
    plan_import: Build the plan for a document
    default_id_generator: Random UUID ids
    deterministic_id_generator: Counter-based ids for reproducible plans
"""

import itertools
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional

from OC_Libs.ArchiveLib.document_model import (
    Asset,
    GraphDocument,
    ProjectDocument,
    Variable,
)

logger = logging.getLogger(__name__)

IdGenerator = Callable[[], str]


def default_id_generator() -> str:
    return str(uuid.uuid4())


def deterministic_id_generator(prefix: str = "new-id") -> IdGenerator:
    """
    Return a generator yielding ``<prefix>-1``, ``<prefix>-2``, ...

    Example:
        >>> next_id = deterministic_id_generator("p")
        >>> next_id(), next_id()
        ('p-1', 'p-2')
    """
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@dataclass
class PlannedCanvas:
    old_id: str
    new_id: str
    name: str
    position: int
    graph: GraphDocument


@dataclass
class NormalizedImportPlan:
    """Id-remapped project, ready to persist.

    Attributes:
        new_project_id: Id of the project to create
        project_name: Project display name
        description: Project description
        active_canvas_id: New id of the canvas to select
        variables: Project variables (unchanged)
        canvas_id_remap: Old canvas id -> new canvas id
        canvases: Canvases in compacted position order
        assets: Attachments from the archive
    """
    new_project_id: str
    project_name: str
    description: Optional[str]
    active_canvas_id: Optional[str]
    variables: Dict[str, Variable] = field(default_factory=dict)
    canvas_id_remap: Dict[str, str] = field(default_factory=dict)
    canvases: List[PlannedCanvas] = field(default_factory=list)
    assets: List[Asset] = field(default_factory=list)


def plan_import(
    document: ProjectDocument,
    id_generator: Optional[IdGenerator] = None,
) -> NormalizedImportPlan:
    """
    Build the import plan for a document.

    The project id is drawn first, then one id per canvas in position order.
    Positions become 0..N-1. If the archive's active canvas does not map to
    an imported canvas, the first canvas is selected instead.

    Args:
        document: Validated archive
        id_generator: Zero-argument callable returning fresh ids
            (default: random UUIDs)

    Returns:
        NormalizedImportPlan
    """
    next_id = id_generator or default_id_generator

    new_project_id = next_id()
    sorted_canvases = sorted(document.canvases, key=lambda canvas: canvas.position)

    remap: Dict[str, str] = {}
    planned: List[PlannedCanvas] = []
    for index, canvas in enumerate(sorted_canvases):
        new_id = next_id()
        remap[canvas.id] = new_id
        planned.append(
            PlannedCanvas(
                old_id=canvas.id,
                new_id=new_id,
                name=canvas.name,
                position=index,
                graph=replace(canvas.graph, canvas_id=new_id, project_id=new_project_id),
            )
        )

    active_canvas_id = remap.get(document.project.active_canvas_id or "")
    if active_canvas_id is None and planned:
        active_canvas_id = planned[0].new_id
        logger.debug(
            f"Active canvas {document.project.active_canvas_id!r} not in archive, using first canvas"
        )

    return NormalizedImportPlan(
        new_project_id=new_project_id,
        project_name=document.project.name,
        description=document.project.description,
        active_canvas_id=active_canvas_id,
        variables=dict(document.project.variables),
        canvas_id_remap=remap,
        canvases=planned,
        assets=list(document.assets),
    )
