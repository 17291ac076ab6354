"""
Import orchestration.

Runs a validated archive into storage as a brand-new project:

1. create the project record
2. persist every canvas (graph blob, then canvas row), in compacted order
3. upload embedded assets, best effort
4. report success

Cancellation is cooperative: ``options.cancel_event`` is polled before every
step and before every canvas. A failure or cancellation during steps 1-2
removes what was already written (canvas blobs, then canvas rows, then the
project record) and returns a failure report. Cleanup is best effort: its
own errors are logged and swallowed. Asset problems never fail an import;
the affected asset is listed as unreferenced instead.

Classes:
    ImportProgress: Progress event passed to ``on_progress``
    ImportOptions: Per-import settings
    ImportResult: Outcome of ``run_import``
    PreImportResult: Parsed document, summary and validation

Functions:
    pre_import: Parse, summarize and validate archive bytes
    run_import: Persist a validated archive as a new project
"""

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from OC_Libs.ArchiveLib.asset_codec import asset_kind, decode, verify_asset_bytes
from OC_Libs.ArchiveLib.document_model import (
    EmbeddedAsset,
    ImportIssue,
    ProjectDocument,
    ValidationResult,
    variables_to_dict,
)
from OC_Libs.ImportLib.import_parser import parse_document
from OC_Libs.ImportLib.import_planner import IdGenerator, NormalizedImportPlan, plan_import
from OC_Libs.ImportLib.import_report import (
    ImportOperations,
    ImportReport,
    ImportSummary,
    build_import_report,
    extract_import_summary,
)
from OC_Libs.ImportLib.integrity_verifier import validate_import
from OC_Libs.StoreLib.persistence import AssetStore, ProjectStore
from OC_Libs.constants import (
    CODE_ABORTED,
    CODE_IMPORT_FAILED,
    PHASE_ASSETS,
    PHASE_CANVASES,
    PHASE_CREATING,
    PHASE_DONE,
    PHASE_FAILED,
    PHASE_VALIDATING,
)

logger = logging.getLogger(__name__)


@dataclass
class ImportProgress:
    phase: str
    current: Optional[int] = None
    total: Optional[int] = None


@dataclass
class ImportOptions:
    """Settings for one import.

    Attributes:
        file_name: Name of the file being imported (recorded in the report)
        cancel_event: Set to request cancellation (polled between steps)
        on_progress: Called with an ImportProgress at every phase change
        parallel_assets: Upload embedded assets from a thread pool
        max_workers: Thread pool size (default: None = executor default)
    """
    file_name: str = "import.ocjson"
    cancel_event: Optional[threading.Event] = None
    on_progress: Optional[Callable[[ImportProgress], None]] = None
    parallel_assets: bool = False
    max_workers: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the serializable settings to a dictionary."""
        return {
            "file_name": self.file_name,
            "parallel_assets": self.parallel_assets,
            "max_workers": self.max_workers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportOptions":
        """Create from dictionary; unknown and runtime-only keys are ignored."""
        filtered = {
            k: v
            for k, v in data.items()
            if k in ("file_name", "parallel_assets", "max_workers")
        }
        return cls(**filtered)

    def is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def emit(self, phase: str, current: Optional[int] = None, total: Optional[int] = None) -> None:
        if self.on_progress is not None:
            self.on_progress(ImportProgress(phase=phase, current=current, total=total))


@dataclass
class ImportResult:
    ok: bool
    project_id: Optional[str]
    report: ImportReport

    @property
    def canvases_imported(self) -> int:
        return self.report.operations.canvases_imported

    @property
    def assets_uploaded(self) -> int:
        return self.report.operations.assets_uploaded

    @property
    def unreferenced_assets(self) -> List[str]:
        return list(self.report.operations.unreferenced_assets)

    @property
    def canvas_id_remap(self) -> Dict[str, str]:
        return dict(self.report.canvas_id_remap)


@dataclass
class PreImportResult:
    document: ProjectDocument
    summary: ImportSummary
    validation: ValidationResult


class _ImportAborted(Exception):
    pass


def pre_import(data: Union[bytes, str]) -> PreImportResult:
    """
    Parse, summarize and validate archive bytes without persisting anything.

    Args:
        data: Raw archive bytes or text

    Returns:
        PreImportResult for a confirmation prompt

    Raises:
        ImportParseError: If the bytes are not a well-formed archive
    """
    document = parse_document(data)
    return PreImportResult(
        document=document,
        summary=extract_import_summary(document),
        validation=validate_import(document),
    )


def _check_cancelled(options: ImportOptions) -> None:
    if options.is_cancelled():
        raise _ImportAborted()


def _project_record(plan: NormalizedImportPlan, document: ProjectDocument) -> Dict[str, Any]:
    return {
        "id": plan.new_project_id,
        "name": plan.project_name,
        "description": plan.description or "",
        "active_canvas_id": plan.active_canvas_id,
        "variables": variables_to_dict(plan.variables),
        "created_at": document.project.created_at,
        "updated_at": document.project.updated_at,
    }


def _cleanup(project_store: ProjectStore, project_id: str, canvas_ids: List[str]) -> None:
    for canvas_id in canvas_ids:
        try:
            project_store.delete_canvas_graph(project_id, canvas_id)
        except Exception as e:
            logger.warning(f"Cleanup: could not delete graph for canvas {canvas_id}: {e}")

    try:
        project_store.delete_canvases(project_id)
    except Exception as e:
        logger.warning(f"Cleanup: could not delete canvas rows of project {project_id}: {e}")

    try:
        project_store.delete_project(project_id)
    except Exception as e:
        logger.warning(f"Cleanup: could not delete project {project_id}: {e}")


def _upload_embedded(asset_store: AssetStore, project_id: str, asset: EmbeddedAsset) -> None:
    data = decode(asset)
    verify_asset_bytes(asset, data)
    asset_store.upload_asset(
        project_id,
        asset.name,
        asset.mime_type,
        data,
        asset.sha256,
        asset_kind(asset.mime_type),
    )


def _upload_assets(
    plan: NormalizedImportPlan,
    options: ImportOptions,
    asset_store: AssetStore,
) -> Tuple[int, List[str]]:
    """Upload embedded assets; return (uploaded count, unreferenced names)."""
    project_id = plan.new_project_id
    total = len(plan.assets)
    unreferenced: List[str] = []
    pending: List[Tuple[int, EmbeddedAsset]] = []

    for index, asset in enumerate(plan.assets):
        if isinstance(asset, EmbeddedAsset):
            pending.append((index, asset))
        else:
            unreferenced.append(f"{asset.name} (storageRef: {asset.storage_path})")

    uploaded = 0
    failed: Dict[int, str] = {}

    if options.parallel_assets and len(pending) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=options.max_workers) as executor:
            futures: Dict[concurrent.futures.Future, Tuple[int, EmbeddedAsset]] = {}
            for index, asset in pending:
                if options.is_cancelled():
                    failed[index] = asset.name
                    continue
                futures[executor.submit(_upload_embedded, asset_store, project_id, asset)] = (index, asset)

            for done, future in enumerate(concurrent.futures.as_completed(futures), start=1):
                index, asset = futures[future]
                options.emit(PHASE_ASSETS, done, total)
                try:
                    future.result()
                    uploaded += 1
                except Exception as e:
                    logger.warning(f"Asset '{asset.name}' not restored: {e}")
                    failed[index] = asset.name
    else:
        for index, asset in pending:
            if options.is_cancelled():
                failed[index] = asset.name
                continue
            options.emit(PHASE_ASSETS, index + 1, total)
            try:
                _upload_embedded(asset_store, project_id, asset)
                uploaded += 1
            except Exception as e:
                logger.warning(f"Asset '{asset.name}' not restored: {e}")
                failed[index] = asset.name

    unreferenced = [failed[index] for index in sorted(failed)] + unreferenced
    return uploaded, unreferenced


def _failure(
    document: ProjectDocument,
    validation: ValidationResult,
    options: ImportOptions,
    issue: Optional[ImportIssue] = None,
    remap: Optional[Dict[str, str]] = None,
) -> ImportResult:
    errors = list(validation.errors)
    if issue is not None:
        errors.append(issue)
    report = build_import_report(
        options.file_name,
        document,
        ValidationResult(errors=errors, warnings=list(validation.warnings)),
        ImportOperations(),
        remap,
    )
    return ImportResult(ok=False, project_id=None, report=report)


def run_import(
    document: ProjectDocument,
    validation: ValidationResult,
    options: ImportOptions,
    project_store: ProjectStore,
    asset_store: Optional[AssetStore] = None,
    id_generator: Optional[IdGenerator] = None,
) -> ImportResult:
    """
    Persist a validated archive as a new project.

    Never raises for storage problems: failures are compensated and reported
    with code IMPORT_FAILED, cancellation with code ABORTED.

    Args:
        document: Parsed archive
        validation: Result of ``validate_import`` for the same document
        options: Import settings (file name, cancellation, progress)
        project_store: Project and canvas storage
        asset_store: Attachment storage (default: ``project_store``)
        id_generator: Fresh id source (default: random UUIDs)

    Returns:
        ImportResult with the new project id and the import report

    Example:
        >>> pre = pre_import(data)
        >>> result = run_import(pre.document, pre.validation, ImportOptions("a.ocjson"), store)
        >>> result.ok, result.canvases_imported
        (True, 2)
    """
    options.emit(PHASE_VALIDATING)

    if not validation.ok:
        logger.warning(f"Import of {options.file_name} refused: {', '.join(validation.error_codes())}")
        options.emit(PHASE_FAILED)
        return _failure(document, validation, options)

    plan = plan_import(document, id_generator)
    project_id = plan.new_project_id
    assets_target = asset_store if asset_store is not None else project_store

    project_created = False
    persisted_canvas_ids: List[str] = []
    operations = ImportOperations(new_project_id=project_id)

    try:
        _check_cancelled(options)
        options.emit(PHASE_CREATING)
        project_store.create_project(_project_record(plan, document))
        project_created = True
        operations.project_created = True
        _check_cancelled(options)

        total = len(plan.canvases)
        for index, canvas in enumerate(plan.canvases):
            _check_cancelled(options)
            options.emit(PHASE_CANVASES, index + 1, total)

            storage_path = project_store.upload_canvas_graph(project_id, canvas.new_id, canvas.graph)
            persisted_canvas_ids.append(canvas.new_id)
            project_store.create_canvas(
                {
                    "id": canvas.new_id,
                    "project_id": project_id,
                    "name": canvas.name,
                    "position": canvas.position,
                    "storage_path": storage_path,
                }
            )
            operations.canvases_imported += 1
            logger.debug(f"Imported canvas {canvas.old_id} as {canvas.new_id}")

    except _ImportAborted:
        logger.info(f"Import of {options.file_name} cancelled")
        if project_created:
            _cleanup(project_store, project_id, persisted_canvas_ids)
        options.emit(PHASE_FAILED)
        return _failure(
            document,
            validation,
            options,
            ImportIssue(code=CODE_ABORTED, message="Import was cancelled."),
            plan.canvas_id_remap,
        )

    except Exception as e:
        logger.error(f"Import of {options.file_name} failed: {e}")
        options.emit(PHASE_FAILED)
        if project_created:
            _cleanup(project_store, project_id, persisted_canvas_ids)
        return _failure(
            document,
            validation,
            options,
            ImportIssue(code=CODE_IMPORT_FAILED, message=str(e) or type(e).__name__),
            plan.canvas_id_remap,
        )

    uploaded, unreferenced = _upload_assets(plan, options, assets_target)
    operations.assets_uploaded = uploaded
    operations.unreferenced_assets = unreferenced

    options.emit(PHASE_DONE)
    logger.info(
        f"Imported {options.file_name} as project {project_id}: "
        f"{operations.canvases_imported} canvas(es), {uploaded} asset(s) uploaded, "
        f"{len(unreferenced)} unreferenced"
    )

    report = build_import_report(
        options.file_name,
        document,
        ValidationResult(errors=[], warnings=list(validation.warnings)),
        operations,
        plan.canvas_id_remap,
    )
    return ImportResult(ok=True, project_id=project_id, report=report)
