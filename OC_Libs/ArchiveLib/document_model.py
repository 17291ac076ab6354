"""
Typed document model for Open Canvas project archives.

An archive is one JSON document holding a whole project: exporter metadata,
a two-level hash manifest, project metadata with its variables, an ordered
list of canvases (each with its own graph document) and binary attachments.

Every class converts to and from the JSON-shaped dictionary used on disk
via ``to_dict`` / ``from_dict``. ``from_dict`` trusts its input; callers
reading untrusted bytes go through ``ImportLib.import_parser`` first.

Classes:
    Variable: A named numeric project variable
    GraphDocument: Per-canvas graph (nodes, edges, dataset references)
    CanvasEntry: A canvas with its name, position and graph
    EmbeddedAsset: Attachment carried inline as base64
    ReferencedAsset: Attachment that lives outside the archive
    ExporterInfo: Build and engine metadata of the exporting application
    CanvasHash / AssetHash / HashManifest: Digest manifest
    ProjectMeta: Project metadata block
    ProjectDocument: The whole archive
    ExportArgs: Project snapshot handed to the export builder
    ImportIssue / ValidationResult: Validation findings

Functions:
    asset_from_dict: Decode either asset encoding
    variables_from_dict / variables_to_dict: VariablesMap conversion
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from OC_Libs import __version__
from OC_Libs.constants import (
    DOCUMENT_VERSION,
    ENCODING_BASE64,
    ENCODING_STORAGE_REF,
    FIELD_ACTIVE_CANVAS_ID,
    FIELD_APP_VERSION,
    FIELD_ASSETS,
    FIELD_BUILD_ENV,
    FIELD_BUILD_SHA,
    FIELD_BUILD_TIME,
    FIELD_BYTES,
    FIELD_CANVAS_ID,
    FIELD_CANVASES,
    FIELD_CREATED_AT,
    FIELD_DATA,
    FIELD_DATASET_REFS,
    FIELD_DESCRIPTION,
    FIELD_EDGES,
    FIELD_ENCODING,
    FIELD_ENGINE_CONTRACT_VERSION,
    FIELD_ENGINE_VERSION,
    FIELD_EXPORTED_AT,
    FIELD_EXPORTER,
    FIELD_FORMAT,
    FIELD_GRAPH,
    FIELD_HASH,
    FIELD_HASHES,
    FIELD_ID,
    FIELD_MIME_TYPE,
    FIELD_NAME,
    FIELD_NODES,
    FIELD_PATH_OR_NAME,
    FIELD_POSITION,
    FIELD_PROJECT,
    FIELD_PROJECT_HASH,
    FIELD_PROJECT_ID,
    FIELD_SCHEMA_VERSION,
    FIELD_SHA256,
    FIELD_SIZE_BYTES,
    FIELD_STORAGE_PATH,
    FIELD_UPDATED_AT,
    FIELD_VALUE,
    FIELD_VARIABLES,
    FIELD_VERSION,
    FORMAT_TAG,
    GRAPH_SCHEMA_VERSION,
)


@dataclass
class Variable:
    """A named project variable.

    Attributes:
        id: Variable identifier (also its key in the variables map)
        name: Display name
        value: Finite numeric value (int or float, kept as given)
        description: Optional free text
    """
    id: str
    name: str
    value: Union[int, float]
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            FIELD_ID: self.id,
            FIELD_NAME: self.name,
            FIELD_VALUE: self.value,
        }
        if self.description is not None:
            data[FIELD_DESCRIPTION] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Variable":
        return cls(
            id=data[FIELD_ID],
            name=data[FIELD_NAME],
            value=data[FIELD_VALUE],
            description=data.get(FIELD_DESCRIPTION),
        )


def variables_to_dict(variables: Dict[str, Variable]) -> Dict[str, Dict[str, Any]]:
    return {key: variable.to_dict() for key, variable in variables.items()}


def variables_from_dict(data: Dict[str, Any]) -> Dict[str, Variable]:
    return {key: Variable.from_dict(value) for key, value in data.items()}


@dataclass
class GraphDocument:
    """Per-canvas graph document.

    Node and edge payloads are opaque to the archive pipeline; they are
    carried, hashed and persisted without interpretation.
    """
    canvas_id: str
    project_id: str
    nodes: List[Any] = field(default_factory=list)
    edges: List[Any] = field(default_factory=list)
    dataset_refs: List[Any] = field(default_factory=list)
    schema_version: int = GRAPH_SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_SCHEMA_VERSION: self.schema_version,
            FIELD_CANVAS_ID: self.canvas_id,
            FIELD_PROJECT_ID: self.project_id,
            FIELD_NODES: self.nodes,
            FIELD_EDGES: self.edges,
            FIELD_DATASET_REFS: self.dataset_refs,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphDocument":
        return cls(
            canvas_id=data.get(FIELD_CANVAS_ID, ""),
            project_id=data.get(FIELD_PROJECT_ID, ""),
            nodes=data[FIELD_NODES],
            edges=data[FIELD_EDGES],
            dataset_refs=data[FIELD_DATASET_REFS],
            schema_version=data[FIELD_SCHEMA_VERSION],
        )


@dataclass
class CanvasEntry:
    """A canvas: id, display name, integer position and graph."""
    id: str
    name: str
    position: int
    graph: GraphDocument

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_ID: self.id,
            FIELD_NAME: self.name,
            FIELD_POSITION: self.position,
            FIELD_GRAPH: self.graph.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanvasEntry":
        return cls(
            id=data[FIELD_ID],
            name=data[FIELD_NAME],
            position=data[FIELD_POSITION],
            graph=GraphDocument.from_dict(data[FIELD_GRAPH]),
        )


@dataclass
class EmbeddedAsset:
    """Attachment carried inside the archive as base64.

    Attributes:
        name: File name of the attachment
        mime_type: MIME type
        size_bytes: Length of the raw (decoded) payload
        data: Base64 payload
        sha256: Hex digest of the raw payload
    """
    name: str
    mime_type: str
    size_bytes: int
    data: str
    sha256: str

    @property
    def encoding(self) -> str:
        return ENCODING_BASE64

    @property
    def storage_path(self) -> str:
        return ""

    @property
    def path_or_name(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_NAME: self.name,
            FIELD_MIME_TYPE: self.mime_type,
            FIELD_SIZE_BYTES: self.size_bytes,
            FIELD_ENCODING: ENCODING_BASE64,
            FIELD_DATA: self.data,
            FIELD_SHA256: self.sha256,
        }


@dataclass
class ReferencedAsset:
    """Attachment whose bytes live in external storage.

    Attributes:
        name: File name of the attachment
        mime_type: MIME type
        size_bytes: Length of the external payload
        storage_path: External pointer to the payload
        sha256: Hex digest of the payload, when known
    """
    name: str
    mime_type: str
    size_bytes: int
    storage_path: str
    sha256: Optional[str] = None

    @property
    def encoding(self) -> str:
        return ENCODING_STORAGE_REF

    @property
    def path_or_name(self) -> str:
        return self.storage_path

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_NAME: self.name,
            FIELD_MIME_TYPE: self.mime_type,
            FIELD_SIZE_BYTES: self.size_bytes,
            FIELD_ENCODING: ENCODING_STORAGE_REF,
            FIELD_STORAGE_PATH: self.storage_path,
            FIELD_SHA256: self.sha256,
        }


Asset = Union[EmbeddedAsset, ReferencedAsset]


def asset_from_dict(data: Dict[str, Any]) -> Asset:
    """
    Build an asset from its dictionary form.

    Raises:
        ValueError: If the encoding is neither base64 nor storageRef
    """
    encoding = data.get(FIELD_ENCODING)
    if encoding == ENCODING_BASE64:
        return EmbeddedAsset(
            name=data[FIELD_NAME],
            mime_type=data[FIELD_MIME_TYPE],
            size_bytes=data[FIELD_SIZE_BYTES],
            data=data[FIELD_DATA],
            sha256=data[FIELD_SHA256],
        )
    if encoding == ENCODING_STORAGE_REF:
        return ReferencedAsset(
            name=data[FIELD_NAME],
            mime_type=data[FIELD_MIME_TYPE],
            size_bytes=data[FIELD_SIZE_BYTES],
            storage_path=data[FIELD_STORAGE_PATH],
            sha256=data.get(FIELD_SHA256),
        )
    raise ValueError(f"Unknown asset encoding: {encoding!r}")


@dataclass
class ExporterInfo:
    """Metadata describing the application that produced an archive."""
    app_version: str = __version__
    build_sha: str = "unknown"
    build_time: str = ""
    build_env: str = "production"
    engine_version: str = ""
    engine_contract_version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_APP_VERSION: self.app_version,
            FIELD_BUILD_SHA: self.build_sha,
            FIELD_BUILD_TIME: self.build_time,
            FIELD_BUILD_ENV: self.build_env,
            FIELD_ENGINE_VERSION: self.engine_version,
            FIELD_ENGINE_CONTRACT_VERSION: self.engine_contract_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExporterInfo":
        return cls(
            app_version=data[FIELD_APP_VERSION],
            build_sha=data[FIELD_BUILD_SHA],
            build_time=data[FIELD_BUILD_TIME],
            build_env=data[FIELD_BUILD_ENV],
            engine_version=data[FIELD_ENGINE_VERSION],
            engine_contract_version=data[FIELD_ENGINE_CONTRACT_VERSION],
        )


@dataclass
class CanvasHash:
    id: str
    hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {FIELD_ID: self.id, FIELD_HASH: self.hash}


@dataclass
class AssetHash:
    path_or_name: str
    sha256: Optional[str]
    bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_PATH_OR_NAME: self.path_or_name,
            FIELD_SHA256: self.sha256,
            FIELD_BYTES: self.bytes,
        }


@dataclass
class HashManifest:
    """Two-level digest tree: one aggregate project hash, one hash per canvas."""
    project_hash: str
    canvases: List[CanvasHash] = field(default_factory=list)
    assets: List[AssetHash] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_PROJECT_HASH: self.project_hash,
            FIELD_CANVASES: [entry.to_dict() for entry in self.canvases],
            FIELD_ASSETS: [entry.to_dict() for entry in self.assets],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HashManifest":
        return cls(
            project_hash=data[FIELD_PROJECT_HASH],
            canvases=[CanvasHash(id=entry[FIELD_ID], hash=entry[FIELD_HASH]) for entry in data[FIELD_CANVASES]],
            assets=[
                AssetHash(
                    path_or_name=entry.get(FIELD_PATH_OR_NAME, ""),
                    sha256=entry.get(FIELD_SHA256),
                    bytes=entry.get(FIELD_BYTES, 0),
                )
                for entry in data[FIELD_ASSETS]
                if isinstance(entry, dict)
            ],
        )

    def canvas_hash(self, canvas_id: str) -> Optional[str]:
        for entry in self.canvases:
            if entry.id == canvas_id:
                return entry.hash
        return None


@dataclass
class ProjectMeta:
    id: Optional[str]
    name: str
    description: Optional[str] = ""
    active_canvas_id: Optional[str] = None
    variables: Dict[str, Variable] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_ID: self.id,
            FIELD_NAME: self.name,
            FIELD_DESCRIPTION: self.description,
            FIELD_ACTIVE_CANVAS_ID: self.active_canvas_id,
            FIELD_VARIABLES: variables_to_dict(self.variables),
            FIELD_CREATED_AT: self.created_at,
            FIELD_UPDATED_AT: self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectMeta":
        return cls(
            id=data.get(FIELD_ID),
            name=data[FIELD_NAME],
            description=data.get(FIELD_DESCRIPTION),
            active_canvas_id=data.get(FIELD_ACTIVE_CANVAS_ID),
            variables=variables_from_dict(data[FIELD_VARIABLES]),
            created_at=data.get(FIELD_CREATED_AT),
            updated_at=data.get(FIELD_UPDATED_AT),
        )


@dataclass
class ProjectDocument:
    """A complete, content-addressed project archive."""
    exported_at: str
    exporter: ExporterInfo
    hashes: HashManifest
    project: ProjectMeta
    canvases: List[CanvasEntry]
    assets: List[Asset] = field(default_factory=list)
    format: str = FORMAT_TAG
    version: int = DOCUMENT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_FORMAT: self.format,
            FIELD_VERSION: self.version,
            FIELD_EXPORTED_AT: self.exported_at,
            FIELD_EXPORTER: self.exporter.to_dict(),
            FIELD_HASHES: self.hashes.to_dict(),
            FIELD_PROJECT: self.project.to_dict(),
            FIELD_CANVASES: [canvas.to_dict() for canvas in self.canvases],
            FIELD_ASSETS: [asset.to_dict() for asset in self.assets],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectDocument":
        return cls(
            exported_at=data[FIELD_EXPORTED_AT],
            exporter=ExporterInfo.from_dict(data[FIELD_EXPORTER]),
            hashes=HashManifest.from_dict(data[FIELD_HASHES]),
            project=ProjectMeta.from_dict(data[FIELD_PROJECT]),
            canvases=[CanvasEntry.from_dict(entry) for entry in data[FIELD_CANVASES]],
            assets=[asset_from_dict(entry) for entry in data[FIELD_ASSETS]],
            format=data[FIELD_FORMAT],
            version=data[FIELD_VERSION],
        )


@dataclass
class ExportArgs:
    """Snapshot of a live project, as handed to ``build_export``.

    Attributes:
        exported_at: ISO timestamp recorded in the archive
        exporter: Exporting application metadata
        project_name: Project display name
        canvases: Canvases in any order (sorted by position on export)
        variables: Project variables keyed by id
        project_id: Source project id (None for unsaved projects)
        project_description: Free text description
        active_canvas_id: Canvas selected in the source project
        created_at / updated_at: Source project timestamps
        assets: Attachments, already encoded by ``asset_codec``
    """
    exported_at: str
    exporter: ExporterInfo
    project_name: str
    canvases: List[CanvasEntry]
    variables: Dict[str, Variable] = field(default_factory=dict)
    project_id: Optional[str] = None
    project_description: Optional[str] = ""
    active_canvas_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    assets: List[Asset] = field(default_factory=list)

    @classmethod
    def from_document(cls, document: ProjectDocument) -> "ExportArgs":
        """Rebuild the export arguments a document was produced from."""
        project = document.project
        return cls(
            exported_at=document.exported_at,
            exporter=document.exporter,
            project_name=project.name,
            canvases=list(document.canvases),
            variables=project.variables,
            project_id=project.id,
            project_description=project.description,
            active_canvas_id=project.active_canvas_id,
            created_at=project.created_at,
            updated_at=project.updated_at,
            assets=list(document.assets),
        )


@dataclass
class ImportIssue:
    """A validation error or warning: machine code, message, optional field path."""
    code: str
    message: str
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.path is not None:
            data["path"] = self.path
        return data


@dataclass
class ValidationResult:
    """Collected validation findings. Errors block an import, warnings never do."""
    errors: List[ImportIssue] = field(default_factory=list)
    warnings: List[ImportIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error_codes(self) -> List[str]:
        return [issue.code for issue in self.errors]

    def warning_codes(self) -> List[str]:
        return [issue.code for issue in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
