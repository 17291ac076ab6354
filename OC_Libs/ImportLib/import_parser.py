"""
Strict parser for Open Canvas archive files.

Decodes raw bytes into a typed ``ProjectDocument`` or fails fast with an
``ImportParseError`` naming the offending field path. Nothing is guessed or
repaired: the parsed document feeds hash verification and persistence
directly, so any ambiguity is rejected.

Checks, in order:
- UTF-8 JSON (an optional BOM is accepted), object root
- exact format tag and version
- nesting no deeper than MAX_NESTING_DEPTH levels
- exporter, hashes, project, canvases and assets blocks, with every
  required field present and correctly typed at every depth
- at least one canvas, each graph at the current schema version

Non-finite number tokens (``NaN``, ``Infinity``) are rejected at decode time.

Classes:
    ImportParseError: Raised for any malformed input

Functions:
    parse_document: Parse archive bytes or text
    parse_document_dict: Check an already-decoded JSON object
"""

import json
import math
from typing import Any, Dict, List, Optional, Union

from OC_Libs.ArchiveLib.document_model import ProjectDocument
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
    MAX_NESTING_DEPTH,
)


class ImportParseError(ValueError):
    """Raised when archive input is malformed.

    Attributes:
        path: Field path of the offending value, when known
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


def _reject_constant(token: str) -> Any:
    raise ImportParseError(f"File contains a non-finite number ({token}).")


def _parse_finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ImportParseError(f"File contains a number out of range ({token}).")
    return value


def parse_document(data: Union[bytes, str]) -> ProjectDocument:
    """
    Parse archive bytes into a typed document.

    Args:
        data: Raw file bytes or decoded text

    Returns:
        The parsed ProjectDocument

    Raises:
        ImportParseError: On any malformed, mistyped or unsupported input
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            text = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ImportParseError("File is not valid UTF-8 text.") from e
    else:
        text = data

    try:
        raw = json.loads(text, parse_constant=_reject_constant, parse_float=_parse_finite_float)
    except ImportParseError:
        raise
    except (ValueError, RecursionError) as e:
        raise ImportParseError("File is not valid JSON.") from e

    return parse_document_dict(raw)


def parse_document_dict(raw: Any) -> ProjectDocument:
    """
    Check a decoded JSON value and convert it to a ProjectDocument.

    Raises:
        ImportParseError: On any missing or mistyped field
    """
    if not isinstance(raw, dict):
        raise ImportParseError("File root must be a JSON object.")

    fmt = raw.get(FIELD_FORMAT)
    if fmt != FORMAT_TAG:
        raise ImportParseError(
            f'Unsupported format: expected "{FORMAT_TAG}", got "{fmt}".', FIELD_FORMAT
        )
    version = raw.get(FIELD_VERSION)
    if not _is_int(version) or version != DOCUMENT_VERSION:
        raise ImportParseError(
            f"Unsupported version: expected {DOCUMENT_VERSION}, got {version}.", FIELD_VERSION
        )
    _check_depth(raw)

    _require_string(raw, FIELD_EXPORTED_AT)

    exporter = _require_object(raw, FIELD_EXPORTER)
    for key in (FIELD_APP_VERSION, FIELD_BUILD_SHA, FIELD_BUILD_TIME, FIELD_BUILD_ENV, FIELD_ENGINE_VERSION):
        _require_string(exporter, key, FIELD_EXPORTER)
    _require_number(exporter, FIELD_ENGINE_CONTRACT_VERSION, FIELD_EXPORTER)

    _check_hashes(_require_object(raw, FIELD_HASHES))
    _check_project(_require_object(raw, FIELD_PROJECT))

    canvases = _require_array(raw, FIELD_CANVASES)
    if not canvases:
        raise ImportParseError("Project must contain at least one canvas.", FIELD_CANVASES)
    for index, canvas in enumerate(canvases):
        _check_canvas(canvas, f"{FIELD_CANVASES}[{index}]")

    assets = _require_array(raw, FIELD_ASSETS)
    for index, asset in enumerate(assets):
        _check_asset(asset, f"{FIELD_ASSETS}[{index}]")

    return ProjectDocument.from_dict(raw)


def _check_depth(raw: Any) -> None:
    """Reject values nested deeper than MAX_NESTING_DEPTH levels."""
    stack = [(raw, 1, "")]
    while stack:
        value, depth, path = stack.pop()
        if depth > MAX_NESTING_DEPTH:
            raise ImportParseError(
                f"{path or 'File'} is nested deeper than {MAX_NESTING_DEPTH} levels.", path or None
            )
        if isinstance(value, dict):
            stack.extend((item, depth + 1, _label(path, key)) for key, item in value.items())
        elif isinstance(value, list):
            stack.extend((item, depth + 1, f"{path}[{index}]") for index, item in enumerate(value))


def _check_hashes(hashes: Dict[str, Any]) -> None:
    _require_string(hashes, FIELD_PROJECT_HASH, FIELD_HASHES)

    canvas_hashes = _require_array(hashes, FIELD_CANVASES, FIELD_HASHES)
    for index, entry in enumerate(canvas_hashes):
        label = f"{FIELD_HASHES}.{FIELD_CANVASES}[{index}]"
        if not isinstance(entry, dict):
            raise ImportParseError(f"{label} must be an object.", label)
        _require_string(entry, FIELD_ID, label)
        _require_string(entry, FIELD_HASH, label)

    asset_hashes = _require_array(hashes, FIELD_ASSETS, FIELD_HASHES)
    for index, entry in enumerate(asset_hashes):
        label = f"{FIELD_HASHES}.{FIELD_ASSETS}[{index}]"
        if not isinstance(entry, dict):
            raise ImportParseError(f"{label} must be an object.", label)
        _require_string(entry, FIELD_PATH_OR_NAME, label)
        _require_optional_string(entry, FIELD_SHA256, label)
        _require_number(entry, FIELD_BYTES, label)


def _check_project(project: Dict[str, Any]) -> None:
    if project.get(FIELD_ID) is not None and not isinstance(project.get(FIELD_ID), str):
        raise ImportParseError(f"{FIELD_PROJECT}.{FIELD_ID} must be a string or null.", f"{FIELD_PROJECT}.{FIELD_ID}")
    _require_string(project, FIELD_NAME, FIELD_PROJECT)
    for key in (FIELD_DESCRIPTION, FIELD_ACTIVE_CANVAS_ID, FIELD_CREATED_AT, FIELD_UPDATED_AT):
        _require_optional_string(project, key, FIELD_PROJECT)

    variables = _require_object(project, FIELD_VARIABLES, FIELD_PROJECT)
    for key, variable in variables.items():
        label = f'{FIELD_PROJECT}.{FIELD_VARIABLES}["{key}"]'
        if not isinstance(variable, dict):
            raise ImportParseError(f"{label} must be an object.", label)
        _require_string(variable, FIELD_ID, label)
        _require_string(variable, FIELD_NAME, label)
        _require_number(variable, FIELD_VALUE, label)
        _require_optional_string(variable, FIELD_DESCRIPTION, label)


def _check_canvas(canvas: Any, label: str) -> None:
    if not isinstance(canvas, dict):
        raise ImportParseError(f"{label} must be an object.", label)
    _require_string(canvas, FIELD_ID, label)
    _require_string(canvas, FIELD_NAME, label)
    _require_number(canvas, FIELD_POSITION, label)

    graph = _require_object(canvas, FIELD_GRAPH, label)
    graph_label = f"{label}.{FIELD_GRAPH}"
    schema_version = graph.get(FIELD_SCHEMA_VERSION)
    if not _is_int(schema_version) or schema_version != GRAPH_SCHEMA_VERSION:
        raise ImportParseError(
            f"{graph_label}.{FIELD_SCHEMA_VERSION} must be {GRAPH_SCHEMA_VERSION}, got {schema_version}.",
            f"{graph_label}.{FIELD_SCHEMA_VERSION}",
        )
    _require_optional_string(graph, FIELD_CANVAS_ID, graph_label)
    _require_optional_string(graph, FIELD_PROJECT_ID, graph_label)
    for key in (FIELD_NODES, FIELD_EDGES, FIELD_DATASET_REFS):
        _require_array(graph, key, graph_label)


def _check_asset(asset: Any, label: str) -> None:
    if not isinstance(asset, dict):
        raise ImportParseError(f"{label} must be an object.", label)
    _require_string(asset, FIELD_NAME, label)
    _require_string(asset, FIELD_MIME_TYPE, label)
    _require_number(asset, FIELD_SIZE_BYTES, label)
    encoding = _require_string(asset, FIELD_ENCODING, label)

    if encoding == ENCODING_BASE64:
        if not isinstance(asset.get(FIELD_DATA), str):
            raise ImportParseError(
                f"{label}.{FIELD_DATA} must be a string for {ENCODING_BASE64} encoding.",
                f"{label}.{FIELD_DATA}",
            )
        if not isinstance(asset.get(FIELD_SHA256), str):
            raise ImportParseError(
                f"{label}.{FIELD_SHA256} must be a string for {ENCODING_BASE64} encoding.",
                f"{label}.{FIELD_SHA256}",
            )
    elif encoding == ENCODING_STORAGE_REF:
        if not isinstance(asset.get(FIELD_STORAGE_PATH), str):
            raise ImportParseError(
                f"{label}.{FIELD_STORAGE_PATH} must be a string for {ENCODING_STORAGE_REF} encoding.",
                f"{label}.{FIELD_STORAGE_PATH}",
            )
        _require_optional_string(asset, FIELD_SHA256, label)
    else:
        raise ImportParseError(
            f'{label}.{FIELD_ENCODING} must be "{ENCODING_BASE64}" or "{ENCODING_STORAGE_REF}", got "{encoding}".',
            f"{label}.{FIELD_ENCODING}",
        )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _label(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _require_string(obj: Dict[str, Any], key: str, prefix: str = "") -> str:
    label = _label(prefix, key)
    value = obj.get(key)
    if not isinstance(value, str):
        raise ImportParseError(f"{label} must be a string.", label)
    return value


def _require_optional_string(obj: Dict[str, Any], key: str, prefix: str = "") -> Optional[str]:
    label = _label(prefix, key)
    value = obj.get(key)
    if value is not None and not isinstance(value, str):
        raise ImportParseError(f"{label} must be a string or null.", label)
    return value


def _require_number(obj: Dict[str, Any], key: str, prefix: str = "") -> Union[int, float]:
    label = _label(prefix, key)
    value = obj.get(key)
    if not _is_number(value):
        raise ImportParseError(f"{label} must be a number.", label)
    return value


def _require_object(obj: Dict[str, Any], key: str, prefix: str = "") -> Dict[str, Any]:
    label = _label(prefix, key)
    value = obj.get(key)
    if not isinstance(value, dict):
        raise ImportParseError(f"{label} must be an object.", label)
    return value


def _require_array(obj: Dict[str, Any], key: str, prefix: str = "") -> List[Any]:
    label = _label(prefix, key)
    value = obj.get(key)
    if not isinstance(value, list):
        raise ImportParseError(f"{label} must be an array.", label)
    return value
