"""
Constants and configuration values for Open Canvas.

This module centralizes all constant values, magic numbers, and
configuration settings used by the archive export/import pipeline.
"""

# Archive document constants
FORMAT_TAG = "opencanvasjson"
DOCUMENT_VERSION = 1
GRAPH_SCHEMA_VERSION = 4
EXPORT_EXTENSION = ".ocjson"
EXPORTS_DIR_NAME = "Exports"
PROJECTS_DIR_NAME = "Projects"
REPORTS_DIR_NAME = "Reports"

# Embedded asset ceiling (10 MiB)
EMBED_SIZE_LIMIT = 10 * 1024 * 1024

# Deepest JSON nesting accepted from an archive file
MAX_NESTING_DEPTH = 100

# Asset encodings
ENCODING_BASE64 = "base64"
ENCODING_STORAGE_REF = "storageRef"

# Asset kinds recorded by storage
ASSET_KIND_CSV = "csv"
ASSET_KIND_IMAGE = "image"
ASSET_KIND_FILE = "file"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Safe filename characters
SAFE_FILENAME_CHARS = "-_"
FILENAME_REPLACEMENT_CHAR = "_"
MAX_FILENAME_STEM = 80
DEFAULT_EXPORT_STEM = "open_canvas"

# Document field names
FIELD_FORMAT = "format"
FIELD_VERSION = "version"
FIELD_EXPORTED_AT = "exportedAt"
FIELD_EXPORTER = "exporter"
FIELD_HASHES = "hashes"
FIELD_PROJECT = "project"
FIELD_CANVASES = "canvases"
FIELD_ASSETS = "assets"

# Exporter field names
FIELD_APP_VERSION = "appVersion"
FIELD_BUILD_SHA = "buildSha"
FIELD_BUILD_TIME = "buildTime"
FIELD_BUILD_ENV = "buildEnv"
FIELD_ENGINE_VERSION = "engineVersion"
FIELD_ENGINE_CONTRACT_VERSION = "engineContractVersion"

# Hash manifest field names
FIELD_PROJECT_HASH = "projectHash"
FIELD_HASH = "hash"
FIELD_PATH_OR_NAME = "pathOrName"
FIELD_BYTES = "bytes"

# Project field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_DESCRIPTION = "description"
FIELD_ACTIVE_CANVAS_ID = "activeCanvasId"
FIELD_VARIABLES = "variables"
FIELD_VALUE = "value"
FIELD_CREATED_AT = "created_at"
FIELD_UPDATED_AT = "updated_at"

# Canvas / graph field names
FIELD_POSITION = "position"
FIELD_GRAPH = "graph"
FIELD_SCHEMA_VERSION = "schemaVersion"
FIELD_CANVAS_ID = "canvasId"
FIELD_PROJECT_ID = "projectId"
FIELD_NODES = "nodes"
FIELD_EDGES = "edges"
FIELD_DATASET_REFS = "datasetRefs"

# Asset field names
FIELD_MIME_TYPE = "mimeType"
FIELD_SIZE_BYTES = "sizeBytes"
FIELD_ENCODING = "encoding"
FIELD_DATA = "data"
FIELD_SHA256 = "sha256"
FIELD_STORAGE_PATH = "storagePath"

# Field names that must never appear in an archive
FORBIDDEN_FIELDS = (
    "access_token",
    "refresh_token",
    "api_key",
    "anon_key",
    "service_role_key",
    "client_secret",
    "private_key",
    "password",
    "email",
)

# Validation issue codes
CODE_SECRET_DETECTED = "SECRET_DETECTED"
CODE_EMAIL_DETECTED = "EMAIL_DETECTED"
CODE_INVALID_NUMBER = "INVALID_NUMBER"
CODE_SCHEMA_VERSION = "SCHEMA_VERSION"
CODE_DUPLICATE_CANVAS_ID = "DUPLICATE_CANVAS_ID"
CODE_ASSET_TOO_LARGE = "ASSET_TOO_LARGE"
CODE_CANVAS_ID_MISMATCH = "CANVAS_ID_MISMATCH"

# Integrity issue codes
CODE_MISSING_CANVAS_HASH = "MISSING_CANVAS_HASH"
CODE_CANVAS_HASH_MISMATCH = "CANVAS_HASH_MISMATCH"
CODE_PROJECT_HASH_MISMATCH = "PROJECT_HASH_MISMATCH"

# Import issue codes
CODE_ABORTED = "ABORTED"
CODE_IMPORT_FAILED = "IMPORT_FAILED"

# Number of hex characters shown when reporting digest mismatches
DIGEST_PREFIX_LENGTH = 16

# Import progress phases
PHASE_VALIDATING = "validating"
PHASE_CREATING = "creating"
PHASE_CANVASES = "canvases"
PHASE_ASSETS = "assets"
PHASE_DONE = "done"
PHASE_FAILED = "failed"
