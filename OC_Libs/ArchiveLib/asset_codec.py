"""
Asset encoding for project archives.

Attachments travel in one of two encodings:

- embedded: the raw bytes, base64-encoded, with their SHA-256 and length
- referenced: only an external storage pointer (and optional SHA-256)

The embed ceiling (``EMBED_SIZE_LIMIT``) is enforced by the import
validator; ``embed`` itself accepts any payload. ``asset_from_bytes`` picks
the encoding for callers that want the ceiling applied at export time.

Decoded bytes must be re-verified against their digest at the point of use
(``verify_asset_bytes``), not only during validation.

Functions:
    embed: Build an embedded asset from raw bytes
    reference: Build a referenced asset
    decode: Base64-decode an embedded asset
    verify_asset_bytes: Check bytes against an asset's size and digest
    decoded_length: Payload length implied by a base64 string
    guess_mime_type: Identify a payload's MIME type
    asset_kind: Storage kind tag for a MIME type
    asset_from_bytes: Embed or reference depending on size
    embed_file: Embed a file from disk
"""

import base64
import binascii
import io
import mimetypes
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from OC_Libs.ArchiveLib.content_hasher import sha256_hex
from OC_Libs.ArchiveLib.document_model import Asset, EmbeddedAsset, ReferencedAsset
from OC_Libs.constants import (
    ASSET_KIND_CSV,
    ASSET_KIND_FILE,
    ASSET_KIND_IMAGE,
    DEFAULT_MIME_TYPE,
    EMBED_SIZE_LIMIT,
)


def embed(name: str, mime_type: str, data: bytes) -> EmbeddedAsset:
    """
    Build an embedded asset from raw bytes.

    Args:
        name: Attachment file name
        mime_type: MIME type of the payload
        data: Raw payload

    Returns:
        EmbeddedAsset with base64 data, byte length and SHA-256 of ``data``
    """
    payload = bytes(data)
    return EmbeddedAsset(
        name=name,
        mime_type=mime_type,
        size_bytes=len(payload),
        data=base64.b64encode(payload).decode("ascii"),
        sha256=sha256_hex(payload),
    )


def reference(
    name: str,
    mime_type: str,
    size_bytes: int,
    storage_path: str,
    sha256: Optional[str] = None,
) -> ReferencedAsset:
    """Build a referenced asset. No payload travels with it."""
    return ReferencedAsset(
        name=name,
        mime_type=mime_type,
        size_bytes=int(size_bytes),
        storage_path=storage_path,
        sha256=sha256,
    )


def decode(asset: EmbeddedAsset) -> bytes:
    """
    Decode an embedded asset's payload.

    The result is not trusted until checked with ``verify_asset_bytes``.

    Raises:
        ValueError: If the payload is not valid base64
    """
    try:
        return base64.b64decode(asset.data.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Asset '{asset.name}' payload is not valid base64: {e}") from e


def verify_asset_bytes(asset: Asset, data: bytes) -> None:
    """
    Check decoded bytes against the asset's declared size and digest.

    Raises:
        ValueError: On a size or SHA-256 mismatch
    """
    if len(data) != asset.size_bytes:
        raise ValueError(
            f"Size mismatch for '{asset.name}': declared {asset.size_bytes} bytes, got {len(data)}"
        )
    if asset.sha256:
        computed = sha256_hex(data)
        if computed != asset.sha256:
            raise ValueError(
                f"SHA-256 mismatch for '{asset.name}': expected {asset.sha256[:16]}..., got {computed[:16]}..."
            )


def decoded_length(data: str) -> int:
    """Return the number of bytes a base64 string decodes to, without decoding it."""
    stripped = data.strip()
    if not stripped:
        return 0
    padding = len(stripped) - len(stripped.rstrip("="))
    return (len(stripped) * 3) // 4 - padding


def guess_mime_type(name: str, data: Optional[bytes] = None) -> str:
    """
    Identify the MIME type of a payload.

    Image payloads are recognized from their content with Pillow; everything
    else falls back to the file name extension.

    Args:
        name: File name (used for the extension fallback)
        data: Optional raw payload

    Returns:
        MIME type string, ``application/octet-stream`` when unknown
    """
    if data:
        try:
            with Image.open(io.BytesIO(data)) as image:
                mime = Image.MIME.get(image.format or "")
                if mime:
                    return mime
        except (UnidentifiedImageError, OSError, ValueError):
            pass

    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_MIME_TYPE


def asset_kind(mime_type: str) -> str:
    """Map a MIME type to the storage kind tag: csv, image or file."""
    mime = (mime_type or "").lower()
    if mime.startswith("text/csv"):
        return ASSET_KIND_CSV
    if mime.startswith("image/"):
        return ASSET_KIND_IMAGE
    return ASSET_KIND_FILE


def asset_from_bytes(
    name: str,
    data: bytes,
    mime_type: Optional[str] = None,
    storage_path: Optional[str] = None,
    size_limit: int = EMBED_SIZE_LIMIT,
) -> Asset:
    """
    Encode an attachment, embedding it when it fits under the size limit.

    Args:
        name: Attachment file name
        data: Raw payload
        mime_type: MIME type (sniffed when omitted)
        storage_path: External pointer, required for oversized payloads
        size_limit: Embed ceiling in bytes

    Returns:
        EmbeddedAsset, or ReferencedAsset for oversized payloads

    Raises:
        ValueError: If the payload is too large and no storage path is given
    """
    mime = mime_type or guess_mime_type(name, data)
    if len(data) <= size_limit:
        return embed(name, mime, data)

    if not storage_path:
        raise ValueError(
            f"Asset '{name}' is {len(data)} bytes (max {size_limit} embedded); a storage path is required"
        )
    return reference(name, mime, len(data), storage_path, sha256_hex(data))


def embed_file(file_path: Path, mime_type: Optional[str] = None) -> EmbeddedAsset:
    """
    Embed a file from disk under its own file name.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(file_path)
    data = path.read_bytes()
    return embed(path.name, mime_type or guess_mime_type(path.name, data), data)
