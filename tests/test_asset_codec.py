"""
Unit tests for asset_codec module.

Tests embedding, decoding, digest verification, MIME sniffing and the
embed-or-reference decision.
"""

import base64
import hashlib
import io

import pytest
from PIL import Image

from OC_Libs.ArchiveLib.asset_codec import (
    asset_from_bytes,
    asset_kind,
    decode,
    decoded_length,
    embed,
    embed_file,
    guess_mime_type,
    reference,
    verify_asset_bytes,
)
from OC_Libs.ArchiveLib.document_model import EmbeddedAsset, ReferencedAsset


def _png_bytes():
    image = Image.new("RGB", (4, 4), (200, 30, 30))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class TestEmbedDecode:
    """Tests for embed and decode functions."""

    def test_round_trip(self, csv_bytes):
        """Should decode to exactly the embedded bytes."""
        asset = embed("payments.csv", "text/csv", csv_bytes)

        assert decode(asset) == csv_bytes

    def test_records_size_and_digest(self, csv_bytes):
        """Should record the raw length and an independently computed SHA-256."""
        asset = embed("payments.csv", "text/csv", csv_bytes)

        assert asset.size_bytes == len(csv_bytes)
        assert asset.sha256 == hashlib.sha256(csv_bytes).hexdigest()
        assert asset.encoding == "base64"
        assert asset.path_or_name == "payments.csv"

    def test_empty_payload(self):
        """Should embed and decode an empty payload."""
        asset = embed("empty.txt", "text/plain", b"")

        assert decode(asset) == b""
        assert asset.size_bytes == 0

    def test_invalid_base64_raises(self):
        """Should raise ValueError for a payload that is not base64."""
        asset = EmbeddedAsset(name="x.bin", mime_type="application/octet-stream", size_bytes=3, data="@@@", sha256="")

        with pytest.raises(ValueError, match="not valid base64"):
            decode(asset)


class TestVerifyAssetBytes:
    """Tests for verify_asset_bytes function."""

    def test_accepts_matching_bytes(self, csv_asset, csv_bytes):
        """Should pass silently for matching bytes."""
        verify_asset_bytes(csv_asset, csv_bytes)

    def test_rejects_digest_mismatch(self, csv_asset, csv_bytes):
        """Should raise ValueError naming both digest prefixes."""
        tampered = csv_bytes.replace(b"85.61", b"85.62", 1)

        with pytest.raises(ValueError, match="SHA-256 mismatch"):
            verify_asset_bytes(csv_asset, tampered)

    def test_rejects_size_mismatch(self, csv_asset, csv_bytes):
        """Should raise ValueError when the length differs."""
        with pytest.raises(ValueError, match="Size mismatch"):
            verify_asset_bytes(csv_asset, csv_bytes + b"\n")


class TestDecodedLength:
    """Tests for decoded_length function."""

    @pytest.mark.parametrize("size", [0, 1, 2, 3, 4, 5, 100])
    def test_matches_real_length(self, size):
        """Should compute the decoded size from the base64 text."""
        text = base64.b64encode(b"x" * size).decode("ascii")

        assert decoded_length(text) == size


class TestGuessMimeType:
    """Tests for guess_mime_type function."""

    def test_sniffs_png_content(self):
        """Should identify PNG bytes with Pillow regardless of file name."""
        assert guess_mime_type("chart.bin", _png_bytes()) == "image/png"

    def test_falls_back_to_extension(self, csv_bytes):
        """Should use the file extension for non-image payloads."""
        assert guess_mime_type("payments.csv", csv_bytes) == "text/csv"

    def test_unknown_defaults_to_octet_stream(self):
        """Should return application/octet-stream when nothing matches."""
        assert guess_mime_type("blob", b"\x00\x01") == "application/octet-stream"


class TestAssetKind:
    """Tests for asset_kind function."""

    def test_kinds(self):
        """Should map CSV, image and other MIME types."""
        assert asset_kind("text/csv") == "csv"
        assert asset_kind("text/csv; charset=utf-8") == "csv"
        assert asset_kind("image/png") == "image"
        assert asset_kind("application/pdf") == "file"


class TestAssetFromBytes:
    """Tests for asset_from_bytes and reference functions."""

    def test_small_payload_is_embedded(self, csv_bytes):
        """Should embed payloads within the limit."""
        asset = asset_from_bytes("payments.csv", csv_bytes)

        assert isinstance(asset, EmbeddedAsset)
        assert asset.mime_type == "text/csv"

    def test_large_payload_becomes_reference(self):
        """Should reference payloads over the limit when a storage path is given."""
        data = b"x" * 32
        asset = asset_from_bytes("big.bin", data, storage_path="store/big.bin", size_limit=16)

        assert isinstance(asset, ReferencedAsset)
        assert asset.size_bytes == 32
        assert asset.sha256 == hashlib.sha256(data).hexdigest()
        assert asset.path_or_name == "store/big.bin"

    def test_large_payload_without_path_raises(self):
        """Should refuse oversized payloads with no storage path."""
        with pytest.raises(ValueError, match="storage path"):
            asset_from_bytes("big.bin", b"x" * 32, size_limit=16)

    def test_reference_carries_no_payload(self):
        """Should build a reference with encoding storageRef."""
        asset = reference("scan.tif", "image/tiff", 2048, "store/scan.tif")

        assert asset.encoding == "storageRef"
        assert asset.sha256 is None
        assert "data" not in asset.to_dict()


class TestEmbedFile:
    """Tests for embed_file function."""

    def test_embeds_file_under_its_name(self, tmp_path):
        """Should embed a file with a sniffed MIME type."""
        path = tmp_path / "chart.png"
        path.write_bytes(_png_bytes())

        asset = embed_file(path)

        assert asset.name == "chart.png"
        assert asset.mime_type == "image/png"
        assert decode(asset) == path.read_bytes()

    def test_missing_file_raises(self, tmp_path):
        """Should raise FileNotFoundError for a missing file."""
        with pytest.raises(FileNotFoundError):
            embed_file(tmp_path / "missing.csv")
