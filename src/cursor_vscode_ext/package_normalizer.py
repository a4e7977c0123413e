from __future__ import annotations

import gzip
import hashlib
import io
import logging
import zipfile
import zlib

from cursor_vscode_ext.exceptions import CorruptPackage
from cursor_vscode_ext.marketplace import is_gzip_framed
from cursor_vscode_ext.models import ContentEncoding, FetchResult

VSIX_MANIFEST = "extension.vsixmanifest"

logger: logging.Logger = logging.getLogger(__name__)


def normalize(result: FetchResult) -> bytes:
    """Return the installable package bytes, decompressing gzip framing if present."""
    if result.content_encoding is not ContentEncoding.GZIP and not is_gzip_framed(
        result.data
    ):
        return result.data

    try:
        data = gzip.decompress(result.data)
    except (OSError, EOFError, zlib.error) as exc:
        raise CorruptPackage(
            f"Package from {result.source_url} is not a valid gzip stream: {exc}"
        ) from exc

    logger.debug(f"Decompressed package: {len(result.data)} -> {len(data)} bytes")
    return data


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def verify_package(data: bytes, expected_sha256: str = "") -> None:
    """Check that *data* is a VSIX archive and, if pinned, matches its checksum."""
    if expected_sha256:
        actual = sha256_bytes(data)
        if actual.lower() != expected_sha256.strip().lower():
            raise CorruptPackage(
                f"Package checksum mismatch: expected {expected_sha256}, got {actual}"
            )

    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = archive.namelist()
    except zipfile.BadZipFile as exc:
        raise CorruptPackage(f"Package is not a valid VSIX archive: {exc}") from exc

    if VSIX_MANIFEST not in names:
        raise CorruptPackage(f"Package is missing {VSIX_MANIFEST}")
