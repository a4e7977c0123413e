from __future__ import annotations

from typing import Mapping
from urllib.parse import quote

from cursor_vscode_ext.models import ContentEncoding, ExtensionIdentifier

GZIP_MAGIC = b"\x1f\x8b"
ZIP_MAGIC = b"PK\x03\x04"
LATEST_VERSION = "latest"


def build_download_url(identifier: ExtensionIdentifier, base_url: str) -> str:
    """Return the vspackage URL; the endpoint resolves ``latest`` itself."""
    version = identifier.version or LATEST_VERSION
    return (
        f"{base_url.rstrip('/')}/_apis/public/gallery/publishers/"
        f"{quote(identifier.publisher, safe='')}/vsextensions/"
        f"{quote(identifier.name, safe='')}/{quote(version, safe='')}/vspackage"
    )


def is_gzip_framed(data: bytes) -> bool:
    return data[:2] == GZIP_MAGIC


def is_zip_framed(data: bytes) -> bool:
    return data[:4] == ZIP_MAGIC


def header_declares_gzip(headers: Mapping[str, str]) -> bool:
    value = ""
    for key, item in headers.items():
        if key.lower() == "content-encoding":
            value = str(item)
            break
    encodings = [token.strip().lower() for token in value.split(",")]
    return "gzip" in encodings or "x-gzip" in encodings


def classify_content_encoding(
    headers: Mapping[str, str], data: bytes
) -> tuple[ContentEncoding, bool]:
    """Return the encoding and whether the header was overruled by the payload.

    The header wins unless the payload already is a plain ZIP archive. A
    missing header is backed up by sniffing the gzip magic bytes.
    """
    declared = header_declares_gzip(headers)
    if declared and is_zip_framed(data):
        return ContentEncoding.NONE, True
    if declared or is_gzip_framed(data):
        return ContentEncoding.GZIP, False
    return ContentEncoding.NONE, False
