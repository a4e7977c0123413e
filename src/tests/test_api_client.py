from __future__ import annotations

import io
import logging

import pytest
import requests
from conftest import FakeResponse, FakeSession
from requests.adapters import HTTPAdapter
from urllib3 import HTTPResponse
from urllib3.exceptions import ProtocolError

from cursor_vscode_ext.api_client import MarketplaceClient, build_session
from cursor_vscode_ext.exceptions import NetworkError, NotFound, UpstreamError
from cursor_vscode_ext.internal_config import DEFAULT_USER_AGENT
from cursor_vscode_ext.models import ContentEncoding, ExtensionIdentifier
from cursor_vscode_ext.package_normalizer import normalize

IDENTIFIER = ExtensionIdentifier.parse("vv13.markdown-auto-preview")


def _client(session: FakeSession) -> MarketplaceClient:
    return MarketplaceClient(
        session=session,
        base_url="https://marketplace.example",
        connect_timeout=3,
        read_timeout=7,
    )


def test_build_session_mounts_retry_adapters() -> None:
    session = build_session()

    assert "https://" in session.adapters
    assert "http://" in session.adapters
    retry = session.adapters["https://"].max_retries
    assert retry.total == 0
    assert "GET" in retry.allowed_methods
    assert retry.raise_on_status is False


def test_build_session_accepts_retry_count() -> None:
    session = build_session(retries=4)

    assert session.adapters["https://"].max_retries.total == 4


def test_client_uses_marketplace_url_from_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CURSOR_VSCODE_EXT_MARKETPLACE_URL", "https://mirror.example")

    client = MarketplaceClient(session=FakeSession())

    assert client.download_url(IDENTIFIER).startswith("https://mirror.example/_apis/")


def test_fetch_gzip_package(gzip_vsix_bytes: bytes) -> None:
    response = FakeResponse(
        body=gzip_vsix_bytes,
        headers={"Content-Encoding": "gzip"},
        url="https://cdn.example/final.vsix",
    )
    session = FakeSession(response)

    result = _client(session).fetch(IDENTIFIER)

    assert result.data == gzip_vsix_bytes
    assert result.content_encoding is ContentEncoding.GZIP
    assert result.source_url == "https://cdn.example/final.vsix"
    assert response.closed is True
    call = session.calls[0]
    assert call["url"] == (
        "https://marketplace.example/_apis/public/gallery/publishers/"
        "vv13/vsextensions/markdown-auto-preview/latest/vspackage"
    )
    assert call["stream"] is True
    assert call["allow_redirects"] is True
    assert call["timeout"] == (3, 7)
    assert call["headers"]["User-Agent"] == DEFAULT_USER_AGENT
    assert call["headers"]["Accept-Encoding"] == "gzip, identity"


def test_fetch_sniffs_gzip_when_header_missing(gzip_vsix_bytes: bytes) -> None:
    session = FakeSession(FakeResponse(body=gzip_vsix_bytes))

    result = _client(session).fetch(IDENTIFIER)

    assert result.content_encoding is ContentEncoding.GZIP


def test_fetch_plain_package(vsix_bytes: bytes) -> None:
    session = FakeSession(FakeResponse(body=vsix_bytes))

    result = _client(session).fetch(IDENTIFIER.with_version("1.2.3"))

    assert result.content_encoding is ContentEncoding.NONE
    assert result.data == vsix_bytes
    assert "/markdown-auto-preview/1.2.3/vspackage" in session.calls[0]["url"]


def test_fetch_ignores_unreliable_gzip_header(
    vsix_bytes: bytes, caplog: pytest.LogCaptureFixture
) -> None:
    session = FakeSession(
        FakeResponse(body=vsix_bytes, headers={"Content-Encoding": "gzip"})
    )

    with caplog.at_level(logging.WARNING):
        result = _client(session).fetch(IDENTIFIER)

    assert result.content_encoding is ContentEncoding.NONE
    assert any("Content-Encoding" in record.message for record in caplog.records)


def test_fetch_not_found() -> None:
    response = FakeResponse(status_code=404)
    session = FakeSession(response)

    with pytest.raises(NotFound) as exc_info:
        _client(session).fetch(IDENTIFIER)

    assert "vv13.markdown-auto-preview" in str(exc_info.value)
    assert exc_info.value.exit_code == 5
    assert response.closed is True


@pytest.mark.parametrize("status_code", [400, 401, 429, 500, 503])
def test_fetch_other_error_status_is_upstream_error(status_code: int) -> None:
    session = FakeSession(FakeResponse(status_code=status_code))

    with pytest.raises(UpstreamError) as exc_info:
        _client(session).fetch(IDENTIFIER)

    assert exc_info.value.status_code == status_code
    assert str(status_code) in str(exc_info.value)


@pytest.mark.parametrize(
    "error",
    [
        requests.ConnectionError("connection refused"),
        requests.Timeout("timed out"),
        requests.TooManyRedirects("loop"),
    ],
)
def test_fetch_transport_errors_are_network_errors(error: Exception) -> None:
    session = FakeSession(error=error)

    with pytest.raises(NetworkError) as exc_info:
        _client(session).fetch(IDENTIFIER)

    assert exc_info.value.__cause__ is error
    assert exc_info.value.exit_code == 4


def test_fetch_interrupted_body_is_network_error() -> None:
    response = FakeResponse()

    def _broken_read(decode_content: bool = True) -> bytes:
        raise ProtocolError("Connection broken")

    response.raw.read = _broken_read
    session = FakeSession(response)

    with pytest.raises(NetworkError):
        _client(session).fetch(IDENTIFIER)

    assert response.closed is True


class _GzipTransport(HTTPAdapter):
    """Answer every request with a gzip-encoded body, like the marketplace CDN."""

    def __init__(self, body: bytes) -> None:
        super().__init__()
        self.body = body
        self.requests: list[requests.PreparedRequest] = []

    def send(self, request: requests.PreparedRequest, **_kwargs) -> requests.Response:
        self.requests.append(request)
        raw = HTTPResponse(
            body=io.BytesIO(self.body),
            headers={
                "Content-Encoding": "gzip",
                "Content-Type": "application/octet-stream",
            },
            status=200,
            preload_content=False,
            decode_content=True,
        )
        return self.build_response(request, raw)


def test_fetch_keeps_gzip_framing_of_real_response(
    vsix_bytes: bytes, gzip_vsix_bytes: bytes
) -> None:
    transport = _GzipTransport(gzip_vsix_bytes)
    session = requests.Session()
    session.mount("https://", transport)

    result = MarketplaceClient(
        session=session, base_url="https://marketplace.example"
    ).fetch(IDENTIFIER)

    assert result.data.startswith(b"\x1f\x8b")
    assert result.data == gzip_vsix_bytes
    assert result.content_encoding is ContentEncoding.GZIP
    assert normalize(result) == vsix_bytes
    assert transport.requests[0].headers["Accept-Encoding"] == "gzip, identity"
