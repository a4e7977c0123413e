from __future__ import annotations

import gzip
import io
import zipfile
from types import SimpleNamespace

import pytest


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="also run tests that talk to the real marketplace",
    )
    parser.addoption(
        "--only-slow",
        action="store_true",
        default=False,
        help="run only the marketplace tests",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: needs network access to the marketplace")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    only_slow = bool(config.getoption("--only-slow"))
    if only_slow:
        deselected = [item for item in items if "slow" not in item.keywords]
        if deselected:
            config.hook.pytest_deselected(items=deselected)
        items[:] = [item for item in items if "slow" in item.keywords]
        return

    if config.getoption("--slow"):
        return

    skip_slow = pytest.mark.skip(reason="need --slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def build_vsix(manifest: bool = True) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        if manifest:
            archive.writestr("extension.vsixmanifest", "<PackageManifest/>")
        archive.writestr(
            "extension/package.json",
            '{"name": "markdown-auto-preview", "publisher": "vv13"}',
        )
    return buffer.getvalue()


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
        url: str = "https://marketplace.example/vspackage",
    ) -> None:
        self.status_code = status_code
        self.headers = headers or {}
        self.url = url
        self.closed = False
        self.raw = SimpleNamespace(read=lambda decode_content=True: body)

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or FakeResponse()
        self.error = error
        self.calls: list[dict] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def vsix_bytes() -> bytes:
    return build_vsix()


@pytest.fixture
def gzip_vsix_bytes(vsix_bytes: bytes) -> bytes:
    return gzip.compress(vsix_bytes)
