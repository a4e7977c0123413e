from __future__ import annotations

import os
import platform
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

PACKAGE_NAME = "cursor-vscode-ext"


def _get_package_version(name: str) -> str:
    """Return the installed version of *name*, or ``"0"`` if not found."""
    try:
        return _pkg_version(name)
    except PackageNotFoundError:
        return "0"


__version__ = _get_package_version(PACKAGE_NAME)

# Note: the Marketplace CDN has been seen to hand out broken download redirects
# to unfamiliar User-Agents. If downloads break, adjust this string.
DEFAULT_USER_AGENT = (
    f"{PACKAGE_NAME}/{__version__}"
    f" ({platform.system()}; {platform.machine()}; compatible)"
)

DEFAULT_MARKETPLACE_URL = "https://marketplace.visualstudio.com"
DEFAULT_HOST_COMMAND = "cursor"
HOST_COMMAND_CANDIDATES = ("cursor", "cursor-server")

MARKETPLACE_URL_ENV = "CURSOR_VSCODE_EXT_MARKETPLACE_URL"
HOST_COMMAND_ENV = "CURSOR_VSCODE_EXT_HOST"

HTTP_STREAM_CONNECT_TIMEOUT_SECONDS = 10
HTTP_STREAM_READ_TIMEOUT_SECONDS = 120

# retries stay off unless requested on the command line
HTTP_RETRY_TOTAL = 0
HTTP_RETRY_BACKOFF_FACTOR = 1
HTTP_RETRY_STATUS_FORCELIST = [429, 500, 502, 503, 504]
HTTP_RETRY_ALLOWED_METHODS = ["HEAD", "GET"]

STAGING_PREFIX = "cursor-vscode-ext."


def resolve_marketplace_url() -> str:
    explicit_url = os.environ.get(MARKETPLACE_URL_ENV, "").strip()
    if explicit_url:
        return explicit_url.rstrip("/")
    return DEFAULT_MARKETPLACE_URL
