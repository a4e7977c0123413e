from __future__ import annotations

import logging
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter, Retry
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from cursor_vscode_ext.exceptions import NetworkError, NotFound, UpstreamError
from cursor_vscode_ext.internal_config import (
    DEFAULT_USER_AGENT,
    HTTP_RETRY_ALLOWED_METHODS,
    HTTP_RETRY_BACKOFF_FACTOR,
    HTTP_RETRY_STATUS_FORCELIST,
    HTTP_RETRY_TOTAL,
    HTTP_STREAM_CONNECT_TIMEOUT_SECONDS,
    HTTP_STREAM_READ_TIMEOUT_SECONDS,
    resolve_marketplace_url,
)
from cursor_vscode_ext.marketplace import (
    build_download_url,
    classify_content_encoding,
)
from cursor_vscode_ext.models import ExtensionIdentifier, FetchResult

logger: logging.Logger = logging.getLogger(__name__)


class DownloadSession(Protocol):
    def get(
        self,
        url: str,
        *,
        stream: bool,
        headers: dict[str, str],
        timeout: tuple[float, float],
        allow_redirects: bool,
    ) -> requests.Response: ...


class PackageFetcher(Protocol):
    def fetch(self, identifier: ExtensionIdentifier) -> FetchResult: ...


def build_session(retries: int = HTTP_RETRY_TOTAL) -> requests.Session:
    retry_strategy = Retry(
        total=retries,
        backoff_factor=HTTP_RETRY_BACKOFF_FACTOR,
        status_forcelist=HTTP_RETRY_STATUS_FORCELIST,
        allowed_methods=HTTP_RETRY_ALLOWED_METHODS,
        # hand the last response back instead of raising RetryError
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class MarketplaceClient(object):
    """Download extension packages from the Visual Studio Marketplace."""

    session: DownloadSession
    base_url: str
    timeout: tuple[float, float]
    user_agent: str

    def __init__(
        self,
        session: DownloadSession | None = None,
        base_url: str = "",
        connect_timeout: float = HTTP_STREAM_CONNECT_TIMEOUT_SECONDS,
        read_timeout: float = HTTP_STREAM_READ_TIMEOUT_SECONDS,
        retries: int = HTTP_RETRY_TOTAL,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.session = session if session is not None else build_session(retries)
        self.base_url = base_url or resolve_marketplace_url()
        self.timeout = (connect_timeout, read_timeout)
        self.user_agent = user_agent

    def download_url(self, identifier: ExtensionIdentifier) -> str:
        return build_download_url(identifier, self.base_url)

    def fetch(self, identifier: ExtensionIdentifier) -> FetchResult:
        """Fetch the raw package bytes, keeping any gzip transport framing."""
        url = self.download_url(identifier)
        logger.info(f"Downloading {identifier} from {url}")

        try:
            response = self.session.get(
                url,
                stream=True,
                headers={
                    "User-Agent": self.user_agent,
                    # only gzip framing is undone by the normalizer
                    "Accept-Encoding": "gzip, identity",
                },
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"Could not reach the marketplace at {url}: {exc}") from exc

        try:
            if response.status_code == 404:
                raise NotFound(
                    f"Extension {identifier} was not found on the marketplace"
                    + (f" (version {identifier.version})" if identifier.version else "")
                )
            if not 200 <= response.status_code < 300:
                raise UpstreamError(
                    f"Marketplace responded with HTTP {response.status_code} for {identifier}",
                    status_code=response.status_code,
                )
            try:
                # read undecoded so the normalizer sees the gzip framing
                data = response.raw.read(decode_content=False)
            except (requests.RequestException, Urllib3HTTPError, OSError) as exc:
                raise NetworkError(f"Download of {identifier} was interrupted: {exc}") from exc
        finally:
            response.close()

        encoding, overruled = classify_content_encoding(response.headers, data)
        if overruled:
            logger.warning(
                f"Ignoring Content-Encoding header for {identifier}: payload is not gzip-framed"
            )
        logger.debug(f"Fetched {len(data)} bytes ({encoding.value}) from {response.url}")
        return FetchResult(
            data=data,
            content_encoding=encoding,
            source_url=str(response.url or url),
        )
