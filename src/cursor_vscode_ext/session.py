from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from cursor_vscode_ext.api_client import PackageFetcher
from cursor_vscode_ext.exceptions import CursorVscodeExtError
from cursor_vscode_ext.install_engine import HostEditor
from cursor_vscode_ext.internal_config import STAGING_PREFIX
from cursor_vscode_ext.models import (
    ExtensionIdentifier,
    InstallMode,
    OperationOutcome,
    StagedPackage,
)
from cursor_vscode_ext.package_normalizer import normalize, verify_package

logger: logging.Logger = logging.getLogger(__name__)


@contextmanager
def staged_package(
    data: bytes,
    identifier: ExtensionIdentifier,
    temp_root: Path | None = None,
) -> Iterator[StagedPackage]:
    """Write *data* to a temporary ``.vsix`` file that is removed on exit."""
    with tempfile.TemporaryDirectory(prefix=STAGING_PREFIX, dir=temp_root) as tmp_dir:
        suffix = f"-{identifier.version}" if identifier.version else ""
        file_path = Path(tmp_dir, f"{identifier}{suffix}.vsix")
        with open(file_path, "wb") as output:
            output.write(data)
            output.flush()
            os.fsync(output.fileno())
        logger.debug(f"Staged package at {file_path}")
        yield StagedPackage(path=file_path)


def _with_host_output(summary: str, host_outcome: OperationOutcome) -> OperationOutcome:
    if host_outcome.message:
        return OperationOutcome.success(f"{summary}\n{host_outcome.message}")
    return OperationOutcome.success(summary)


class ExtensionSession(object):
    """Run one install or uninstall from identifier to host editor."""

    fetcher: PackageFetcher
    host: HostEditor
    temp_root: Path | None

    def __init__(
        self,
        fetcher: PackageFetcher,
        host: HostEditor,
        temp_root: Path | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.host = host
        self.temp_root = temp_root

    def run(
        self,
        subcommand: str,
        raw_identifier: str,
        version: str = "",
        expected_sha256: str = "",
    ) -> OperationOutcome:
        """Execute *subcommand* and map domain errors to an outcome.

        Unexpected exceptions propagate once the staged package is gone.
        """
        mode = InstallMode(subcommand)
        try:
            identifier = ExtensionIdentifier.parse(raw_identifier)
            if version:
                identifier = identifier.with_version(version)

            if mode is InstallMode.UNINSTALL:
                return self._uninstall(identifier)
            return self._install(identifier, expected_sha256)
        except CursorVscodeExtError as exc:
            logger.error(f"{subcommand} {raw_identifier} failed: {exc}")
            return OperationOutcome.failure(exc.exit_code, str(exc))

    def _install(
        self, identifier: ExtensionIdentifier, expected_sha256: str
    ) -> OperationOutcome:
        result = self.fetcher.fetch(identifier)
        data = normalize(result)
        verify_package(data, expected_sha256)

        with staged_package(data, identifier, self.temp_root) as package:
            logger.info(f"Installing {identifier} with {self.host.code_binary}")
            host_outcome = self.host.invoke(package.path, InstallMode.INSTALL)

        return _with_host_output(f"Installed {identifier}", host_outcome)

    def _uninstall(self, identifier: ExtensionIdentifier) -> OperationOutcome:
        logger.info(f"Uninstalling {identifier} with {self.host.code_binary}")
        host_outcome = self.host.invoke(identifier.format(), InstallMode.UNINSTALL)
        return _with_host_output(f"Uninstalled {identifier}", host_outcome)
