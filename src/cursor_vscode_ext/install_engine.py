from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional

from cursor_vscode_ext.exceptions import HostToolFailed, HostToolMissing
from cursor_vscode_ext.models import InstallMode, OperationOutcome

logger: logging.Logger = logging.getLogger(__name__)

RunCommand = Callable[..., subprocess.CompletedProcess[str]]
Which = Callable[[str], Optional[str]]

# the host CLI sometimes reports failures on stdout with exit status 0
HOST_ERROR_MARKER = "Error: "


def build_host_command(
    code_binary: str, target: Path | str, mode: InstallMode
) -> list[str]:
    if mode is InstallMode.INSTALL:
        return [code_binary, "--install-extension", f"{target}", "--force"]
    return [code_binary, "--uninstall-extension", f"{target}"]


def run_code_cli(
    *,
    cmd: list[str],
    run_command: RunCommand = subprocess.run,
) -> subprocess.CompletedProcess[str]:
    try:
        process = run_command(
            cmd,
            capture_output=True,
            check=False,
            text=True,
        )
    except FileNotFoundError as exc:
        raise HostToolMissing(
            f"Host editor command '{cmd[0]}' could not be executed: {exc}"
        ) from exc

    stdout = f"{process.stdout or ''}"
    stderr = f"{process.stderr or ''}"
    if process.returncode != 0:
        raise HostToolFailed(cmd, process.returncode, stdout, stderr)
    if HOST_ERROR_MARKER in stdout or HOST_ERROR_MARKER in stderr:
        raise HostToolFailed(cmd, 1, stdout, stderr)
    return process


class HostEditor(object):
    """Hand packages and identifiers to the host editor's extension CLI."""

    code_binary: str

    def __init__(
        self,
        code_binary: str,
        run_command: RunCommand = subprocess.run,
        which: Which = shutil.which,
    ) -> None:
        self.code_binary = code_binary
        self._run_command = run_command
        self._which = which

    def resolve(self) -> str:
        """Return the executable path or raise HostToolMissing."""
        resolved = self._which(self.code_binary)
        if not resolved:
            raise HostToolMissing(
                f"Host editor command '{self.code_binary}' was not found on PATH"
            )
        return resolved

    def invoke(self, target: Path | str, mode: InstallMode) -> OperationOutcome:
        """Install a staged package path or uninstall a ``publisher.name`` identifier."""
        executable = self.resolve()
        cmd = build_host_command(executable, target, mode)
        logger.debug(f"Running {' '.join(cmd)}")
        process = run_code_cli(cmd=cmd, run_command=self._run_command)

        output = f"{process.stdout or ''}".strip()
        if output:
            logger.debug(output)
        return OperationOutcome.success(output)
