from __future__ import annotations

EXIT_UNEXPECTED = 1


class CursorVscodeExtError(Exception):
    """Base class for all cursor-vscode-ext domain errors."""

    exit_code: int = EXIT_UNEXPECTED


class InvalidIdentifierFormat(ValueError, CursorVscodeExtError):
    """Raised when an extension identifier is not ``publisher.name``."""

    exit_code = 3


class NetworkError(ConnectionError, CursorVscodeExtError):
    """Raised when the marketplace cannot be reached or the request times out."""

    exit_code = 4


class NotFound(LookupError, CursorVscodeExtError):
    """Raised when the marketplace has no package for the identifier."""

    exit_code = 5


class UpstreamError(RuntimeError, CursorVscodeExtError):
    """Raised for any other non-success marketplace response."""

    exit_code = 6

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CorruptPackage(ValueError, CursorVscodeExtError):
    """Raised when a fetched package cannot be decompressed or verified."""

    exit_code = 7


class HostToolMissing(FileNotFoundError, CursorVscodeExtError):
    """Raised when the host editor command cannot be found on PATH."""

    exit_code = 8


class HostToolFailed(RuntimeError, CursorVscodeExtError):
    """Raised when the host editor command exits unsuccessfully."""

    exit_code = 9

    def __init__(
        self,
        command: list[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        diagnostics = (stderr or stdout).strip()
        message = f"Host editor command '{command[0]}' failed with exit status {returncode}"
        if diagnostics:
            message = f"{message}: {diagnostics}"
        super().__init__(message)
