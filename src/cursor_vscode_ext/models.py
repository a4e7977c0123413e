from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from cursor_vscode_ext.exceptions import InvalidIdentifierFormat

# one dot, no whitespace and no path separators on either side
_IDENTIFIER_PATTERN = re.compile(r"([^.\s/\\]+)\.([^.\s/\\]+)")


@dataclass(frozen=True)
class ExtensionIdentifier:
    publisher: str
    name: str
    version: str = ""

    @classmethod
    def parse(cls, raw: str) -> ExtensionIdentifier:
        """Split ``publisher.name`` into its parts, preserving case."""
        match = _IDENTIFIER_PATTERN.fullmatch(raw)
        if match is None:
            raise InvalidIdentifierFormat(
                f"Invalid extension identifier '{raw}', expected publisher.name"
            )
        return cls(publisher=match.group(1), name=match.group(2))

    def with_version(self, version: str) -> ExtensionIdentifier:
        return replace(self, version=version)

    def format(self) -> str:
        return f"{self.publisher}.{self.name}"

    def __str__(self) -> str:
        return self.format()


class ContentEncoding(Enum):
    NONE = "none"
    GZIP = "gzip"


@dataclass(frozen=True)
class FetchResult:
    data: bytes
    content_encoding: ContentEncoding
    source_url: str


@dataclass(frozen=True)
class StagedPackage:
    path: Path


class InstallMode(Enum):
    INSTALL = "install"
    UNINSTALL = "uninstall"


class OutcomeStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class OperationOutcome:
    status: OutcomeStatus
    exit_code: int
    message: str

    @classmethod
    def success(cls, message: str) -> OperationOutcome:
        return cls(status=OutcomeStatus.SUCCESS, exit_code=0, message=message)

    @classmethod
    def failure(cls, exit_code: int, message: str) -> OperationOutcome:
        return cls(status=OutcomeStatus.FAILURE, exit_code=exit_code, message=message)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS
