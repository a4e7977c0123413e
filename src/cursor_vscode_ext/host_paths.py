from __future__ import annotations

import logging
import os
import shutil
from typing import Callable, Iterable, Optional

from cursor_vscode_ext.internal_config import (
    DEFAULT_HOST_COMMAND,
    HOST_COMMAND_CANDIDATES,
    HOST_COMMAND_ENV,
)

logger: logging.Logger = logging.getLogger(__name__)

Which = Callable[[str], Optional[str]]


def resolve_host_command(
    explicit: str = "",
    candidates: Iterable[str] = HOST_COMMAND_CANDIDATES,
    which: Which = shutil.which,
) -> str:
    """Pick the host editor CLI: explicit value, environment, then first candidate on PATH."""
    if explicit.strip():
        return explicit.strip()

    from_environment = os.environ.get(HOST_COMMAND_ENV, "").strip()
    if from_environment:
        return from_environment

    for candidate in candidates:
        if which(candidate):
            logger.debug(f"Using host editor command {candidate}")
            return candidate

    # nothing found; the invoker reports it as missing
    return DEFAULT_HOST_COMMAND
