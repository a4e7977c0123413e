from __future__ import annotations

import logging

import typer

from cursor_vscode_ext.api_client import MarketplaceClient
from cursor_vscode_ext.exceptions import EXIT_UNEXPECTED
from cursor_vscode_ext.host_paths import resolve_host_command
from cursor_vscode_ext.install_engine import HostEditor
from cursor_vscode_ext.internal_config import (
    DEFAULT_USER_AGENT,
    HTTP_RETRY_TOTAL,
    HTTP_STREAM_CONNECT_TIMEOUT_SECONDS,
    HTTP_STREAM_READ_TIMEOUT_SECONDS,
    PACKAGE_NAME,
    __version__,
)
from cursor_vscode_ext.models import OperationOutcome
from cursor_vscode_ext.session import ExtensionSession

app: typer.Typer = typer.Typer(
    name=PACKAGE_NAME,
    help="Install VS Code marketplace extensions into Cursor.",
)
logger: logging.Logger = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=(getattr(logging, log_level.upper(), logging.INFO)),
        format="%(relativeCreated)d [%(levelname)s] %(message)s",
    )


def build_session(
    host_command: str = "",
    timeout: float = HTTP_STREAM_READ_TIMEOUT_SECONDS,
    retries: int = HTTP_RETRY_TOTAL,
) -> ExtensionSession:
    client = MarketplaceClient(
        connect_timeout=min(timeout, HTTP_STREAM_CONNECT_TIMEOUT_SECONDS),
        read_timeout=timeout,
        retries=retries,
    )
    host = HostEditor(resolve_host_command(host_command))
    return ExtensionSession(fetcher=client, host=host)


def _finish(outcome: OperationOutcome) -> None:
    if not outcome.ok:
        typer.echo(outcome.message, err=True)
        raise typer.Exit(code=outcome.exit_code)
    typer.echo(outcome.message)


def _execute(session: ExtensionSession, subcommand: str, extension_id: str, **kwargs) -> None:
    try:
        outcome = session.run(subcommand, extension_id, **kwargs)
    except Exception:
        logger.exception(f"Unexpected error during {subcommand} of {extension_id}")
        raise typer.Exit(code=EXIT_UNEXPECTED)
    _finish(outcome)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PACKAGE_NAME} {__version__}")
        typer.echo(f"User-Agent: {DEFAULT_USER_AGENT}")
        raise typer.Exit()


@app.callback()
def root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and User-Agent, then exit.",
    ),
) -> None:
    """Install VS Code marketplace extensions into Cursor."""


@app.command()
def install(
    extension_id: str = typer.Argument(..., help="Extension identifier (publisher.name)."),
    extension_version: str = typer.Option(
        "", help="Pin a version instead of the latest one on the marketplace."
    ),
    sha256: str = typer.Option(
        "", help="Expected SHA-256 of the (decompressed) .vsix package."
    ),
    host_command: str = typer.Option(
        "", help="Host editor CLI, defaults to $CURSOR_VSCODE_EXT_HOST or 'cursor'."
    ),
    timeout: float = typer.Option(
        HTTP_STREAM_READ_TIMEOUT_SECONDS, min=1.0, help="Download timeout in seconds."
    ),
    retries: int = typer.Option(
        HTTP_RETRY_TOTAL, min=0, help="Retry the download on 429/5xx responses."
    ),
    log_level: str = "info",
) -> None:
    """Download an extension from the marketplace and install it."""
    _configure_logging(log_level)
    session = build_session(host_command=host_command, timeout=timeout, retries=retries)
    _execute(
        session,
        "install",
        extension_id,
        version=extension_version,
        expected_sha256=sha256,
    )


@app.command()
def uninstall(
    extension_id: str = typer.Argument(..., help="Extension identifier (publisher.name)."),
    host_command: str = typer.Option(
        "", help="Host editor CLI, defaults to $CURSOR_VSCODE_EXT_HOST or 'cursor'."
    ),
    log_level: str = "info",
) -> None:
    """Uninstall an extension from the host editor."""
    _configure_logging(log_level)
    session = build_session(host_command=host_command)
    _execute(session, "uninstall", extension_id)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
