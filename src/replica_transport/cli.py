"""CLI for the replica transport.

Commands:
- status: Fetch the replica status (raw CBOR)
- query: Submit a query envelope and print the raw response
- read-state: Submit a read_state envelope and print the raw response
- call: Submit an update call envelope

Envelopes are read from a file, or from stdin when the path is `-`.
Response bytes are written unchanged to --output or stdout.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn, Protocol

import typer
from rich.console import Console

from .config import TransportConfig
from .config_file import load_transport_config_file
from .exceptions import HttpError, ReplicaTransportError
from .observability import set_log_level
from .protocols import ReplicaTransport

STDIN_PATH = Path("-")

err_console = Console(stderr=True)


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: TransportConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    transport: ReplicaTransport


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: TransportConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self) -> CliDependencies:
        """Return dependencies using the configured builder."""
        try:
            return self.deps_builder(config=self.config)
        except ReplicaTransportError as exc:
            _fail(exc)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the replica-transport entry point.")


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _fail(exc: ReplicaTransportError) -> NoReturn:
    err_console.print(f"[red]✗ {type(exc).__name__}:[/red] {exc}")
    if isinstance(exc, HttpError) and exc.content:
        err_console.print(exc.text(), markup=False, highlight=False)
    raise typer.Exit(code=1)


def _read_envelope(path: Path) -> bytes:
    if path == STDIN_PATH:
        return typer.get_binary_stream("stdin").read()
    try:
        return path.read_bytes()
    except OSError as exc:
        raise typer.BadParameter(
            f"cannot read {path}: {exc.strerror or exc}", param_hint="ENVELOPE"
        ) from exc


def _write_output(data: bytes, output: Path | None) -> None:
    if output is None:
        typer.echo(data, nl=False)
        return
    output.write_bytes(data)
    err_console.print(f"[green]✓ Wrote {len(data):,} bytes:[/green] {output}")


def _load_config(
    *,
    config_path: Path | None,
    url: str | None,
    timeout: float | None,
    max_auth_attempts: int | None,
    interactive_auth: bool | None,
    log_level: str | None,
) -> TransportConfig:
    try:
        config = TransportConfig.from_env()
        if config_path is not None:
            config = config.with_file_overrides(load_transport_config_file(path=config_path))
        config = config.with_overrides(
            replica_url=url,
            timeout_seconds=timeout,
            max_auth_attempts=max_auth_attempts,
            interactive_auth=interactive_auth,
            log_level=log_level,
        )
        set_log_level(config.log_level)
    except (ReplicaTransportError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    return config


OutputOption = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Write the raw response here instead of stdout"),
]
CanisterArgument = Annotated[str, typer.Argument(help="Effective canister id (textual principal)")]
EnvelopeArgument = Annotated[
    Path, typer.Argument(help="Path to the CBOR envelope, or - for stdin")
]


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Submit CBOR envelopes to a replica over HTTP(S) with Basic-auth escalation.",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        url: Annotated[
            str | None,
            typer.Option("--url", "-u", help="Replica base URL (default: REPLICA_URL)"),
        ] = None,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="TOML config file"),
        ] = None,
        timeout: Annotated[
            float | None,
            typer.Option("--timeout", help="Per-request timeout in seconds", min=0.001),
        ] = None,
        max_auth_attempts: Annotated[
            int | None,
            typer.Option(
                "--max-auth-attempts",
                help="Stop after this many credential escalations (default: unbounded)",
                min=1,
            ),
        ] = None,
        interactive_auth: Annotated[
            bool | None,
            typer.Option(
                "--interactive-auth/--no-interactive-auth",
                help="Prompt for credentials when the replica answers 401",
            ),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="debug, info or warning"),
        ] = None,
    ) -> None:
        """Initialise CLI context."""
        config = _load_config(
            config_path=config_path,
            url=url,
            timeout=timeout,
            max_auth_attempts=max_auth_attempts,
            interactive_auth=interactive_auth,
            log_level=log_level,
        )
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def status(ctx: typer.Context, output: OutputOption = None) -> None:
        """Fetch the replica status."""
        deps = _get_context(ctx).build_dependencies()
        try:
            body = deps.transport.status()
        except ReplicaTransportError as exc:
            _fail(exc)
        _write_output(body, output)

    @app.command()
    def query(
        ctx: typer.Context,
        canister_id: CanisterArgument,
        envelope: EnvelopeArgument,
        output: OutputOption = None,
    ) -> None:
        """Submit a query envelope."""
        payload = _read_envelope(envelope)
        deps = _get_context(ctx).build_dependencies()
        try:
            body = deps.transport.query(canister_id, payload)
        except ReplicaTransportError as exc:
            _fail(exc)
        _write_output(body, output)

    @app.command(name="read-state")
    def read_state(
        ctx: typer.Context,
        canister_id: CanisterArgument,
        envelope: EnvelopeArgument,
        output: OutputOption = None,
    ) -> None:
        """Submit a read_state envelope."""
        payload = _read_envelope(envelope)
        deps = _get_context(ctx).build_dependencies()
        try:
            body = deps.transport.read_state(canister_id, payload)
        except ReplicaTransportError as exc:
            _fail(exc)
        _write_output(body, output)

    @app.command()
    def call(
        ctx: typer.Context,
        canister_id: CanisterArgument,
        envelope: EnvelopeArgument,
        request_id: Annotated[
            str | None,
            typer.Option("--request-id", help="Request id, used for logging only"),
        ] = None,
    ) -> None:
        """Submit an update call envelope."""
        payload = _read_envelope(envelope)
        deps = _get_context(ctx).build_dependencies()
        try:
            deps.transport.call(canister_id, payload, request_id)
        except ReplicaTransportError as exc:
            _fail(exc)
        err_console.print(f"[green]✓ Call accepted by[/green] {canister_id}")

    return app
