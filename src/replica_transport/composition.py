"""Composition root for wiring transport dependencies."""

from __future__ import annotations

from .cli import CliDependencies, create_app
from .config import TransportConfig
from .credentials import (
    InteractiveCredentialProvider,
    NetrcCredentialProvider,
    StaticCredentialProvider,
)
from .infrastructure import RequestsConnector
from .protocols import CredentialProvider
from .router import HttpReplicaTransport


def build_credential_provider(config: TransportConfig) -> CredentialProvider | None:
    """Pick the first configured credential source: static, netrc, then interactive."""
    credential = config.static_credential
    if credential is not None:
        return StaticCredentialProvider(credential)
    if config.use_netrc:
        return NetrcCredentialProvider(config.netrc_path)
    if config.interactive_auth:
        return InteractiveCredentialProvider()
    return None


def build_transport(config: TransportConfig) -> HttpReplicaTransport:
    """Build a transport for `config.replica_url`.

    Raises:
        InvalidEndpointError: If the configured URL is unusable.
    """
    connector = RequestsConnector(
        timeout_seconds=config.timeout_seconds,
        verify_tls=config.verify_tls,
    )
    return HttpReplicaTransport.create(
        config.replica_url,
        connector=connector,
        credential_provider=build_credential_provider(config),
        max_auth_attempts=config.max_auth_attempts,
    )


def build_cli_dependencies(*, config: TransportConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands."""
    return CliDependencies(transport=build_transport(config))


app = create_app(build_cli_dependencies)
