"""Pytest fixtures shared by the test suite.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket
from collections.abc import Iterator

import pytest

from replica_transport.endpoint import Endpoint
from replica_transport.types import Credential
from tests.fakes import FakeConnector, ScriptedCredentialProvider
from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(repr(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Block all network access in tests.

    If you need E2E tests with real network access, mark them with:
        @pytest.mark.e2e
    and run them separately with: pytest -m e2e
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
    yield


@pytest.fixture
def secure_endpoint() -> Endpoint:
    return Endpoint.parse("https://replica.example")


@pytest.fixture
def insecure_endpoint() -> Endpoint:
    return Endpoint.parse("http://replica.example")


@pytest.fixture
def fake_connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def alice() -> Credential:
    return Credential(username="alice", password="wonderland")


@pytest.fixture
def bob() -> Credential:
    return Credential(username="bob", password="builder")


@pytest.fixture
def scripted_provider() -> ScriptedCredentialProvider:
    return ScriptedCredentialProvider()
