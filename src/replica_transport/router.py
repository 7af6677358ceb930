"""HTTP replica transport: maps the four replica operations onto the executor.

| Operation  | Request                              |
|------------|--------------------------------------|
| call       | POST canister/{id}/call              |
| read_state | POST canister/{id}/read_state        |
| query      | POST canister/{id}/query             |
| status     | GET  status                          |

Envelopes are passed through unchanged as request bodies.

Usage example:
    from replica_transport.router import HttpReplicaTransport

    transport = HttpReplicaTransport.create("https://ic0.app")
    status_cbor = transport.status()
"""

from __future__ import annotations

import threading
from typing_extensions import override
from urllib.parse import quote

from .endpoint import Endpoint
from .exceptions import InvalidCanisterIdError
from .executor import RequestExecutor
from .infrastructure.connector import RequestsConnector
from .observability import get_logger
from .protocols import CanisterId, Connector, CredentialProvider, ReplicaTransport
from .types import HttpMethod

logger = get_logger("replica_transport.router")

_DOT_SEGMENTS = frozenset({"", ".", ".."})


def canister_path(canister_id: CanisterId, operation: str) -> str:
    """Return the API-relative path for a canister operation.

    The id is percent-quoted so it always stays one segment under `canister/`.

    Raises:
        InvalidCanisterIdError: If the id is empty, `.` or `..`.
    """
    text = canister_id if isinstance(canister_id, str) else canister_id.to_text()
    if text in _DOT_SEGMENTS:
        raise InvalidCanisterIdError(text)
    segment = quote(text, safe="")
    return f"canister/{segment}/{operation}"


class HttpReplicaTransport(ReplicaTransport):
    """Replica transport over HTTP(S) with Basic-auth escalation."""

    def __init__(self, executor: RequestExecutor) -> None:
        self.executor = executor

    @classmethod
    def create(
        cls,
        url: str,
        *,
        connector: Connector | None = None,
        credential_provider: CredentialProvider | None = None,
        max_auth_attempts: int | None = None,
    ) -> HttpReplicaTransport:
        """Build a transport for the replica at `url`.

        Raises:
            InvalidEndpointError: If `url` is not a usable http(s) address.
        """
        endpoint = Endpoint.parse(url)
        executor = RequestExecutor(
            endpoint,
            connector or RequestsConnector(),
            credential_provider,
            max_auth_attempts=max_auth_attempts,
        )
        return cls(executor)

    @property
    def endpoint(self) -> Endpoint:
        return self.executor.endpoint

    def with_credential_provider(
        self, credential_provider: CredentialProvider | None
    ) -> HttpReplicaTransport:
        """Return a transport sharing this connector but using another provider."""
        executor = RequestExecutor(
            self.executor.endpoint,
            self.executor.connector,
            credential_provider,
            max_auth_attempts=self.executor.max_auth_attempts,
        )
        return HttpReplicaTransport(executor)

    @override
    def call(
        self,
        canister_id: CanisterId,
        envelope: bytes,
        request_id: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> None:
        path = canister_path(canister_id, "call")
        if request_id is not None:
            logger.debug("Submitting call %s to %s", request_id, path)
        self.executor.execute(HttpMethod.POST, path, envelope, cancel_event=cancel_event)

    @override
    def read_state(
        self,
        canister_id: CanisterId,
        envelope: bytes,
        *,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        path = canister_path(canister_id, "read_state")
        return self.executor.execute(HttpMethod.POST, path, envelope, cancel_event=cancel_event)

    @override
    def query(
        self,
        canister_id: CanisterId,
        envelope: bytes,
        *,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        path = canister_path(canister_id, "query")
        return self.executor.execute(HttpMethod.POST, path, envelope, cancel_event=cancel_event)

    @override
    def status(self, *, cancel_event: threading.Event | None = None) -> bytes:
        return self.executor.execute(HttpMethod.GET, "status", cancel_event=cancel_event)
