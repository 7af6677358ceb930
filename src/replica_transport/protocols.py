"""Protocol definitions for dependency injection.

The executor depends only on these interfaces, so tests can substitute
scripted connectors and credential providers.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from .types import Credential, OutgoingRequest, ResponseEnvelope


@runtime_checkable
class Connector(Protocol):
    """Sends one HTTP request and returns the raw response.

    Implementations must be safe to share between concurrent calls.
    """

    def send(self, request: OutgoingRequest) -> ResponseEnvelope:
        """Send `request` and return its status, headers and body.

        Raises:
            TransportError: If the exchange could not be completed.
        """
        ...


@runtime_checkable
class CredentialProvider(Protocol):
    """Supplies HTTP Basic credentials for a URL.

    Implementations signal failure by raising `CredentialProviderError`.
    Providers that prompt interactively must serialise concurrent prompts
    themselves.
    """

    def cached(self, url: str) -> Credential | None:
        """Return a stored credential for `url` without prompting, or None."""
        ...

    def required(self, url: str) -> Credential:
        """Obtain a credential after `url` rejected a request as unauthorized.

        May block, for example on an interactive prompt.
        """
        ...


@runtime_checkable
class PrincipalLike(Protocol):
    """An identifier with a canonical textual form."""

    def to_text(self) -> str:
        """Return the textual encoding used in request paths."""
        ...


CanisterId = str | PrincipalLike


@runtime_checkable
class ReplicaTransport(Protocol):
    """The four logical operations accepted by a replica."""

    def call(
        self,
        canister_id: CanisterId,
        envelope: bytes,
        request_id: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Submit an update call envelope."""
        ...

    def read_state(
        self,
        canister_id: CanisterId,
        envelope: bytes,
        *,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Submit a read_state envelope and return the raw response body."""
        ...

    def query(
        self,
        canister_id: CanisterId,
        envelope: bytes,
        *,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Submit a query envelope and return the raw response body."""
        ...

    def status(self, *, cancel_event: threading.Event | None = None) -> bytes:
        """Fetch the replica status and return the raw response body."""
        ...
