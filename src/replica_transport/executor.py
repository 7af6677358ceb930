"""Authenticated request executor.

Builds one request per logical call and drives it through the HTTP Basic
challenge protocol:

- A cached credential, if the provider has one, is attached up front.
- On 401 from an https or localhost endpoint the provider is asked for a
  fresh credential and the same request is resent with it.
- On 401 from any other endpoint the call fails without sending credentials.
- Any other status ends the exchange; 4xx/5xx raise HttpError.

There is no retry limit unless `max_auth_attempts` is set. Callers that need
to bound a call under persistent 401s pass a `cancel_event`.

Usage example:
    from replica_transport.endpoint import Endpoint
    from replica_transport.executor import RequestExecutor
    from replica_transport.infrastructure import RequestsConnector
    from replica_transport.types import HttpMethod

    executor = RequestExecutor(Endpoint.parse("https://ic0.app"), RequestsConnector())
    body = executor.execute(HttpMethod.GET, "status")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from .credentials import NoCredentialProvider
from .endpoint import Endpoint
from .exceptions import (
    AuthenticationError,
    CredentialProviderError,
    HttpError,
    InsecureAuthenticationError,
    RequestCancelledError,
)
from .observability import get_logger
from .protocols import Connector, CredentialProvider
from .types import AuthAttemptState, HttpMethod, OutgoingRequest, ResponseEnvelope

logger = get_logger("replica_transport.executor")


@dataclass
class _CallState:
    """Per-call bookkeeping; never shared between calls."""

    request: OutgoingRequest
    auth: AuthAttemptState = AuthAttemptState.NOT_TRIED
    attempts: int = 0
    escalations: int = 0


class RequestExecutor:
    """Sends requests to one replica endpoint, escalating credentials on 401.

    The connector and credential provider are shared between concurrent
    calls; everything else lives in the call's own state.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        connector: Connector,
        credential_provider: CredentialProvider | None = None,
        *,
        max_auth_attempts: int | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.connector = connector
        if isinstance(credential_provider, NoCredentialProvider):
            credential_provider = None
        self.credential_provider = credential_provider
        self.max_auth_attempts = max_auth_attempts

    def execute(
        self,
        method: HttpMethod,
        relative_path: str,
        body: bytes | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Send a request and return the raw response body.

        Raises:
            TransportError: If the connector fails; never retried here.
            AuthenticationError: If the provider fails or is missing on 401.
            InsecureAuthenticationError: On 401 from a plain-http remote host.
            HttpError: If the final status is 4xx/5xx.
            RequestCancelledError: If `cancel_event` is set between steps.
        """
        url = self.endpoint.join(relative_path)
        state = _CallState(request=OutgoingRequest(method=method, url=url, body=body))
        self._apply_cached(state)

        while True:
            response = self._send(state, cancel_event)
            if not response.is_unauthorized:
                break
            if not self.endpoint.allows_authentication:
                logger.warning("Refusing to send credentials to insecure URL %s", url)
                raise InsecureAuthenticationError(url)
            if self._auth_attempts_exhausted(state):
                logger.warning(
                    "Giving up on %s after %d credential escalation(s)", url, state.escalations
                )
                break
            self._apply_required(state, cancel_event)

        return self._classify(response)

    def _apply_cached(self, state: _CallState) -> None:
        if self.credential_provider is None:
            return
        url = state.request.url
        try:
            credential = self.credential_provider.cached(url)
        except CredentialProviderError as exc:
            raise AuthenticationError.for_provider_failure(url, exc) from exc
        if credential is not None:
            state.request.set_authorization(credential)
            state.auth = AuthAttemptState.CACHED_APPLIED

    def _apply_required(self, state: _CallState, cancel_event: threading.Event | None) -> None:
        url = state.request.url
        if self.credential_provider is None:
            raise AuthenticationError.for_missing_provider(url)
        self._check_cancelled(state, cancel_event)
        logger.info("%s requires authentication (escalation %d)", url, state.escalations + 1)
        try:
            credential = self.credential_provider.required(url)
        except CredentialProviderError as exc:
            raise AuthenticationError.for_provider_failure(url, exc) from exc
        self._check_cancelled(state, cancel_event)
        state.request.set_authorization(credential)
        state.auth = AuthAttemptState.REQUIRED_APPLIED
        state.escalations += 1

    def _send(self, state: _CallState, cancel_event: threading.Event | None) -> ResponseEnvelope:
        self._check_cancelled(state, cancel_event)
        state.attempts += 1
        request = state.request
        logger.debug(
            "Attempt %d: %s %s (auth=%s)", state.attempts, request.method, request.url, state.auth
        )
        response = self.connector.send(request.copy())
        logger.debug("Attempt %d: %s returned %d", state.attempts, request.url, response.status)
        return response

    def _auth_attempts_exhausted(self, state: _CallState) -> bool:
        return self.max_auth_attempts is not None and state.escalations >= self.max_auth_attempts

    @staticmethod
    def _check_cancelled(state: _CallState, cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError(state.request.url, state.attempts)

    @staticmethod
    def _classify(response: ResponseEnvelope) -> bytes:
        if response.is_error:
            raise HttpError(response.status, response.content_type, response.body)
        return response.body
