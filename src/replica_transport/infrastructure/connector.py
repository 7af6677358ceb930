"""Requests-backed connector with a per-instance TLS configuration.

Usage example:
    from replica_transport.infrastructure.connector import RequestsConnector

    with RequestsConnector(timeout_seconds=10.0) as connector:
        response = connector.send(request)
"""

from __future__ import annotations

import ssl
from types import TracebackType
from typing import Any, Self

import certifi
import requests
from requests.adapters import HTTPAdapter
from typing_extensions import override

from ..exceptions import TransportError
from ..observability import get_logger
from ..protocols import Connector
from ..types import OutgoingRequest, ResponseEnvelope

logger = get_logger("replica_transport.infrastructure.connector")

# urllib3 speaks HTTP/1.1 only, so that is all the handshake may offer.
ALPN_PROTOCOLS = ("http/1.1",)


def build_tls_context(*, verify: bool = True) -> ssl.SSLContext:
    """Return a TLS client context trusting the Mozilla root set from certifi."""
    context = ssl.create_default_context(cafile=certifi.where())
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.set_alpn_protocols(list(ALPN_PROTOCOLS))
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class TlsAdapter(HTTPAdapter):
    """HTTP adapter that pins every pool to one SSL context."""

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs: Any) -> None:
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    @override
    def init_poolmanager(
        self, connections: int, maxsize: int, block: bool = False, **pool_kwargs: Any
    ) -> None:
        pool_kwargs["ssl_context"] = self.ssl_context
        super().init_poolmanager(connections, maxsize, block=block, **pool_kwargs)

    @override
    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any) -> Any:
        proxy_kwargs["ssl_context"] = self.ssl_context
        return super().proxy_manager_for(proxy, **proxy_kwargs)


class RequestsConnector(Connector):
    """Sends requests through a `requests.Session` owned by this connector.

    Timeouts are enforced here; the executor imposes none. The session built
    by default ignores environment settings (netrc credentials and proxy
    variables) so the only Authorization header sent is the executor's.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout_seconds: float = 30.0,
        verify_tls: bool = True,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.verify_tls = verify_tls
        self.session = session or self._build_session(verify_tls)

    @staticmethod
    def _build_session(verify_tls: bool) -> requests.Session:
        session = requests.Session()
        # Authorization comes from the executor only, never from ~/.netrc.
        session.trust_env = False
        session.verify = verify_tls
        adapter = TlsAdapter(build_tls_context(verify=verify_tls))
        session.mount("https://", adapter)
        session.mount("http://", HTTPAdapter())
        return session

    @override
    def send(self, request: OutgoingRequest) -> ResponseEnvelope:
        try:
            response = self.session.request(
                str(request.method),
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.debug("%s %s failed: %s", request.method, request.url, exc)
            raise TransportError.for_exchange(str(request.method), request.url, exc) from exc
        return ResponseEnvelope(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
