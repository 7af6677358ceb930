"""Replica endpoint addresses.

Usage example:
    from replica_transport.endpoint import Endpoint

    endpoint = Endpoint.parse("https://ic0.app")
    endpoint.join("canister/aaaaa-aa/query")
    # "https://ic0.app/api/v2/canister/aaaaa-aa/query"
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

from .exceptions import InvalidEndpointError

API_ROOT = "api/v2/"
LOOPBACK_HOST = "localhost"

_SUPPORTED_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class Endpoint:
    """Absolute API root of a replica, e.g. `https://ic0.app/api/v2/`.

    Build with `Endpoint.parse()`; the API root is appended exactly once.
    """

    root: str
    scheme: str
    host: str

    @classmethod
    def parse(cls, base_url: str) -> Endpoint:
        """Resolve `base_url` against the API root.

        The join follows RFC 3986 reference resolution, so a base path without
        a trailing slash has its last segment replaced.

        Raises:
            InvalidEndpointError: If the URL has no supported scheme or no host.
        """
        text = base_url.strip()
        try:
            parts = urlsplit(text)
            _ = parts.port  # Validates the port component
        except ValueError as exc:
            raise InvalidEndpointError(base_url) from exc
        scheme = parts.scheme.lower()
        if scheme not in _SUPPORTED_SCHEMES:
            raise InvalidEndpointError(base_url, "scheme must be http or https")
        if not parts.hostname:
            raise InvalidEndpointError(base_url, "missing host")
        root = urljoin(text, API_ROOT)
        return cls(root=root, scheme=scheme, host=parts.hostname.lower())

    @property
    def is_secure(self) -> bool:
        return self.scheme == "https"

    @property
    def is_loopback(self) -> bool:
        return self.host == LOOPBACK_HOST

    @property
    def allows_authentication(self) -> bool:
        """Whether credentials may be sent to this endpoint."""
        return self.is_secure or self.is_loopback

    def join(self, relative_path: str) -> str:
        """Return the absolute URL for a path relative to the API root."""
        return urljoin(self.root, relative_path)
