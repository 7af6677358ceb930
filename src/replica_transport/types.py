"""Value types shared by the executor, connector and credential providers."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

CBOR_CONTENT_TYPE = "application/cbor"

CONTENT_TYPE_HEADER = "Content-Type"
AUTHORIZATION_HEADER = "Authorization"


class HttpMethod(StrEnum):
    GET = "GET"
    POST = "POST"


class AuthAttemptState(StrEnum):
    """Which credential, if any, was last applied to a call's request."""

    NOT_TRIED = "not_tried"
    CACHED_APPLIED = "cached_applied"
    REQUIRED_APPLIED = "required_applied"


@dataclass(frozen=True)
class Credential:
    """HTTP Basic credential pair."""

    username: str
    password: str = field(repr=False)

    def basic_authorization(self) -> str:
        """Return the `Authorization` header value for this credential."""
        token = base64.b64encode(f"{self.username}:{self.password}".encode()).decode("ascii")
        return f"Basic {token}"


def _lookup_header(headers: Mapping[str, str], name: str) -> str | None:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


@dataclass
class OutgoingRequest:
    """A single logical request, resent unchanged except for Authorization.

    Headers are always created with the CBOR content type.
    """

    method: HttpMethod
    url: str
    body: bytes | None = None
    headers: dict[str, str] = field(
        default_factory=lambda: {CONTENT_TYPE_HEADER: CBOR_CONTENT_TYPE}
    )

    @property
    def authorization(self) -> str | None:
        return _lookup_header(self.headers, AUTHORIZATION_HEADER)

    def set_authorization(self, credential: Credential) -> None:
        """Replace any existing Authorization header with `credential`."""
        for key in [k for k in self.headers if k.lower() == AUTHORIZATION_HEADER.lower()]:
            del self.headers[key]
        self.headers[AUTHORIZATION_HEADER] = credential.basic_authorization()

    def copy(self) -> OutgoingRequest:
        return OutgoingRequest(
            method=self.method,
            url=self.url,
            body=self.body,
            headers=dict(self.headers),
        )


@dataclass(frozen=True)
class ResponseEnvelope:
    """Status, headers and raw body of one HTTP attempt."""

    status: int
    headers: Mapping[str, str]
    body: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def content_type(self) -> str | None:
        return _lookup_header(self.headers, CONTENT_TYPE_HEADER)

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_error(self) -> bool:
        return 400 <= self.status < 600
