"""Custom exceptions for the replica transport.

Every failure of a logical operation (call, read_state, query, status) is
raised as a subclass of `ReplicaTransportError`, scoped to that one call.
"""

from __future__ import annotations


class ReplicaTransportError(Exception):
    """Base exception for all transport errors."""

    pass


class InvalidEndpointError(ReplicaTransportError):
    """Raised when a replica base URL cannot be parsed or joined with the API root.

    Only ever raised while constructing an endpoint.
    """

    def __init__(self, url: str, reason: str = "could not be parsed") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid replica URL {url!r}: {reason}.")


class InvalidCanisterIdError(ReplicaTransportError):
    """Raised when a canister id cannot be used as a single path segment."""

    def __init__(self, canister_id: str) -> None:
        self.canister_id = canister_id
        super().__init__(f"Invalid canister id {canister_id!r}.")


class TransportError(ReplicaTransportError):
    """Raised when the connector could not complete the network exchange.

    Not retried by the executor.
    """

    def __init__(self, message: str = "Transport failure") -> None:
        super().__init__(message)

    @classmethod
    def for_exchange(cls, method: str, url: str, cause: Exception) -> TransportError:
        return cls(f"{method} {url} failed: {type(cause).__name__}: {cause}")


class AuthenticationError(ReplicaTransportError):
    """Raised when credentials could not be obtained for a request."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)

    @classmethod
    def for_provider_failure(cls, url: str, cause: Exception) -> AuthenticationError:
        return cls(f"Credential provider failed for {url}: {cause}")

    @classmethod
    def for_missing_provider(cls, url: str) -> AuthenticationError:
        return cls(
            f"{url} requires authentication but no credential provider is configured."
        )


class InsecureAuthenticationError(ReplicaTransportError):
    """Raised when a 401 arrives over plain HTTP from a non-local host.

    Credentials are withheld rather than sent in the clear.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(
            f"{url} requested authentication over an insecure connection; "
            "refusing to send credentials. Use https or a localhost replica."
        )


class HttpError(ReplicaTransportError):
    """Raised when the final response status is a client or server error.

    `content` is the raw response body; it is not necessarily CBOR.
    """

    def __init__(self, status: int, content_type: str | None, content: bytes) -> None:
        self.status = status
        self.content_type = content_type
        self.content = content
        super().__init__(
            f"HTTP {status} (content_type={content_type or '<none>'}, "
            f"{len(content)} bytes)"
        )

    def text(self) -> str:
        """Return the body decoded for display, replacing undecodable bytes."""
        return self.content.decode("utf-8", errors="replace")


class RequestCancelledError(ReplicaTransportError):
    """Raised when a caller's cancel event is set while a request is in progress."""

    def __init__(self, url: str, attempts: int) -> None:
        self.url = url
        self.attempts = attempts
        super().__init__(f"Request to {url} cancelled after {attempts} attempt(s).")


class CredentialProviderError(ReplicaTransportError):
    """Raised by a credential provider that cannot supply a credential."""

    pass


class UnreachableProviderError(RuntimeError):
    """Raised if the disabled credential provider is ever consulted."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"NoCredentialProvider.{operation}() was called; "
            "the executor must never consult a disabled provider."
        )


class ConfigFileNotFoundError(ReplicaTransportError):
    """Raised when a config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(ReplicaTransportError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is not valid TOML: {detail}")


class ConfigFileValidationError(ReplicaTransportError):
    """Raised when a config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is invalid: {detail}")
