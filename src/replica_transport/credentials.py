"""Credential providers for HTTP Basic authentication.

Usage example:
    from replica_transport.credentials import InteractiveCredentialProvider
    from replica_transport.router import HttpReplicaTransport

    provider = InteractiveCredentialProvider()
    transport = HttpReplicaTransport.create(
        "https://replica.example", credential_provider=provider
    )
"""

from __future__ import annotations

import netrc
import threading
from collections.abc import Callable
from typing_extensions import override
from urllib.parse import urlsplit

import typer
from requests.utils import get_netrc_auth

from .exceptions import CredentialProviderError, UnreachableProviderError
from .observability import get_logger
from .protocols import CredentialProvider
from .types import Credential

logger = get_logger("replica_transport.credentials")

PromptFn = Callable[..., str]


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


class NoCredentialProvider(CredentialProvider):
    """Null provider for "authentication disabled".

    The executor treats this provider as absent and never calls it.
    """

    @override
    def cached(self, url: str) -> Credential | None:
        raise UnreachableProviderError("cached")

    @override
    def required(self, url: str) -> Credential:
        raise UnreachableProviderError("required")


class StaticCredentialProvider(CredentialProvider):
    """Always supplies the same credential."""

    def __init__(self, credential: Credential) -> None:
        self.credential = credential

    @override
    def cached(self, url: str) -> Credential | None:
        return self.credential

    @override
    def required(self, url: str) -> Credential:
        return self.credential


class NetrcCredentialProvider(CredentialProvider):
    """Looks credentials up in a netrc file.

    Non-interactive: when the replica rejects the stored credential there is
    nothing new to offer, so `required` fails.
    """

    def __init__(self, netrc_path: str | None = None) -> None:
        self.netrc_path = netrc_path

    def _lookup(self, url: str) -> Credential | None:
        try:
            if self.netrc_path is None:
                auth = get_netrc_auth(url, raise_errors=True)
            else:
                auth = self._lookup_file(url, self.netrc_path)
        except (OSError, netrc.NetrcParseError) as exc:
            raise CredentialProviderError(f"Could not read netrc for {url}: {exc}") from exc
        if auth is None:
            return None
        username, password = auth
        return Credential(username=username, password=password)

    @staticmethod
    def _lookup_file(url: str, path: str) -> tuple[str, str] | None:
        host = urlsplit(url).hostname or ""
        entry = netrc.netrc(path).authenticators(host)
        if entry is None:
            return None
        login, _, password = entry
        return (login, password or "")

    @override
    def cached(self, url: str) -> Credential | None:
        return self._lookup(url)

    @override
    def required(self, url: str) -> Credential:
        raise CredentialProviderError(
            f"{url} rejected the netrc credential and no interactive source is available."
        )


class InteractiveCredentialProvider(CredentialProvider):
    """Prompts on the terminal and remembers answers per origin.

    Concurrent `required` calls are serialised so prompts never interleave.
    A call that waited on another prompt for the same origin reuses its
    answer instead of prompting again.
    """

    def __init__(self, prompt: PromptFn = typer.prompt) -> None:
        self._prompt = prompt
        self._prompt_lock = threading.Lock()
        self._store_lock = threading.Lock()
        self._remembered: dict[str, Credential] = {}
        self._generation: dict[str, int] = {}

    @override
    def cached(self, url: str) -> Credential | None:
        with self._store_lock:
            return self._remembered.get(_origin(url))

    @override
    def required(self, url: str) -> Credential:
        origin = _origin(url)
        with self._store_lock:
            seen_generation = self._generation.get(origin, 0)
        with self._prompt_lock:
            with self._store_lock:
                if self._generation.get(origin, 0) != seen_generation:
                    return self._remembered[origin]
            logger.info("Credentials required for %s", origin)
            try:
                username = self._prompt(f"Username for {origin}")
                password = self._prompt(f"Password for {username}@{origin}", hide_input=True)
            except (typer.Abort, EOFError) as exc:
                raise CredentialProviderError(f"Credential prompt for {origin} aborted") from exc
            credential = Credential(username=username, password=password)
            with self._store_lock:
                self._remembered[origin] = credential
                self._generation[origin] = seen_generation + 1
            return credential
