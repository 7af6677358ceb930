"""Centralised, injectable configuration for the replica transport."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import TransportConfigFile
from .types import Credential

DEFAULT_REPLICA_URL = "https://ic0.app"


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class PositiveNumberEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


class BooleanEnvVarError(ValueError):
    """Raised when an environment variable must be a supported boolean."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a boolean value (true/false, 1/0, yes/no, on/off).")


@dataclass(frozen=True)
class TransportConfig:
    """Immutable transport configuration.

    Load from environment with `TransportConfig.from_env()` or construct directly for testing.
    """

    replica_url: str = DEFAULT_REPLICA_URL
    timeout_seconds: float = 30.0
    max_auth_attempts: int | None = None  # None keeps escalating for as long as 401s arrive
    verify_tls: bool = True

    # Credential sources, consulted in this order: static, netrc, interactive
    username: str = ""
    password: str = ""
    use_netrc: bool = False
    netrc_path: str | None = None
    interactive_auth: bool = False

    log_level: str = "info"

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.
        """
        load_dotenv(dotenv_path)

        return cls(
            replica_url=os.getenv("REPLICA_URL", DEFAULT_REPLICA_URL).strip()
            or DEFAULT_REPLICA_URL,
            timeout_seconds=_parse_positive_float(
                os.getenv("REPLICA_TIMEOUT_SECONDS", "30"), env_name="REPLICA_TIMEOUT_SECONDS"
            ),
            max_auth_attempts=_parse_optional_positive_int(
                os.getenv("REPLICA_MAX_AUTH_ATTEMPTS", ""), env_name="REPLICA_MAX_AUTH_ATTEMPTS"
            ),
            verify_tls=_parse_optional_bool(
                os.getenv("REPLICA_VERIFY_TLS", ""), env_name="REPLICA_VERIFY_TLS"
            )
            is not False,
            username=os.getenv("REPLICA_USERNAME", "").strip(),
            password=os.getenv("REPLICA_PASSWORD", ""),
            use_netrc=_parse_optional_bool(
                os.getenv("REPLICA_USE_NETRC", ""), env_name="REPLICA_USE_NETRC"
            )
            or False,
            netrc_path=os.getenv("REPLICA_NETRC_PATH", "").strip() or None,
            interactive_auth=_parse_optional_bool(
                os.getenv("REPLICA_INTERACTIVE_AUTH", ""), env_name="REPLICA_INTERACTIVE_AUTH"
            )
            or False,
            log_level=os.getenv("REPLICA_LOG_LEVEL", "info").strip().lower() or "info",
        )

    @property
    def static_credential(self) -> Credential | None:
        if not self.username or not self.password:
            return None
        return Credential(username=self.username, password=self.password)

    def with_overrides(
        self,
        *,
        replica_url: str | None = None,
        timeout_seconds: float | None = None,
        max_auth_attempts: int | None = None,
        interactive_auth: bool | None = None,
        log_level: str | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            replica_url=self.replica_url if replica_url is None else replica_url.strip(),
            timeout_seconds=self.timeout_seconds if timeout_seconds is None else timeout_seconds,
            max_auth_attempts=self.max_auth_attempts
            if max_auth_attempts is None
            else max_auth_attempts,
            interactive_auth=self.interactive_auth
            if interactive_auth is None
            else interactive_auth,
            log_level=self.log_level if log_level is None else log_level,
        )

    def with_file_overrides(self, file_config: TransportConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            replica_url=self.replica_url
            if file_config.replica_url is None
            else file_config.replica_url,
            timeout_seconds=self.timeout_seconds
            if file_config.timeout_seconds is None
            else file_config.timeout_seconds,
            max_auth_attempts=self.max_auth_attempts
            if file_config.max_auth_attempts is None
            else file_config.max_auth_attempts,
            verify_tls=self.verify_tls if file_config.verify_tls is None else file_config.verify_tls,
            use_netrc=self.use_netrc if file_config.use_netrc is None else file_config.use_netrc,
            netrc_path=self.netrc_path if file_config.netrc_path is None else file_config.netrc_path,
            interactive_auth=self.interactive_auth
            if file_config.interactive_auth is None
            else file_config.interactive_auth,
            log_level=self.log_level if file_config.log_level is None else file_config.log_level,
        )


def _parse_positive_float(value: str, *, env_name: str) -> float:
    """Parse a required positive number from an environment variable."""
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise PositiveNumberEnvVarError(env_name) from exc
    if parsed <= 0:
        raise PositiveNumberEnvVarError(env_name)
    return parsed


def _parse_optional_positive_int(value: str, *, env_name: str) -> int | None:
    """Parse an optional positive integer from an environment variable."""
    text = value.strip()
    if not text:
        return None
    try:
        parsed = int(text)
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_bool(value: str, *, env_name: str) -> bool | None:
    """Parse an optional boolean from an environment variable."""
    text = value.strip().lower()
    if not text:
        return None
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    raise BooleanEnvVarError(env_name)
