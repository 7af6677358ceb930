"""Typed parsing and validation for transport config files.

Example file:

    schema_version = 1

    [transport]
    replica_url = "https://ic0.app"
    timeout_seconds = 10
    interactive_auth = true
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .endpoint import Endpoint
from .exceptions import (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
    InvalidEndpointError,
)

_SCHEMA_VERSION = 1
_LOG_LEVELS = frozenset({"debug", "info", "warning"})


@dataclass(frozen=True)
class TransportConfigFile:
    """Validated transport config values loaded from a TOML file."""

    replica_url: str | None = None
    timeout_seconds: float | None = None
    max_auth_attempts: int | None = None
    verify_tls: bool | None = None
    use_netrc: bool | None = None
    netrc_path: str | None = None
    interactive_auth: bool | None = None
    log_level: str | None = None


class _TransportSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    replica_url: str | None = None
    timeout_seconds: float | None = None
    max_auth_attempts: int | None = None
    verify_tls: bool | None = None
    use_netrc: bool | None = None
    netrc_path: str | None = None
    interactive_auth: bool | None = None
    log_level: str | None = None

    @field_validator("replica_url")
    @classmethod
    def _validate_replica_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        try:
            Endpoint.parse(text)
        except InvalidEndpointError as exc:
            raise ValueError(str(exc)) from exc
        return text

    @field_validator("netrc_path")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_positive_number(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0:
            raise ValueError
        return value

    @field_validator("max_auth_attempts")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        level = value.strip().lower()
        if level not in _LOG_LEVELS:
            raise ValueError
        return level


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    transport: _TransportSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_transport_config_file(*, path: Path) -> TransportConfigFile:
    """Load and validate a transport TOML config file."""
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    raw_payload = path.read_text(encoding="utf-8")
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.transport
    return TransportConfigFile(
        replica_url=section.replica_url,
        timeout_seconds=section.timeout_seconds,
        max_auth_attempts=section.max_auth_attempts,
        verify_tls=section.verify_tls,
        use_netrc=section.use_netrc,
        netrc_path=section.netrc_path,
        interactive_auth=section.interactive_auth,
        log_level=section.log_level,
    )
