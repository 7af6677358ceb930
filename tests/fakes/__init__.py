"""Exports for test fakes."""

from .connector import FakeConnector, failing_connector, response
from .credentials import ScriptedCredentialProvider

__all__ = [
    "FakeConnector",
    "ScriptedCredentialProvider",
    "failing_connector",
    "response",
]
