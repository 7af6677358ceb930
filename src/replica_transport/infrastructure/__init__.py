"""Concrete infrastructure implementations."""

from .connector import RequestsConnector, TlsAdapter, build_tls_context

__all__ = [
    "RequestsConnector",
    "TlsAdapter",
    "build_tls_context",
]
