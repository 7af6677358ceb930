"""Tests for the requests-backed connector."""

import ssl
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from replica_transport.credentials import StaticCredentialProvider
from replica_transport.endpoint import Endpoint
from replica_transport.exceptions import InsecureAuthenticationError, TransportError
from replica_transport.executor import RequestExecutor
from replica_transport.infrastructure import RequestsConnector, TlsAdapter, build_tls_context
from replica_transport.types import Credential, HttpMethod, OutgoingRequest


def _mock_response(status: int, body: bytes, headers: dict[str, str]) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.content = body
    response.headers = CaseInsensitiveDict(headers)
    return response


def _request() -> OutgoingRequest:
    request = OutgoingRequest(
        method=HttpMethod.POST,
        url="https://replica.example/api/v2/canister/aaaaa-aa/query",
        body=b"\xd9\xd9\xf7",
    )
    request.set_authorization(Credential(username="a", password="b"))
    return request


class TestRequestsConnectorSend:
    """Tests for RequestsConnector.send."""

    def test_passes_request_through_session(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.request.return_value = _mock_response(200, b"reply", {})
        connector = RequestsConnector(session, timeout_seconds=12.5)

        connector.send(_request())

        session.request.assert_called_once_with(
            "POST",
            "https://replica.example/api/v2/canister/aaaaa-aa/query",
            headers={"Content-Type": "application/cbor", "Authorization": "Basic YTpi"},
            data=b"\xd9\xd9\xf7",
            timeout=12.5,
        )

    def test_maps_response_fields(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.request.return_value = _mock_response(
            503, b"overloaded", {"Content-Type": "text/plain"}
        )
        connector = RequestsConnector(session)

        envelope = connector.send(_request())

        assert envelope.status == 503
        assert envelope.body == b"overloaded"
        assert envelope.content_type == "text/plain"

    @pytest.mark.parametrize(
        "error",
        [
            requests.ConnectionError("refused"),
            requests.Timeout("slow"),
            requests.exceptions.ChunkedEncodingError("truncated"),
        ],
    )
    def test_request_exceptions_become_transport_errors(self, error: Exception) -> None:
        session = MagicMock(spec=requests.Session)
        session.request.side_effect = error
        connector = RequestsConnector(session)

        with pytest.raises(TransportError) as exc_info:
            connector.send(_request())

        assert exc_info.value.__cause__ is error
        assert "replica.example" in str(exc_info.value)

    def test_context_manager_closes_session(self) -> None:
        session = MagicMock(spec=requests.Session)

        with RequestsConnector(session):
            pass

        session.close.assert_called_once()


class TestTlsConfiguration:
    """Tests for the per-instance TLS setup."""

    def test_tls_context_defaults(self) -> None:
        context = build_tls_context()
        assert context.minimum_version == ssl.TLSVersion.TLSv1_2
        assert context.check_hostname
        assert context.verify_mode == ssl.CERT_REQUIRED

    def test_tls_context_without_verification(self) -> None:
        context = build_tls_context(verify=False)
        assert not context.check_hostname
        assert context.verify_mode == ssl.CERT_NONE

    def test_adapter_pins_ssl_context(self) -> None:
        context = build_tls_context()
        adapter = TlsAdapter(context)
        assert adapter.poolmanager.connection_pool_kw["ssl_context"] is context

    def test_default_session_mounts_tls_adapter(self) -> None:
        connector = RequestsConnector()
        adapter = connector.session.get_adapter("https://replica.example/api/v2/status")
        assert isinstance(adapter, TlsAdapter)
        connector.close()

    def test_each_connector_gets_its_own_context(self) -> None:
        first = RequestsConnector()
        second = RequestsConnector(verify_tls=False)
        first_adapter = first.session.get_adapter("https://a.example/")
        second_adapter = second.session.get_adapter("https://a.example/")
        assert isinstance(first_adapter, TlsAdapter)
        assert isinstance(second_adapter, TlsAdapter)
        assert first_adapter.ssl_context is not second_adapter.ssl_context
        assert second.session.verify is False


class CapturingAdapter(HTTPAdapter):
    """Adapter that records prepared requests and answers without a socket."""

    def __init__(self, status: int) -> None:
        super().__init__()
        self.status = status
        self.sent: list[requests.PreparedRequest] = []

    def send(self, request: requests.PreparedRequest, *args: Any, **kwargs: Any) -> requests.Response:
        self.sent.append(request)
        response = requests.Response()
        response.status_code = self.status
        response._content = b""
        response.headers = CaseInsensitiveDict()
        response.url = request.url or ""
        response.request = request
        return response


@pytest.fixture
def netrc_for_replica(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "netrc"
    path.write_text("machine replica.example login leaked password s3cret\n", encoding="utf-8")
    path.chmod(0o600)
    monkeypatch.setenv("NETRC", str(path))


def _mount_capturing(connector: RequestsConnector, status: int) -> CapturingAdapter:
    adapter = CapturingAdapter(status)
    connector.session.mount("http://", adapter)
    connector.session.mount("https://", adapter)
    return adapter


@pytest.mark.usefixtures("netrc_for_replica")
class TestWireAuthorization:
    """The Authorization header on the wire is the executor's, never netrc's."""

    def test_plain_http_sends_no_credentials(self) -> None:
        connector = RequestsConnector()
        adapter = _mount_capturing(connector, 401)
        executor = RequestExecutor(Endpoint.parse("http://replica.example"), connector)

        with pytest.raises(InsecureAuthenticationError):
            executor.execute(HttpMethod.GET, "status")

        assert [request.headers.get("Authorization") for request in adapter.sent] == [None]

    def test_provider_credential_reaches_the_wire(self) -> None:
        connector = RequestsConnector()
        adapter = _mount_capturing(connector, 200)
        credential = Credential(username="alice", password="pw")
        executor = RequestExecutor(
            Endpoint.parse("https://replica.example"),
            connector,
            StaticCredentialProvider(credential),
        )

        executor.execute(HttpMethod.GET, "status")

        assert len(adapter.sent) == 1
        assert adapter.sent[0].headers["Authorization"] == "Basic YWxpY2U6cHc="
        assert adapter.sent[0].headers["Content-Type"] == "application/cbor"

    def test_default_session_ignores_environment(self) -> None:
        assert RequestsConnector().session.trust_env is False
