# ruff: noqa: SLF001,PLR2004,S105,S106
import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from tfs_provisioner.core.client import TfsClient, TfsResponse, get_full_url
from tfs_provisioner.core.exceptions import AuthenticationError, TransportFailure
from tfs_provisioner.utils.auth import Credential

COLLECTION = "http://localhost:8080/tfs/DefaultCollection"


class FakeResponse:
    """Minimal stand-in for an aiohttp response."""

    def __init__(self, status: int, body: object = None, url: str = COLLECTION) -> None:
        self.status = status
        self._body = body
        self.url = url

    async def json(self, content_type: str | None = None) -> object:  # noqa: ARG002
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *args: object) -> None:
        return None


class FakeSession:
    """Records requests and returns canned responses."""

    def __init__(self, response: FakeResponse | Exception) -> None:
        self.response = response
        self.calls = []

    def request(self, method: str, url: str, **kwargs: object) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_get_full_url() -> None:
    """Test account resolution for collection URLs and organization names."""
    if get_full_url(f"{COLLECTION}/") != COLLECTION:
        pytest.fail(f"Expected trailing slash to be stripped, got '{get_full_url(COLLECTION + '/')}'")
    if get_full_url("myorg") != "https://dev.azure.com/myorg":
        pytest.fail(f"Unexpected organization URL: {get_full_url('myorg')}")


def test_initialization_with_pat() -> None:
    """Test client initialization with a personal access token."""
    client = TfsClient(COLLECTION, pat="token")
    if client.base_url != COLLECTION:
        pytest.fail(f"Expected base_url '{COLLECTION}', got '{client.base_url}'")
    if client.headers["Authorization"] != "Basic OnRva2Vu":
        pytest.fail(f"Unexpected Authorization header: {client.headers['Authorization']}")
    if client._async_session is not None:
        pytest.fail("Expected the session to be created lazily")


def test_initialization_with_credential() -> None:
    """Test client initialization with an explicit credential."""
    client = TfsClient("myorg", credential=Credential(scheme="Bearer", token="aad"))
    if client.headers["Authorization"] != "Bearer aad":
        pytest.fail(f"Unexpected Authorization header: {client.headers['Authorization']}")


def test_initialization_with_azure_identity() -> None:
    """Test client initialization falling back to Azure identity."""
    with patch("tfs_provisioner.core.client.credential_from_azure_identity") as mock_identity:
        mock_identity.return_value = Credential(scheme="Bearer", token="aad")
        client = TfsClient("myorg")
        mock_identity.assert_called_once()
        if client.credential.scheme != "Bearer":
            pytest.fail("Expected a bearer credential")


def test_authentication_error_without_credential() -> None:
    """Test that an authentication error is raised when no credential is available."""
    with patch("tfs_provisioner.core.client.credential_from_azure_identity", return_value=None):
        with pytest.raises(AuthenticationError):
            TfsClient("myorg")


def test_retry_if_status_code() -> None:
    """Test the retry condition for HTTP status codes."""
    if not TfsClient._retry_if_status_code(TfsResponse(status=503)):
        pytest.fail("Expected retry for status code 503")
    if not TfsClient._retry_if_status_code(TfsResponse(status=429)):
        pytest.fail("Expected retry for status code 429")
    if TfsClient._retry_if_status_code(TfsResponse(status=404)):
        pytest.fail("Expected no retry for status code 404")


def test_retry_if_transient() -> None:
    """Test the retry condition for exceptions."""
    if not TfsClient._retry_if_transient(aiohttp.ClientConnectionError("refused")):
        pytest.fail("Expected retry for connection errors")
    if not TfsClient._retry_if_transient(asyncio.TimeoutError()):
        pytest.fail("Expected retry for timeouts")
    if TfsClient._retry_if_transient(AuthenticationError()):
        pytest.fail("Expected no retry for authentication errors")


def test_tfs_response_properties() -> None:
    """Test response status helpers."""
    if not TfsResponse(status=202).ok:
        pytest.fail("Expected 202 to be ok")
    if TfsResponse(status=404).ok or not TfsResponse(status=404).not_found:
        pytest.fail("Expected 404 to be not found")
    if TfsResponse(status=400, body={"message": "bad name"}).message != "bad name":
        pytest.fail("Expected the server message to be exposed")
    if TfsResponse(status=400, body=None).message is not None:
        pytest.fail("Expected no message without a body")


class TestAsyncOperations:
    """Test suite for asynchronous TFS client operations."""

    def setup_method(self) -> None:
        """Setup test client."""
        self.client = TfsClient(COLLECTION, pat="pat")

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """Test async context manager."""
        async with self.client as client:
            if client._async_session is None:
                pytest.fail("Session not created")

        if client._async_session is not None:
            pytest.fail("Session not cleaned up")

    @pytest.mark.asyncio
    async def test_send_parses_json(self) -> None:
        """Test that a response body is parsed as JSON."""
        session = FakeSession(FakeResponse(200, {"id": "1", "name": "aspDemo"}))
        with patch.object(self.client, "get_async_session", new_callable=AsyncMock, return_value=session):
            response = await self.client.request_async("GET", f"{COLLECTION}/_apis/projects/aspDemo")

        if response.status != 200 or response.body["name"] != "aspDemo":
            pytest.fail(f"Unexpected response: {response}")
        method, url, kwargs = session.calls[0]
        if method != "GET" or url != f"{COLLECTION}/_apis/projects/aspDemo":
            pytest.fail(f"Unexpected request: {method} {url}")
        if kwargs["params"] != {"api-version": "1.0"}:
            pytest.fail(f"Unexpected params: {kwargs['params']}")

    @pytest.mark.asyncio
    async def test_send_non_json_body(self) -> None:
        """Test that a non-JSON body yields a response without a body."""
        session = FakeSession(FakeResponse(404, ValueError("not json")))
        with patch.object(self.client, "get_async_session", new_callable=AsyncMock, return_value=session):
            response = await self.client.request_async("GET", f"{COLLECTION}/_apis/projects/missing")

        if not response.not_found or response.body is not None:
            pytest.fail(f"Unexpected response: {response}")

    @pytest.mark.asyncio
    async def test_send_unauthorized(self) -> None:
        """Test that a 401 raises AuthenticationError without retrying."""
        session = FakeSession(FakeResponse(401))
        with patch.object(self.client, "get_async_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(AuthenticationError):
                await self.client.request_async("GET", f"{COLLECTION}/_apis/projects/aspDemo")

        if len(session.calls) != 1:
            pytest.fail(f"Expected a single request, got {len(session.calls)}")

    @pytest.mark.asyncio
    async def test_request_transport_failure(self) -> None:
        """Test that network errors are surfaced as TransportFailure."""
        with patch.object(self.client, "_get_async", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = aiohttp.ClientConnectionError("Connection failed")
            with pytest.raises(TransportFailure) as exc_info:
                await self.client.request_async("GET", f"{COLLECTION}/_apis/projects/aspDemo")

        if not isinstance(exc_info.value.cause, aiohttp.ClientConnectionError):
            pytest.fail("Expected the original error to be kept as cause")

    @pytest.mark.asyncio
    async def test_get_uses_retrying_path(self) -> None:
        """Test that GET requests go through the retrying sender."""
        with (
            patch.object(self.client, "_get_async", new_callable=AsyncMock) as mock_get,
            patch.object(self.client, "_send_async", new_callable=AsyncMock) as mock_send,
        ):
            mock_get.return_value = TfsResponse(status=200, body={})
            await self.client.request_async("GET", f"{COLLECTION}/_apis/projects/aspDemo")

        mock_get.assert_awaited_once_with(f"{COLLECTION}/_apis/projects/aspDemo", params={"api-version": "1.0"})
        mock_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_not_resent_on_transient_status(self) -> None:
        """Test that a create answered with 503 is sent exactly once."""
        session = FakeSession(FakeResponse(503, {"message": "Service Unavailable"}))
        with patch.object(self.client, "get_async_session", new_callable=AsyncMock, return_value=session):
            response = await self.client.create_project_async({"name": "aspDemo"})

        methods = [method for method, _, _ in session.calls]
        if methods != ["POST"]:
            pytest.fail(f"Expected a single POST, got {methods}")
        if response.status != 503:
            pytest.fail(f"Expected the 503 to be returned, got {response.status}")

    @pytest.mark.asyncio
    async def test_create_not_resent_on_connection_error(self) -> None:
        """Test that a create failing at the transport level is sent exactly once."""
        session = FakeSession(aiohttp.ClientConnectionError("Connection reset"))
        with patch.object(self.client, "get_async_session", new_callable=AsyncMock, return_value=session):
            with pytest.raises(TransportFailure):
                await self.client.create_service_endpoint_async("proj1", {"name": "Docker"})

        if len(session.calls) != 1:
            pytest.fail(f"Expected a single POST, got {len(session.calls)}")

    @pytest.mark.asyncio
    async def test_request_returns_error_status(self) -> None:
        """Test that error status codes are returned rather than raised."""
        with patch.object(self.client, "_send_async", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = TfsResponse(status=400, body={"message": "invalid"})
            response = await self.client.request_async("POST", f"{COLLECTION}/_apis/projects", body={})

        if response.status != 400:
            pytest.fail(f"Expected status 400, got {response.status}")

    @pytest.mark.asyncio
    async def test_get_project(self) -> None:
        """Test project lookup URL."""
        with patch.object(self.client, "request_async", new_callable=AsyncMock) as mock_request:
            await self.client.get_project_async("My Project")
            mock_request.assert_awaited_once_with("GET", f"{COLLECTION}/_apis/projects/My%20Project")

    @pytest.mark.asyncio
    async def test_create_project(self) -> None:
        """Test project creation request."""
        with patch.object(self.client, "request_async", new_callable=AsyncMock) as mock_request:
            await self.client.create_project_async({"name": "aspDemo"})
            mock_request.assert_awaited_once_with("POST", f"{COLLECTION}/_apis/projects", body={"name": "aspDemo"})

    @pytest.mark.asyncio
    async def test_get_operation(self) -> None:
        """Test operation status request."""
        operation_url = f"{COLLECTION}/_apis/operations/op1"
        with patch.object(self.client, "request_async", new_callable=AsyncMock) as mock_request:
            await self.client.get_operation_async(operation_url)
            mock_request.assert_awaited_once_with("GET", operation_url, api_version=TfsClient.PROJECT_API_VERSION)

    @pytest.mark.asyncio
    async def test_service_endpoint_requests(self) -> None:
        """Test service endpoint listing, creation and retrieval requests."""
        endpoints_url = f"{COLLECTION}/proj1/_apis/distributedtask/serviceendpoints"
        with patch.object(self.client, "request_async", new_callable=AsyncMock) as mock_request:
            await self.client.list_service_endpoints_async("proj1", "dockerhost")
            mock_request.assert_awaited_with(
                "GET",
                endpoints_url,
                api_version=TfsClient.ENDPOINT_API_VERSION,
                params={"type": "dockerhost"},
            )

            await self.client.create_service_endpoint_async("proj1", {"name": "Docker"})
            mock_request.assert_awaited_with(
                "POST",
                endpoints_url,
                api_version=TfsClient.ENDPOINT_API_VERSION,
                body={"name": "Docker"},
            )

            await self.client.get_service_endpoint_async("proj1", "ep1")
            mock_request.assert_awaited_with(
                "GET",
                f"{endpoints_url}/ep1",
                api_version=TfsClient.ENDPOINT_API_VERSION,
            )
