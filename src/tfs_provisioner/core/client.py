"""Core TFS REST API client functionality.

This module provides the HTTP client the provisioner uses to talk to Team
Foundation Server and Azure DevOps. It handles authentication, session
management and JSON parsing, and exposes one method per REST call the
reconcilers need.

Key Components:
    TfsClient: Asynchronous client with retry logic for transient failures
    TfsResponse: Status code and parsed JSON body of a response
    get_full_url: Resolves an account name or collection URL to a base URL

Features:
    - Basic authentication with a personal access token, or Azure AD bearer
      tokens through DefaultAzureCredential
    - Lazily created aiohttp session with connection and read timeouts
    - Automatic retry with exponential backoff for transient status codes
      and connection errors, for GET requests only; creates are sent once
    - Status codes are returned to the caller rather than raised, so that a
      404 can be treated as "not found"

Dependencies:
    - models.py: Creation request payloads
    - exceptions.py: Custom exceptions for error handling
    - aiohttp: For asynchronous HTTP operations
    - tenacity: For retrying transient failures
    - utils.auth: For credential derivation

Example:
    ```python
    from tfs_provisioner.core.client import TfsClient

    async def fetch_project():
        async with TfsClient("http://localhost:8080/tfs/DefaultCollection", pat="token") as client:
            response = await client.get_project_async("aspDemo")
            if response.ok:
                print(response.body["id"])
    ```

Raises:
    AuthenticationError: When no credential is available or TFS answers 401
    TransportFailure: When TFS cannot be reached
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, ClassVar
from urllib.parse import quote

import aiohttp
import tenacity

from tfs_provisioner.core.exceptions import AuthenticationError, TransportFailure
from tfs_provisioner.utils.auth import Credential, credential_from_azure_identity, credential_from_pat


def get_full_url(account: str) -> str:
    """Resolves an Azure DevOps organization name or a TFS collection URL to a base URL."""
    account = account.strip()
    if "://" in account:
        return account.rstrip("/")
    return f"https://dev.azure.com/{account}"


@dataclass(frozen=True)
class TfsResponse:
    """Status code and parsed JSON body of a TFS response."""

    status: int
    body: Any = None
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300  # noqa: PLR2004

    @property
    def not_found(self) -> bool:
        return self.status == 404  # noqa: PLR2004

    @property
    def message(self) -> str | None:
        """Error message reported by TFS, if any."""
        if isinstance(self.body, dict):
            return self.body.get("message")
        return None


class TfsClient:
    """Handles REST API interactions with a TFS collection or Azure DevOps organization."""

    PROJECT_API_VERSION = "1.0"  # Projects and operations API version
    ENDPOINT_API_VERSION = "3.0-preview.1"  # Service endpoints API version
    MAX_RETRIES = 3  # Maximum number of attempts for a single request
    RETRY_STATUS_CODES: ClassVar[list[int]] = [
        500,
        502,
        503,
        504,
        429,
        408,
    ]  # Status codes to retry on
    ASYNC_TOTAL_TIMEOUT = 30  # Total timeout for async requests
    ASYNC_CONNECT_TIMEOUT = 10  # Connection timeout for async requests
    ASYNC_SOCKET_TIMEOUT = 10  # Socket read timeout for async

    def __init__(
        self,
        account: str,
        pat: str | None = None,
        credential: Credential | None = None,
    ) -> None:
        # Base configuration
        self.account = account
        self.base_url = get_full_url(account)

        # Authentication
        if credential is None:
            credential = credential_from_pat(pat) if pat else credential_from_azure_identity()
        if credential is None:
            raise AuthenticationError
        self.credential = credential
        self.headers = {
            "Authorization": credential.header,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Cache-Control": "no-cache",
        }

        # Sessions
        self._async_session = None

    ### Session methods
    async def get_async_session(self) -> aiohttp.ClientSession:
        """Lazy initialization of async session."""
        if self._async_session is None:
            self._async_session = await self._create_async_session()
        return self._async_session

    async def _create_async_session(self) -> aiohttp.ClientSession:
        """Creates a new aiohttp client session."""
        return aiohttp.ClientSession(
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(
                total=self.ASYNC_TOTAL_TIMEOUT,
                connect=self.ASYNC_CONNECT_TIMEOUT,
                sock_read=self.ASYNC_SOCKET_TIMEOUT,
            ),
        )

    async def close(self) -> None:
        """Closes the underlying session."""
        if self._async_session:
            await self._async_session.close()
            self._async_session = None

    ### Context manager methods
    async def __aenter__(self) -> "TfsClient":
        """Async context manager entry."""
        if self._async_session is None:
            self._async_session = await self._create_async_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit."""
        await self.close()

    ### Request methods
    @staticmethod
    def _retry_if_transient(exception: BaseException) -> bool:
        """Return True for connection errors and timeouts, which are worth retrying."""
        return isinstance(exception, (aiohttp.ClientConnectionError, asyncio.TimeoutError))

    @staticmethod
    def _retry_if_status_code(response: "TfsResponse") -> bool:
        """Return True if the response carries a status code worth retrying."""
        return response.status in TfsClient.RETRY_STATUS_CODES

    async def _send_async(
        self,
        method: str,
        url: str,
        params: dict | None = None,
        body: dict | None = None,
    ) -> TfsResponse:
        """Sends a single request and parses the JSON body, if any. Never retried."""
        session = await self.get_async_session()
        async with session.request(method, url, params=params, json=body) as response:
            if response.status == 401:  # noqa: PLR2004
                raise AuthenticationError
            try:
                data = await response.json(content_type=None)
            except ValueError:
                logging.debug("client: [%s] non-JSON body - %s", response.status, url)
                data = None
            return TfsResponse(status=response.status, body=data, url=str(response.url))

    @tenacity.retry(
        wait=tenacity.wait_exponential(multiplier=1, min=1, max=10),
        stop=tenacity.stop_after_attempt(MAX_RETRIES),
        retry=(
            tenacity.retry_if_exception(_retry_if_transient)
            | tenacity.retry_if_result(_retry_if_status_code)
        ),
        retry_error_callback=lambda retry_state: retry_state.outcome.result(),
    )
    async def _get_async(self, url: str, params: dict | None = None) -> TfsResponse:
        """Sends a GET, retrying transient failures. Creates go through _send_async only."""
        return await self._send_async("GET", url, params=params)

    async def request_async(
        self,
        method: str,
        url: str,
        api_version: str = PROJECT_API_VERSION,
        params: dict | None = None,
        body: dict | None = None,
    ) -> TfsResponse:
        """Handles async requests with error handling, returning the status code and JSON body."""
        merged_params = {"api-version": api_version, **(params or {})}
        try:
            if method == "GET":
                response = await self._get_async(url, params=merged_params)
            else:
                response = await self._send_async(method, url, params=merged_params, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logging.error("client: %s error: %s - %s", method, type(e).__name__, url)  # noqa: TRY400
            raise TransportFailure(url, e) from e
        if not response.ok and not response.not_found:
            logging.error("client: [%s] %s - %s", response.status, method, url)
        return response

    ### Project methods
    def _project_url(self, project: str) -> str:
        return f"{self.base_url}/_apis/projects/{quote(project)}"

    async def get_project_async(self, project: str) -> TfsResponse:
        """Gets details of a specific project."""
        return await self.request_async("GET", self._project_url(project))

    async def create_project_async(self, payload: dict) -> TfsResponse:
        """Queues the creation of a team project; the body references the creation operation."""
        url = f"{self.base_url}/_apis/projects"
        return await self.request_async("POST", url, body=payload)

    async def get_operation_async(self, url: str, api_version: str = PROJECT_API_VERSION) -> TfsResponse:
        """Gets the status of an asynchronous operation or of a resource being provisioned."""
        return await self.request_async("GET", url, api_version=api_version)

    ### Service endpoint methods
    def service_endpoints_url(self, project_id: str) -> str:
        return f"{self.base_url}/{project_id}/_apis/distributedtask/serviceendpoints"

    async def list_service_endpoints_async(self, project_id: str, endpoint_type: str) -> TfsResponse:
        """Lists the service endpoints of a given type in a project."""
        return await self.request_async(
            "GET",
            self.service_endpoints_url(project_id),
            api_version=self.ENDPOINT_API_VERSION,
            params={"type": endpoint_type},
        )

    async def create_service_endpoint_async(self, project_id: str, payload: dict) -> TfsResponse:
        """Creates a service endpoint in a project."""
        return await self.request_async(
            "POST",
            self.service_endpoints_url(project_id),
            api_version=self.ENDPOINT_API_VERSION,
            body=payload,
        )

    async def get_service_endpoint_async(self, project_id: str, endpoint_id: str) -> TfsResponse:
        """Gets details of a specific service endpoint."""
        return await self.request_async(
            "GET",
            f"{self.service_endpoints_url(project_id)}/{endpoint_id}",
            api_version=self.ENDPOINT_API_VERSION,
        )
