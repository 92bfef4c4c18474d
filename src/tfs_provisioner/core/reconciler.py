"""Find-or-create reconciliation of TFS resources.

This module provides the engine that makes a desired resource exist in TFS.
Every resource kind goes through the same strictly ordered stages:

    find -> (if absent) create -> poll until terminal -> fetch

Key Components:
    Reconciler: Abstract base running the shared state machine
    ProjectReconciler: Team projects (Git, process template)
    DockerEndpointReconciler: Docker host service endpoints
    RegistryEndpointReconciler: Docker registry service endpoints

Behavior:
    - A resource found by the finder is returned without issuing a create
    - Endpoint reconcilers return None without any network call when their
      identifying input (Docker host, registry id) is empty
    - A terminal 'failed' status raises OperationFailed and skips the fetch
    - A fetch answered with anything but 200 raises UnexpectedStatusCode
    - Every error carries the resource kind and propagates to the caller

Example:
    ```python
    from tfs_provisioner.core.client import TfsClient
    from tfs_provisioner.core.reconciler import DockerEndpointReconciler, ProjectReconciler

    async def provision():
        async with TfsClient("myorg", pat="token") as client:
            project = await ProjectReconciler(client, "aspDemo").reconcile()
            endpoint = await DockerEndpointReconciler(
                client,
                project.id,
                docker_host="tcp://dockerhost:2376",
                docker_cert_path="~/.docker",
            ).reconcile()
    ```

Raises:
    TransportFailure: When TFS cannot be reached at any stage
    UnexpectedStatusCode: When a create or fetch is answered with an error status
    OperationFailed: When the server reports that creation failed
    PollTimeout: When creation does not finish within the poll policy
    CertificateError: When Docker TLS material cannot be read
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from tfs_provisioner.core.client import TfsClient, TfsResponse
from tfs_provisioner.core.exceptions import OperationFailed, ReconciliationError, UnexpectedStatusCode
from tfs_provisioner.core.finder import ResourceFinder, describe
from tfs_provisioner.core.models import (
    AGILE_PROCESS_TEMPLATE_ID,
    DOCKER_HUB_REGISTRY_URL,
    DockerHostEndpointRequest,
    OperationStatus,
    ProjectCreationRequest,
    RegistryEndpointRequest,
    ResourceDescriptor,
    ResourceKind,
)
from tfs_provisioner.core.polling import StatusPoller
from tfs_provisioner.utils.certificates import load_docker_certificates


class Reconciler(ABC):
    """Runs the find-or-create state machine for one resource."""

    kind: ClassVar[ResourceKind]
    api_version: ClassVar[str] = TfsClient.PROJECT_API_VERSION

    def __init__(
        self,
        client: TfsClient,
        *,
        finder: ResourceFinder | None = None,
        poller: StatusPoller | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.finder = finder or ResourceFinder(client)
        self.poller = poller or StatusPoller(client)
        self.log = logger or logging.getLogger(__name__)

    def is_requested(self) -> bool:
        """Returns False when the caller did not ask for this resource."""
        return True

    @abstractmethod
    async def find(self) -> ResourceDescriptor | None:
        """Looks up an existing instance of the resource."""

    @abstractmethod
    async def create(self) -> dict[str, Any]:
        """Issues the create request and returns the response body."""

    @abstractmethod
    def status_url(self, created: dict[str, Any]) -> str:
        """URL to poll for the outcome of the create request."""

    def read_status(self, payload: dict[str, Any]) -> OperationStatus:
        return OperationStatus.from_operation_response(payload)

    @abstractmethod
    async def fetch(self, created: dict[str, Any]) -> ResourceDescriptor:
        """Gets the final representation of the created resource."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Name of the resource used in progress messages."""

    @staticmethod
    def _require_created(response: TfsResponse, key: str) -> dict[str, Any]:
        """Returns the create response body, which must carry the given key."""
        if not response.ok:
            raise UnexpectedStatusCode(response.status, response.url, response.message)
        if not isinstance(response.body, dict) or not response.body.get(key):
            msg = f"Create response is missing '{key}'."
            raise UnexpectedStatusCode(response.status, response.url, msg)
        return response.body

    async def reconcile(self) -> ResourceDescriptor | None:
        """
        Finds the resource or creates it and waits for it to be ready.

        Returns:
            ResourceDescriptor: The existing or newly created resource, or None
                when the resource was not requested
        """
        if not self.is_requested():
            self.log.debug("reconciler: %s not requested, skipping", self.kind.label)
            return None

        try:
            existing = await self.find()
            if existing is not None:
                self.log.info("+ Found %s", self.kind.label)
                return existing

            self.log.info("+ Creating %s", self.display_name)
            created = await self.create()

            status = await self.poller.poll_until_terminal(
                self.status_url(created),
                self.read_status,
                self.api_version,
            )
            if status.failed:
                raise OperationFailed(status)

            return await self.fetch(created)
        except ReconciliationError as e:
            e.kind = self.kind
            raise


class ProjectReconciler(Reconciler):
    """Finds or creates a Git team project."""

    kind = ResourceKind.PROJECT

    def __init__(
        self,
        client: TfsClient,
        project_name: str,
        process_template_id: str = AGILE_PROCESS_TEMPLATE_ID,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, **kwargs)
        self.request = ProjectCreationRequest(name=project_name, process_template_id=process_template_id)

    @property
    def display_name(self) -> str:
        return f"{self.request.name} Team Project"

    async def find(self) -> ResourceDescriptor | None:
        return await self.finder.find_project(self.request.name)

    async def create(self) -> dict[str, Any]:
        response = await self.client.create_project_async(self.request.to_payload())
        return self._require_created(response, "url")

    def status_url(self, created: dict[str, Any]) -> str:
        return created["url"]

    async def fetch(self, created: dict[str, Any]) -> ResourceDescriptor:  # noqa: ARG002
        response = await self.client.get_project_async(self.request.name)
        if response.status != 200:  # noqa: PLR2004
            self.log.error("reconciler: unable to find newly created project '%s'", self.request.name)
            raise UnexpectedStatusCode(response.status, response.url, "Unable to find newly created project.")
        return describe(self.kind, response)


class EndpointReconciler(Reconciler):
    """Shared behavior of the service endpoint reconcilers."""

    api_version = TfsClient.ENDPOINT_API_VERSION

    def __init__(self, client: TfsClient, project_id: str, **kwargs: Any) -> None:
        super().__init__(client, **kwargs)
        self.project_id = project_id

    @property
    def display_name(self) -> str:
        return self.kind.label

    @abstractmethod
    def payload(self) -> dict[str, Any]:
        """Body of the create request."""

    async def create(self) -> dict[str, Any]:
        response = await self.client.create_service_endpoint_async(self.project_id, self.payload())
        return self._require_created(response, "id")

    def status_url(self, created: dict[str, Any]) -> str:
        return f"{self.client.service_endpoints_url(self.project_id)}/{created['id']}"

    def read_status(self, payload: dict[str, Any]) -> OperationStatus:
        return OperationStatus.from_endpoint_response(payload)

    async def fetch(self, created: dict[str, Any]) -> ResourceDescriptor:
        response = await self.client.get_service_endpoint_async(self.project_id, created["id"])
        if response.status != 200:  # noqa: PLR2004
            msg = f"Unable to find newly created {self.kind.label}."
            raise UnexpectedStatusCode(response.status, response.url, msg)
        return describe(self.kind, response)


class DockerEndpointReconciler(EndpointReconciler):
    """Finds or creates a Docker host service endpoint secured with TLS certificates."""

    kind = ResourceKind.DOCKER_ENDPOINT

    def __init__(
        self,
        client: TfsClient,
        project_id: str,
        docker_host: str | None,
        docker_cert_path: str | None,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, project_id, **kwargs)
        self.docker_host = docker_host
        self.docker_cert_path = docker_cert_path

    def is_requested(self) -> bool:
        return bool(self.docker_host)

    async def find(self) -> ResourceDescriptor | None:
        return await self.finder.find_docker_endpoint(self.project_id, self.docker_host)

    def payload(self) -> dict[str, Any]:
        certificates = load_docker_certificates(self.docker_cert_path or "")
        return DockerHostEndpointRequest(
            docker_host=self.docker_host,
            ca_cert=certificates.ca_cert,
            cert=certificates.cert,
            key=certificates.key,
        ).to_payload()


class RegistryEndpointReconciler(EndpointReconciler):
    """Finds or creates a Docker registry service endpoint."""

    kind = ResourceKind.REGISTRY_ENDPOINT

    def __init__(
        self,
        client: TfsClient,
        project_id: str,
        registry_id: str | None,
        registry_password: str | None = None,
        registry_email: str | None = None,
        registry_url: str = DOCKER_HUB_REGISTRY_URL,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, project_id, **kwargs)
        self.registry_id = registry_id
        self.registry_password = registry_password
        self.registry_email = registry_email
        self.registry_url = registry_url

    def is_requested(self) -> bool:
        return bool(self.registry_id)

    async def find(self) -> ResourceDescriptor | None:
        return await self.finder.find_registry_endpoint(self.project_id, self.registry_url, self.registry_id)

    def payload(self) -> dict[str, Any]:
        return RegistryEndpointRequest(
            registry_id=self.registry_id,
            password=self.registry_password,
            email=self.registry_email,
            registry_url=self.registry_url,
        ).to_payload()
