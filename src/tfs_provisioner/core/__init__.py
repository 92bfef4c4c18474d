"""Core subpackage for TFS provisioning.

This subpackage provides the find-or-create engine: the REST client, the
resource finder, the status poller and the reconcilers for team projects,
Docker host endpoints and Docker registry endpoints.

Modules:
    client: TFS REST API client with retry support
    finder: Lookup of existing projects and service endpoints
    polling: Bounded polling of asynchronous operations
    reconciler: Find-or-create state machine per resource kind
    provisioner: Dependency-ordered provisioning of all resources
    models: Configuration, resource and request models
    exceptions: Error types for graceful error handling

Example:
    >>> from tfs_provisioner.core import Provisioner, ProvisionSettings, TfsClient
    >>>
    >>> async def provision():
    ...     settings = ProvisionSettings(account="myorg", project_name="aspDemo", pat="token")
    ...     async with TfsClient(settings.account, pat=settings.pat) as client:
    ...         result = await Provisioner(client, settings).provision()
    ...         print(result.project.id)
"""

from tfs_provisioner.core.client import TfsClient, TfsResponse, get_full_url
from tfs_provisioner.core.exceptions import (
    AuthenticationError,
    CertificateError,
    ConfigurationError,
    OperationFailed,
    PollTimeout,
    ReconciliationError,
    TfsProvisionerError,
    TransportFailure,
    UnexpectedStatusCode,
)
from tfs_provisioner.core.finder import ResourceFinder
from tfs_provisioner.core.models import (
    BackoffStrategy,
    DockerHostEndpointRequest,
    OperationStatus,
    PollPolicy,
    ProjectCreationRequest,
    ProvisionSettings,
    RegistryEndpointRequest,
    ResourceDescriptor,
    ResourceKind,
)
from tfs_provisioner.core.polling import StatusPoller
from tfs_provisioner.core.provisioner import (
    Provisioner,
    ProvisioningResult,
    find_or_create_docker_endpoint,
    find_or_create_project,
    find_or_create_registry_endpoint,
)
from tfs_provisioner.core.reconciler import (
    DockerEndpointReconciler,
    ProjectReconciler,
    Reconciler,
    RegistryEndpointReconciler,
)

__all__ = [  # noqa: RUF022
    # Main components
    "TfsClient",
    "TfsResponse",
    "get_full_url",
    "ResourceFinder",
    "StatusPoller",
    "Reconciler",
    "ProjectReconciler",
    "DockerEndpointReconciler",
    "RegistryEndpointReconciler",
    "Provisioner",
    "ProvisioningResult",
    "find_or_create_project",
    "find_or_create_docker_endpoint",
    "find_or_create_registry_endpoint",
    # Models
    "BackoffStrategy",
    "OperationStatus",
    "PollPolicy",
    "ProvisionSettings",
    "ResourceDescriptor",
    "ResourceKind",
    "ProjectCreationRequest",
    "DockerHostEndpointRequest",
    "RegistryEndpointRequest",
    # Exceptions
    "TfsProvisionerError",
    "AuthenticationError",
    "ConfigurationError",
    "CertificateError",
    "ReconciliationError",
    "TransportFailure",
    "UnexpectedStatusCode",
    "OperationFailed",
    "PollTimeout",
]
