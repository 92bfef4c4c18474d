"""TFS Provisioner.

A tool that makes sure a Team Foundation Server / Azure DevOps team project and
its Docker service endpoints exist, creating whatever is missing and waiting
for the server to finish each asynchronous creation.

Package Structure:
    core: Core functionality for reconciliation and API interactions
        - client: TFS REST API client with authentication handling
        - finder: Lookup of existing projects and service endpoints
        - polling: Bounded polling of asynchronous operations
        - reconciler: Find-or-create state machine per resource kind
        - provisioner: Dependency-ordered provisioning of all resources
        - models: Configuration, resource and request models
        - exceptions: Error types for graceful error handling

    cli: Command-line interface components
        - commands: CLI argument parsing, configuration and execution
        - printer: Output formatting in various formats (plain, rich, JSON)

    utils: Utility functions and helpers
        - auth: Personal access token encoding and Azure identity credentials
        - certificates: Docker TLS certificate loading

Examples:
    CLI Usage:
        ```bash
        # Find or create a team project on an on-prem collection
        $ tfs-provisioner \\
            --account http://localhost:8080/tfs/DefaultCollection \\
            --pat mytoken \\
            --project aspDemo

        # Also provision Docker host and registry endpoints
        $ tfs-provisioner \\
            --account myorg \\
            --project aspDemo \\
            --docker-host tcp://dockerhost:2376 \\
            --docker-cert-path ~/.docker \\
            --registry-id myuser \\
            --registry-password secret \\
            --output-format json
        ```

    Programmatic Usage:
        ```python
        from tfs_provisioner import Provisioner, ProvisionSettings, TfsClient

        settings = ProvisionSettings(
            account="myorg",
            project_name="aspDemo",
            pat=os.getenv("TFS_PAT"),
            registry_id="myuser",
            registry_password=os.getenv("DOCKER_REGISTRY_PASSWORD"),
        )

        async with TfsClient(settings.account, pat=settings.pat) as client:
            result = await Provisioner(client, settings).provision()
        ```
"""

__version__ = "0.1.0"

from tfs_provisioner.core import (
    OperationStatus,
    PollPolicy,
    Provisioner,
    ProvisioningResult,
    ProvisionSettings,
    ResourceDescriptor,
    ResourceKind,
    TfsClient,
    TfsProvisionerError,
    find_or_create_docker_endpoint,
    find_or_create_project,
    find_or_create_registry_endpoint,
)

__all__ = [
    "OperationStatus",
    "PollPolicy",
    "ProvisionSettings",
    "Provisioner",
    "ProvisioningResult",
    "ResourceDescriptor",
    "ResourceKind",
    "TfsClient",
    "TfsProvisionerError",
    "__version__",
    "find_or_create_docker_endpoint",
    "find_or_create_project",
    "find_or_create_registry_endpoint",
]
