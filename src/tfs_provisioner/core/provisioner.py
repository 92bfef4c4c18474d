"""Provisioning of a team project and its Docker service endpoints.

This module ties the reconcilers together for one provisioning run. The team
project is reconciled first because both service endpoints are created inside
it; the Docker host and Docker registry endpoints follow, sequentially by
default or concurrently when requested.

Key Components:
    Provisioner: Runs the three reconciliations in dependency order
    ProvisioningResult: Descriptors produced by a run
    find_or_create_project: Reconciles the team project
    find_or_create_docker_endpoint: Reconciles the Docker host endpoint
    find_or_create_registry_endpoint: Reconciles the Docker registry endpoint

Example:
    ```python
    from tfs_provisioner.core.client import TfsClient
    from tfs_provisioner.core.models import ProvisionSettings
    from tfs_provisioner.core.provisioner import Provisioner

    async def provision(settings: ProvisionSettings):
        async with TfsClient(settings.account, pat=settings.pat) as client:
            result = await Provisioner(client, settings).provision()
            print(result.project.id)
    ```

Note:
    Nothing is rolled back when a later reconciliation fails; a project created
    before a failing endpoint is left in place.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from tfs_provisioner.core.client import TfsClient
from tfs_provisioner.core.models import PollPolicy, ProvisionSettings, ResourceDescriptor
from tfs_provisioner.core.polling import StatusPoller
from tfs_provisioner.core.reconciler import (
    DockerEndpointReconciler,
    ProjectReconciler,
    RegistryEndpointReconciler,
)


@dataclass(frozen=True)
class ProvisioningResult:
    """Resources produced by a provisioning run; endpoints are None when not requested."""

    project: ResourceDescriptor
    docker_endpoint: ResourceDescriptor | None = None
    registry_endpoint: ResourceDescriptor | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project.to_dict(),
            "docker_endpoint": self.docker_endpoint.to_dict() if self.docker_endpoint else None,
            "registry_endpoint": self.registry_endpoint.to_dict() if self.registry_endpoint else None,
        }


def _poller(client: TfsClient, settings: ProvisionSettings, poll_policy: PollPolicy | None) -> StatusPoller:
    return StatusPoller(client, poll_policy or settings.poll_policy)


async def find_or_create_project(
    client: TfsClient,
    settings: ProvisionSettings,
    *,
    poll_policy: PollPolicy | None = None,
    logger: logging.Logger | None = None,
) -> ResourceDescriptor:
    """Finds the configured team project or creates it."""
    return await ProjectReconciler(
        client,
        settings.project_name,
        settings.process_template_id,
        poller=_poller(client, settings, poll_policy),
        logger=logger,
    ).reconcile()


async def find_or_create_docker_endpoint(
    client: TfsClient,
    settings: ProvisionSettings,
    project: ResourceDescriptor,
    *,
    poll_policy: PollPolicy | None = None,
    logger: logging.Logger | None = None,
) -> ResourceDescriptor | None:
    """Finds or creates the Docker host endpoint; returns None when no Docker host is configured."""
    return await DockerEndpointReconciler(
        client,
        project.id,
        settings.docker_host,
        settings.docker_cert_path,
        poller=_poller(client, settings, poll_policy),
        logger=logger,
    ).reconcile()


async def find_or_create_registry_endpoint(
    client: TfsClient,
    settings: ProvisionSettings,
    project: ResourceDescriptor,
    *,
    poll_policy: PollPolicy | None = None,
    logger: logging.Logger | None = None,
) -> ResourceDescriptor | None:
    """Finds or creates the Docker registry endpoint; returns None when no registry id is configured."""
    return await RegistryEndpointReconciler(
        client,
        project.id,
        settings.registry_id,
        settings.registry_password,
        settings.registry_email,
        settings.registry_url,
        poller=_poller(client, settings, poll_policy),
        logger=logger,
    ).reconcile()


class Provisioner:
    """Provisions a team project and its Docker service endpoints."""

    def __init__(
        self,
        client: TfsClient,
        settings: ProvisionSettings,
        *,
        poll_policy: PollPolicy | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.poll_policy = poll_policy
        self.logger = logger

    async def _gather_endpoints(
        self,
        project: ResourceDescriptor,
        options: dict[str, Any],
    ) -> tuple[ResourceDescriptor | None, ResourceDescriptor | None]:
        """Reconciles both endpoints concurrently; the first failure cancels the other."""
        tasks = [
            asyncio.create_task(find_or_create_docker_endpoint(self.client, self.settings, project, **options)),
            asyncio.create_task(find_or_create_registry_endpoint(self.client, self.settings, project, **options)),
        ]
        try:
            docker_endpoint, registry_endpoint = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancelled siblings finish before the client session is closed
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return docker_endpoint, registry_endpoint

    async def provision(self) -> ProvisioningResult:
        """
        Reconciles the team project, then the Docker host and registry endpoints.

        Returns:
            ProvisioningResult: Descriptors of the provisioned resources

        Raises:
            ReconciliationError: As soon as any reconciliation fails
        """
        options = {"poll_policy": self.poll_policy, "logger": self.logger}

        project = await find_or_create_project(self.client, self.settings, **options)
        logging.debug("provisioner: team project '%s' resolved to %s", project.name, project.id)

        if self.settings.parallel_endpoints:
            docker_endpoint, registry_endpoint = await self._gather_endpoints(project, options)
        else:
            docker_endpoint = await find_or_create_docker_endpoint(self.client, self.settings, project, **options)
            registry_endpoint = await find_or_create_registry_endpoint(self.client, self.settings, project, **options)

        return ProvisioningResult(
            project=project,
            docker_endpoint=docker_endpoint,
            registry_endpoint=registry_endpoint,
        )
