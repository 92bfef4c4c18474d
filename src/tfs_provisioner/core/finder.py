"""Lookup of existing TFS resources.

A missing resource is a normal outcome here: finder methods return ``None``
for it. Only transport failures and status codes other than 2xx and 404 are
raised.
"""

import logging

from tfs_provisioner.core.client import TfsClient, TfsResponse
from tfs_provisioner.core.exceptions import UnexpectedStatusCode
from tfs_provisioner.core.models import RegistryEndpointRequest, ResourceDescriptor, ResourceKind


def _normalize_url(url: str | None) -> str:
    return (url or "").strip().rstrip("/").lower()


def describe(kind: ResourceKind, response: TfsResponse) -> ResourceDescriptor:
    """Builds a descriptor from a 2xx response, rejecting bodies without an id."""
    if not isinstance(response.body, dict) or "id" not in response.body:
        msg = f"Malformed {kind.label} response."
        raise UnexpectedStatusCode(response.status, response.url, msg)
    return ResourceDescriptor.from_get_response(kind, response.body)


class ResourceFinder:
    """Finds existing team projects and service endpoints."""

    def __init__(self, client: TfsClient) -> None:
        self.client = client

    @staticmethod
    def _check(response: TfsResponse) -> bool:
        """Returns True when the response holds a resource, False when it was not found."""
        if response.not_found:
            return False
        if not response.ok:
            raise UnexpectedStatusCode(response.status, response.url, response.message)
        return True

    async def find_project(self, name: str) -> ResourceDescriptor | None:
        """Finds a team project by name."""
        response = await self.client.get_project_async(name)
        if not self._check(response):
            logging.debug("finder: team project '%s' not found", name)
            return None
        return describe(ResourceKind.PROJECT, response)

    async def _list_endpoints(self, project_id: str, kind: ResourceKind) -> list[dict]:
        response = await self.client.list_service_endpoints_async(project_id, kind.value)
        if not self._check(response):
            return []
        items = response.body.get("value", []) if isinstance(response.body, dict) else []
        return [item for item in items if isinstance(item, dict) and "id" in item]

    async def find_docker_endpoint(self, project_id: str, docker_host: str) -> ResourceDescriptor | None:
        """Finds a Docker host service endpoint pointing at the given host."""
        for item in await self._list_endpoints(project_id, ResourceKind.DOCKER_ENDPOINT):
            if _normalize_url(item.get("url")) == _normalize_url(docker_host):
                return ResourceDescriptor.from_get_response(ResourceKind.DOCKER_ENDPOINT, item)
        logging.debug("finder: no Docker endpoint for '%s' in project %s", docker_host, project_id)
        return None

    async def find_registry_endpoint(
        self,
        project_id: str,
        registry_url: str,
        registry_id: str,
    ) -> ResourceDescriptor | None:
        """Finds a Docker registry service endpoint, preferring a URL and name match over a name-only match."""
        name = RegistryEndpointRequest.endpoint_name(registry_id)
        candidates = [
            item
            for item in await self._list_endpoints(project_id, ResourceKind.REGISTRY_ENDPOINT)
            if item.get("name") == name
        ]
        for item in candidates:
            if _normalize_url(item.get("url")) == _normalize_url(registry_url):
                return ResourceDescriptor.from_get_response(ResourceKind.REGISTRY_ENDPOINT, item)
        if candidates:
            return ResourceDescriptor.from_get_response(ResourceKind.REGISTRY_ENDPOINT, candidates[0])
        logging.debug("finder: no registry endpoint '%s' in project %s", name, project_id)
        return None
