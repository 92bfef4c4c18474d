"""Core data models for TFS provisioning.

This module defines the data models used throughout the provisioner: the
configuration bag supplied by the caller, the retry policy for status polling,
the server representations of provisioned resources and the request payloads
sent when a resource has to be created.

Classes:
    Configuration Models:
        ProvisionSettings: Validated configuration for one provisioning run
        PollPolicy: Bounded retry policy for status polling
        BackoffStrategy: Enum for the wait strategy between poll ticks

    Resource Models:
        ResourceKind: Enum of the resource kinds the provisioner reconciles
        ResourceDescriptor: Server representation of a project or service endpoint
        OperationStatus: Status of an asynchronous server-side operation

    Creation Requests:
        ProjectCreationRequest: Payload for creating a team project
        DockerHostEndpointRequest: Payload for a Docker host service endpoint
        RegistryEndpointRequest: Payload for a Docker registry service endpoint

Example:
    ```python
    from tfs_provisioner.core.models import PollPolicy, ProvisionSettings

    settings = ProvisionSettings(
        account="http://localhost:8080/tfs/DefaultCollection",
        project_name="aspDemo",
        pat="token",
        docker_host="tcp://dockerhost:2376",
        docker_cert_path="~/.docker",
        poll_policy=PollPolicy(max_attempts=30, interval=2.0),
    )
    ```

Raises:
    ConfigurationError: When settings or poll policy values are invalid
"""

import logging
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

import yaml

from .exceptions import ConfigurationError

AGILE_PROCESS_TEMPLATE_ID = "6b724908-ef14-45cf-84f8-768b5384da45"
DOCKER_HUB_REGISTRY_URL = "https://index.docker.io/v1/"


class ResourceKind(Enum):
    """Kinds of TFS resources the provisioner reconciles."""

    PROJECT = "project"
    DOCKER_ENDPOINT = "dockerhost"
    REGISTRY_ENDPOINT = "dockerregistry"

    @property
    def label(self) -> str:
        """Human readable name used in log messages."""
        return {
            ResourceKind.PROJECT: "Team project",
            ResourceKind.DOCKER_ENDPOINT: "Docker Service Endpoint",
            ResourceKind.REGISTRY_ENDPOINT: "Docker Registry Service Endpoint",
        }[self]


class BackoffStrategy(Enum):
    """Wait strategy between poll ticks."""

    FIXED = "fixed"
    EXPONENTIAL = "exponential"

    @classmethod
    def from_string(cls, value: str) -> "BackoffStrategy":
        """Convert string to BackoffStrategy enum."""
        try:
            return cls(value.lower())
        except ValueError as e:
            valid_options = ", ".join(strategy.value for strategy in cls)
            msg = f"Invalid backoff strategy: {value}. Must be one of: {valid_options}"
            raise ConfigurationError(msg) from e


@dataclass(frozen=True)
class PollPolicy:
    """
    Bounded retry policy for polling an operation status URL.

    Polling stops at whichever bound is hit first.

    Attributes:
        max_attempts: Maximum number of GET requests against the status URL
        timeout: Wall-clock deadline for the whole polling loop, in seconds
        interval: Wait between ticks (initial wait for exponential backoff), in seconds
        backoff: Fixed or exponential wait between ticks
        max_interval: Upper bound of a single wait for exponential backoff, in seconds
    """

    max_attempts: int = 60
    timeout: float = 300.0
    interval: float = 1.0
    backoff: BackoffStrategy = BackoffStrategy.FIXED
    max_interval: float = 30.0

    def __post_init__(self) -> None:
        """Validates the poll policy bounds."""
        if self.max_attempts < 1:
            msg = "Poll policy max_attempts must be at least 1"
            raise ConfigurationError(msg)
        if self.timeout <= 0:
            msg = "Poll policy timeout must be positive"
            raise ConfigurationError(msg)
        if self.interval < 0 or self.max_interval < 0:
            msg = "Poll policy intervals cannot be negative"
            raise ConfigurationError(msg)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "PollPolicy":
        """Creates a PollPolicy from a configuration mapping, ignoring unset values."""
        kwargs: dict[str, Any] = {}
        for key, cast in (("max_attempts", int), ("timeout", float), ("interval", float), ("max_interval", float)):
            if data.get(key) is not None:
                kwargs[key] = cast(data[key])
        if data.get("backoff") is not None:
            backoff = data["backoff"]
            kwargs["backoff"] = backoff if isinstance(backoff, BackoffStrategy) else BackoffStrategy.from_string(backoff)
        return cls(**kwargs)


@dataclass(frozen=True)
class ResourceDescriptor:
    """
    Server representation of a team project or service endpoint.

    Attributes:
        kind: Resource kind the descriptor belongs to
        id: Server-assigned identifier
        name: Resource name
        url: Canonical REST URL of the resource
        raw: Full JSON body returned by the server
    """

    kind: ResourceKind
    id: str
    name: str
    url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_get_response(cls, kind: ResourceKind, data: dict[str, Any]) -> "ResourceDescriptor":
        """Creates a ResourceDescriptor from a TFS GET or POST response."""
        return cls(
            kind=kind,
            id=str(data["id"]),
            name=data.get("name", ""),
            url=data.get("url"),
            raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        """Returns a JSON-serializable summary of the descriptor."""
        return {"kind": self.kind.value, "id": self.id, "name": self.name, "url": self.url}


@dataclass(frozen=True)
class OperationStatus:
    """
    Status of an asynchronous TFS operation.

    Team project creation is tracked through an operations resource whose
    ``status`` is one of notStarted, queued, inProgress, cancelled, succeeded or
    failed. Service endpoints report readiness through ``operationStatus.state``,
    which is normalized to the same vocabulary.
    """

    SUCCEEDED: ClassVar[str] = "succeeded"
    FAILED: ClassVar[str] = "failed"
    ENDPOINT_STATES: ClassVar[dict[str, str]] = {
        "ready": "succeeded",
        "failed": "failed",
        "inprogress": "inProgress",
        "notstarted": "notStarted",
    }

    status: str
    url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == self.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == self.FAILED

    @property
    def is_terminal(self) -> bool:
        return self.succeeded or self.failed

    @classmethod
    def from_operation_response(cls, data: dict[str, Any]) -> "OperationStatus":
        """Creates an OperationStatus from a ``_apis/operations`` response."""
        return cls(status=data.get("status", ""), url=data.get("url"), raw=data)

    @classmethod
    def from_endpoint_response(cls, data: dict[str, Any]) -> "OperationStatus":
        """Creates an OperationStatus from a service endpoint response."""
        operation = data.get("operationStatus") or {}
        state = operation.get("state")
        if state:
            status = cls.ENDPOINT_STATES.get(state.lower(), state)
        else:
            # Older servers omit operationStatus for endpoints that are usable right away
            status = cls.SUCCEEDED if data.get("isReady", True) else "inProgress"
        return cls(status=status, url=data.get("url"), raw=data)


@dataclass(frozen=True)
class ProjectCreationRequest:
    """Payload for creating a Git team project."""

    name: str
    process_template_id: str = AGILE_PROCESS_TEMPLATE_ID

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "capabilities": {
                "versioncontrol": {"sourceControlType": "Git"},
                "processTemplate": {"templateTypeId": self.process_template_id},
            },
        }


@dataclass(frozen=True)
class DockerHostEndpointRequest:
    """Payload for a Docker host service endpoint secured with TLS client certificates."""

    ENDPOINT_NAME: ClassVar[str] = "Docker"

    docker_host: str
    ca_cert: str
    cert: str
    key: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.ENDPOINT_NAME,
            "type": ResourceKind.DOCKER_ENDPOINT.value,
            "url": self.docker_host,
            "data": {},
            "authorization": {
                "scheme": "Certificate",
                "parameters": {
                    "cacert": self.ca_cert,
                    "cert": self.cert,
                    "key": self.key,
                },
            },
        }


@dataclass(frozen=True)
class RegistryEndpointRequest:
    """Payload for a Docker registry service endpoint using username and password."""

    registry_id: str
    password: str | None = None
    email: str | None = None
    registry_url: str = DOCKER_HUB_REGISTRY_URL

    @staticmethod
    def endpoint_name(registry_id: str) -> str:
        """Name given to the registry endpoint created for a registry id."""
        return f"{registry_id} Docker Registry"

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.endpoint_name(self.registry_id),
            "type": ResourceKind.REGISTRY_ENDPOINT.value,
            "url": self.registry_url,
            "data": {"registrytype": "Others"},
            "authorization": {
                "scheme": "UsernamePassword",
                "parameters": {
                    "registry": self.registry_url,
                    "username": self.registry_id,
                    "password": self.password or "",
                    "email": self.email or "",
                },
            },
        }


@dataclass(frozen=False)
class ProvisionSettings:
    """
    Configuration for one provisioning run.

    Attributes:
        account: TFS collection URL or Azure DevOps organization name
        project_name: Team project to find or create
        pat: Personal access token; Azure identity is used when omitted
        docker_host: Docker host URL; no Docker endpoint is provisioned when empty
        docker_cert_path: Directory holding ca.pem, cert.pem and key.pem
        registry_id: Registry username; no registry endpoint is provisioned when empty
        registry_password: Registry password
        registry_email: Registry account email
        registry_url: Registry URL, defaults to Docker Hub
        process_template_id: Process template for new projects, defaults to Agile
        parallel_endpoints: Reconcile the two endpoints concurrently
        poll_policy: Retry policy for status polling
    """

    ENV_VARS: ClassVar[dict[str, tuple[str, ...]]] = {
        "account": ("TFS_ACCOUNT",),
        "pat": ("TFS_PAT", "AZURE_DEVOPS_EXT_PAT"),
        "project_name": ("TFS_PROJECT",),
        "docker_host": ("DOCKER_HOST",),
        "docker_cert_path": ("DOCKER_CERT_PATH",),
        "registry_id": ("DOCKER_REGISTRY_ID",),
        "registry_password": ("DOCKER_REGISTRY_PASSWORD",),
        "registry_email": ("DOCKER_REGISTRY_EMAIL",),
    }

    account: str
    project_name: str
    pat: str | None = None
    docker_host: str | None = None
    docker_cert_path: str | None = None
    registry_id: str | None = None
    registry_password: str | None = None
    registry_email: str | None = None
    registry_url: str = DOCKER_HUB_REGISTRY_URL
    process_template_id: str = AGILE_PROCESS_TEMPLATE_ID
    parallel_endpoints: bool = False
    poll_policy: PollPolicy = field(default_factory=PollPolicy)

    def __post_init__(self) -> None:
        """Validates required settings."""
        if not self.account:
            msg = "A TFS account or collection URL is required"
            raise ConfigurationError(msg)
        if not self.project_name:
            msg = "A team project name is required"
            raise ConfigurationError(msg)
        if self.docker_host and not self.docker_cert_path:
            msg = "docker_cert_path is required when docker_host is set"
            raise ConfigurationError(msg)
        if self.registry_id and not self.registry_password:
            logging.warning("model: registry '%s' configured without a password", self.registry_id)

    @property
    def wants_docker_endpoint(self) -> bool:
        return bool(self.docker_host)

    @property
    def wants_registry_endpoint(self) -> bool:
        return bool(self.registry_id)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "ProvisionSettings":
        """Creates settings from a mapping, ignoring unknown keys and unset values."""
        known = {f.name for f in fields(cls) if f.name != "poll_policy"}
        unknown = set(data) - known - {"poll"}
        if unknown:
            logging.warning("model: ignoring unknown settings: %s", ", ".join(sorted(unknown)))

        kwargs = {key: value for key, value in data.items() if key in known and value is not None}
        poll = data.get("poll")
        if isinstance(poll, PollPolicy):
            kwargs["poll_policy"] = poll
        elif poll:
            if not isinstance(poll, dict):
                msg = "The 'poll' setting must be a mapping"
                raise ConfigurationError(msg)
            kwargs["poll_policy"] = PollPolicy.from_mapping(poll)
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def load_yaml(cls, path: str | Path) -> dict[str, Any]:
        """Loads a YAML settings file into a mapping."""
        try:
            with Path(path).expanduser().open(encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except OSError as e:
            msg = f"Unable to read configuration file: {path}"
            raise ConfigurationError(msg) from e
        except yaml.YAMLError as e:
            msg = f"Error parsing YAML in {path}"
            raise ConfigurationError(msg) from e
        if not isinstance(data, dict):
            msg = f"Configuration file must contain a mapping: {path}"
            raise ConfigurationError(msg)
        return data

    @classmethod
    def load_environment(cls, environ: dict[str, str] | None = None) -> dict[str, str]:
        """Collects settings from environment variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for name, variables in cls.ENV_VARS.items():
            for variable in variables:
                if environ.get(variable):
                    values[name] = environ[variable]
                    break
        return values
