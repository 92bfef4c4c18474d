"""Custom exceptions for TFS provisioning.

This module defines the exception hierarchy used throughout the provisioner.
Reconciliation failures are split into distinct kinds so that callers can branch
on the type of failure instead of matching on message strings.

Exception Categories:
    Authentication: Errors related to TFS / Azure DevOps authentication
    Configuration: Errors related to invalid or missing configuration values
    Reconciliation: Errors raised while finding, creating, polling or fetching
        a resource

Exception Hierarchy:
    TfsProvisionerError
    ├── AuthenticationError
    ├── ConfigurationError
    │   └── CertificateError
    └── ReconciliationError
        ├── TransportFailure
        ├── UnexpectedStatusCode
        ├── OperationFailed
        └── PollTimeout

Usage:
    ```python
    from tfs_provisioner.core.exceptions import (
        OperationFailed,
        PollTimeout,
        TfsProvisionerError,
    )

    try:
        project = await reconciler.reconcile()
    except OperationFailed as e:
        print(f"Server rejected the operation: {e.status.raw}")
    except PollTimeout:
        print("Server never finished the operation")
    except TfsProvisionerError as e:
        print(f"Error occurred: {e}")
    ```

Note:
    A reconciler whose optional inputs are absent returns ``None``; that is not
    an error and no exception exists for it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tfs_provisioner.core.models import OperationStatus, ResourceKind


class TfsProvisionerError(Exception):
    """Base exception for the TFS provisioner."""


class AuthenticationError(TfsProvisionerError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Failed to authenticate with TFS") -> None:
        super().__init__(message)


class ConfigurationError(TfsProvisionerError):
    """Raised when the provisioning configuration is invalid."""

    def __init__(self, message: str = "Invalid provisioning configuration") -> None:
        super().__init__(message)


class CertificateError(ConfigurationError):
    """Raised when Docker TLS certificates cannot be read."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Unable to read Docker certificate: {path}")
        self.path = path


class ReconciliationError(TfsProvisionerError):
    """Base class for errors raised during a find-or-create reconciliation."""

    kind: ResourceKind | None = None


class TransportFailure(ReconciliationError):
    """Raised when TFS cannot be reached."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        reason = type(cause).__name__ if cause is not None else "unknown error"
        super().__init__(f"Failed to communicate with TFS ({reason}): {url}")
        self.url = url
        self.cause = cause


class UnexpectedStatusCode(ReconciliationError):
    """Raised when TFS answers with a status code the operation cannot accept."""

    def __init__(self, status: int, url: str, message: str | None = None) -> None:
        super().__init__(message or f"Unexpected status code {status} from {url}")
        self.status = status
        self.url = url


class OperationFailed(ReconciliationError):
    """Raised when a polled operation reports the terminal status 'failed'."""

    def __init__(self, status: OperationStatus) -> None:
        super().__init__(f"Operation failed: {status.url or 'unknown operation'}")
        self.status = status


class PollTimeout(ReconciliationError):
    """Raised when an operation does not reach a terminal status within the poll policy."""

    def __init__(self, url: str, attempts: int, last_status: OperationStatus | None = None) -> None:
        last = last_status.status if last_status is not None else "unknown"
        super().__init__(f"Operation did not complete after {attempts} attempts (last status: {last}): {url}")
        self.url = url
        self.attempts = attempts
        self.last_status = last_status
