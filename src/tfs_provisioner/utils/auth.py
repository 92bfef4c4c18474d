"""Credential derivation for TFS REST calls.

TFS and Azure DevOps accept a personal access token as the password of a Basic
authorization header with an empty user name. When no token is configured the
provisioner can fall back to an Azure AD bearer token obtained through
DefaultAzureCredential (managed identity, environment variables, Azure CLI, ...).

Example:
    ```python
    from tfs_provisioner.utils.auth import credential_from_pat, encode_pat

    encode_pat("token")  # "OnRva2Vu"
    credential_from_pat("token").header  # "Basic OnRva2Vu"
    ```
"""

import base64
import logging
from dataclasses import dataclass

from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential

from tfs_provisioner.core.exceptions import AuthenticationError

AZURE_DEVOPS_RESOURCE_ID = "499b84ac-1321-427f-aa17-267ca6975798"


def encode_pat(token: str) -> str:
    """Encodes a personal access token as a Basic authorization token with an empty user name."""
    if not token:
        raise AuthenticationError("A personal access token is required")
    return base64.b64encode(f":{token}".encode()).decode("ascii")


@dataclass(frozen=True)
class Credential:
    """Authorization credential attached to every request of a provisioning run."""

    scheme: str
    token: str

    @property
    def header(self) -> str:
        """Value of the Authorization header."""
        return f"{self.scheme} {self.token}"

    def __repr__(self) -> str:
        return f"Credential(scheme={self.scheme!r}, token='***')"


def credential_from_pat(token: str) -> Credential:
    """Builds a Basic credential from a personal access token."""
    return Credential(scheme="Basic", token=encode_pat(token))


def credential_from_azure_identity() -> Credential | None:
    """
    Retrieves a bearer credential using the DefaultAzureCredential.

    Returns:
        Credential: The bearer credential if a token was issued, otherwise None.
    """
    try:
        token = DefaultAzureCredential().get_token(f"{AZURE_DEVOPS_RESOURCE_ID}/.default").token
    except AzureError:
        logging.exception("auth: unable to retrieve an Azure AD token")
        return None
    return Credential(scheme="Bearer", token=token)
