"""Utility functions and components for the TFS provisioner.

This package provides supporting utilities for deriving request credentials and
reading the Docker TLS material needed by Docker host service endpoints.

Components:
    encode_pat: Encodes a personal access token for Basic authentication
    Credential: Authorization credential attached to every request
    load_docker_certificates: Reads ca.pem, cert.pem and key.pem from a directory

Example:
    ```python
    from tfs_provisioner.utils import credential_from_pat, load_docker_certificates

    credential = credential_from_pat("token")
    certificates = load_docker_certificates("~/.docker")
    ```
"""

from .auth import Credential, credential_from_azure_identity, credential_from_pat, encode_pat
from .certificates import DockerCertificates, load_docker_certificates

__all__ = [
    "Credential",
    "DockerCertificates",
    "credential_from_azure_identity",
    "credential_from_pat",
    "encode_pat",
    "load_docker_certificates",
]
