"""Docker TLS certificate loading.

A Docker host service endpoint authenticates with the client certificate
material Docker itself uses: ``ca.pem``, ``cert.pem`` and ``key.pem`` from the
directory pointed to by ``DOCKER_CERT_PATH``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from tfs_provisioner.core.exceptions import CertificateError


@dataclass(frozen=True)
class DockerCertificates:
    """PEM contents of the Docker TLS material."""

    ca_cert: str
    cert: str
    key: str

    def __repr__(self) -> str:
        return "DockerCertificates(ca_cert=..., cert=..., key='***')"


def _read_pem(directory: Path, filename: str) -> str:
    path = directory / filename
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise CertificateError(str(path)) from e


def load_docker_certificates(cert_path: str | Path) -> DockerCertificates:
    """Reads ca.pem, cert.pem and key.pem from a Docker certificate directory."""
    directory = Path(cert_path).expanduser()
    logging.debug("certificates: loading Docker TLS material from %s", directory)
    return DockerCertificates(
        ca_cert=_read_pem(directory, "ca.pem"),
        cert=_read_pem(directory, "cert.pem"),
        key=_read_pem(directory, "key.pem"),
    )
