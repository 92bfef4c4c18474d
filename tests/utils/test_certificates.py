from pathlib import Path

import pytest

from tfs_provisioner.core.exceptions import CertificateError, ConfigurationError
from tfs_provisioner.utils.certificates import load_docker_certificates


def write_certificates(directory: Path) -> None:
    """Writes fake Docker TLS material to a directory."""
    (directory / "ca.pem").write_text("ca-contents", encoding="utf-8")
    (directory / "cert.pem").write_text("cert-contents", encoding="utf-8")
    (directory / "key.pem").write_text("key-contents", encoding="utf-8")


def test_load_docker_certificates(tmp_path: Path) -> None:
    """Test that all three PEM files are read."""
    write_certificates(tmp_path)

    certificates = load_docker_certificates(str(tmp_path))

    if certificates.ca_cert != "ca-contents":
        pytest.fail(f"Unexpected CA certificate: {certificates.ca_cert}")
    if certificates.cert != "cert-contents":
        pytest.fail(f"Unexpected certificate: {certificates.cert}")
    if certificates.key != "key-contents":
        pytest.fail(f"Unexpected key: {certificates.key}")
    if "key-contents" in repr(certificates):
        pytest.fail("Private key leaked in repr")


def test_load_docker_certificates_missing_file(tmp_path: Path) -> None:
    """Test that a missing PEM file raises CertificateError naming the file."""
    write_certificates(tmp_path)
    (tmp_path / "key.pem").unlink()

    with pytest.raises(CertificateError) as exc_info:
        load_docker_certificates(tmp_path)

    if not exc_info.value.path.endswith("key.pem"):
        pytest.fail(f"Expected the missing key.pem to be reported, got {exc_info.value.path}")
    if not isinstance(exc_info.value, ConfigurationError):
        pytest.fail("Expected CertificateError to be a ConfigurationError")
