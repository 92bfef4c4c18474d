r"""Command-line interface for TFS provisioning.

This module provides the command-line interface for the provisioner. It handles
argument parsing, merges configuration from a YAML file, the environment and
the command line, configures logging and runs the provisioning.

Key Components:
    parse_args: Handles CLI argument parsing
    create_settings: Builds ProvisionSettings from CLI args, environment and config file
    create_poll_policy: Builds the PollPolicy overrides from CLI args
    configure_logging: Sets log levels from verbosity flags or environment
    run: Orchestrates a provisioning run and prints the result
    main: Entry point for CLI execution

Configuration Precedence (lowest to highest):
    - YAML file passed with --config
    - Environment variables (TFS_ACCOUNT, TFS_PAT, TFS_PROJECT, DOCKER_HOST, ...)
    - Command-line flags

Output Formats:
    - plain: Simple text output suitable for logs and terminals
    - rich: Colorized table output
    - json: Structured JSON output for programmatic consumption

CLI Usage:
    ```bash
    # Find or create a team project
    $ tfs-provisioner \
        --account http://localhost:8080/tfs/DefaultCollection \
        --pat mytoken \
        --project aspDemo

    # Provision Docker endpoints as well, polling for at most two minutes
    $ tfs-provisioner \
        --config provision.yml \
        --docker-host tcp://dockerhost:2376 \
        --docker-cert-path ~/.docker \
        --poll-timeout 120 \
        -vv
    ```

Raises:
    ConfigurationError: When settings are missing or invalid
    AuthenticationError: When TFS authentication fails
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any

from tfs_provisioner import __version__
from tfs_provisioner.core.client import TfsClient
from tfs_provisioner.core.exceptions import AuthenticationError, TfsProvisionerError
from tfs_provisioner.core.models import PollPolicy, ProvisionSettings
from tfs_provisioner.core.provisioner import Provisioner
from tfs_provisioner.utils.auth import credential_from_azure_identity

from .printer import ProvisioningJSONPrinter, ProvisioningPlainPrinter, ProvisioningRichPrinter

PRINTERS = {
    "plain": ProvisioningPlainPrinter,
    "rich": ProvisioningRichPrinter,
    "json": ProvisioningJSONPrinter,
}

# CLI argument name -> settings field
ARGUMENT_SETTINGS = {
    "account": "account",
    "pat": "pat",
    "project": "project_name",
    "docker_host": "docker_host",
    "docker_cert_path": "docker_cert_path",
    "registry_id": "registry_id",
    "registry_password": "registry_password",
    "registry_email": "registry_email",
    "registry_url": "registry_url",
    "process_template_id": "process_template_id",
}


def create_poll_policy(args: argparse.Namespace) -> dict[str, Any]:
    """Collects poll policy overrides from CLI arguments."""
    overrides = {
        "max_attempts": getattr(args, "poll_max_attempts", None),
        "interval": getattr(args, "poll_interval", None),
        "timeout": getattr(args, "poll_timeout", None),
        "backoff": getattr(args, "poll_backoff", None),
    }
    return {key: value for key, value in overrides.items() if value is not None}


def create_settings(args: argparse.Namespace, environ: dict[str, str] | None = None) -> ProvisionSettings:
    """Creates ProvisionSettings from the config file, the environment and CLI arguments."""
    data: dict[str, Any] = {}
    if getattr(args, "config", None):
        data.update(ProvisionSettings.load_yaml(args.config))
    data.update(ProvisionSettings.load_environment(environ))

    for argument, setting in ARGUMENT_SETTINGS.items():
        value = getattr(args, argument, None)
        if value is not None:
            data[setting] = value
    if getattr(args, "parallel_endpoints", False):
        data["parallel_endpoints"] = True

    overrides = create_poll_policy(args)
    if overrides:
        configured = data.get("poll")
        data["poll"] = {**(configured if isinstance(configured, dict) else {}), **overrides}

    return ProvisionSettings.from_mapping(data)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Find or create a TFS team project and its Docker service endpoints",
    )

    # TFS connection
    parser.add_argument("--account", help="Azure DevOps organization name or TFS collection URL")
    parser.add_argument("--pat", help="Personal access token (Azure identity is used when omitted)")
    parser.add_argument("--config", help="YAML file with provisioning settings")

    # Team project
    project_group = parser.add_argument_group("project", "Team project configuration")
    project_group.add_argument("--project", help="Team project name")
    project_group.add_argument(
        "--process-template-id",
        help="Process template for new projects (default: Agile)",
    )

    # Docker host endpoint
    docker_group = parser.add_argument_group("docker", "Docker host service endpoint (skipped when no host is given)")
    docker_group.add_argument("--docker-host", help="Docker host URL, e.g. tcp://dockerhost:2376")
    docker_group.add_argument("--docker-cert-path", help="Directory containing ca.pem, cert.pem and key.pem")

    # Docker registry endpoint
    registry_group = parser.add_argument_group(
        "registry",
        "Docker registry service endpoint (skipped when no registry id is given)",
    )
    registry_group.add_argument("--registry-id", help="Docker registry user name")
    registry_group.add_argument("--registry-password", help="Docker registry password")
    registry_group.add_argument("--registry-email", help="Docker registry email")
    registry_group.add_argument("--registry-url", help="Docker registry URL (default: Docker Hub)")
    registry_group.add_argument(
        "--parallel-endpoints",
        action="store_true",
        help="Provision the Docker host and registry endpoints concurrently",
    )

    # Polling configuration
    poll_group = parser.add_argument_group("polling", "Status polling configuration")
    poll_group.add_argument("--poll-max-attempts", type=int, help="Maximum number of status checks (default: 60)")
    poll_group.add_argument("--poll-interval", type=float, help="Seconds between status checks (default: 1)")
    poll_group.add_argument("--poll-timeout", type=float, help="Overall polling deadline in seconds (default: 300)")
    poll_group.add_argument(
        "--poll-backoff",
        choices=["fixed", "exponential"],
        help="Wait strategy between status checks (default: fixed)",
    )

    # Output configuration
    output_group = parser.add_argument_group("output", "Output configuration")
    output_group.add_argument(
        "--output-format",
        choices=list(PRINTERS),
        default="rich",
        help="Output format for results (default: rich)",
    )
    output_group.add_argument("--output-file", default=None, help="Write results to a file instead of stdout")

    # Add verbosity control
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress all non-essential output",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase verbosity (can be used multiple times)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"{__version__}",
        help="Show the version of the tfs-provisioner",
    )

    return parser.parse_args(argv)


def configure_logging(args: argparse.Namespace) -> int:
    """Configures logging from verbosity flags or the TFS_PROVISIONER_LOG_LEVEL variable."""
    # First check command-line args
    if getattr(args, "quiet", False):
        log_level = logging.CRITICAL
    elif getattr(args, "verbose", 0) > 0:
        # Map verbosity count to log levels
        log_level = {
            1: logging.WARNING,
            2: logging.INFO,
            3: logging.DEBUG,
        }.get(min(args.verbose, 3), logging.DEBUG)
    else:
        # Then check environment variable
        env_level = os.environ.get("TFS_PROVISIONER_LOG_LEVEL", "INFO").upper()
        log_level = getattr(logging, env_level, logging.INFO)

    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    # Suppress third-party loggers
    logging.getLogger("azure").setLevel(logging.ERROR)
    logging.getLogger("aiohttp").setLevel(logging.ERROR)
    logging.getLogger("urllib3").setLevel(logging.ERROR)
    return log_level


async def run(args: argparse.Namespace) -> None:
    """Run the provisioner with CLI arguments."""
    settings = create_settings(args)

    credential = None
    if not settings.pat:
        # DefaultAzureCredential may block on the Azure CLI; keep it off the event loop
        credential = await asyncio.to_thread(credential_from_azure_identity)
        if credential is None:
            raise AuthenticationError

    async with TfsClient(settings.account, pat=settings.pat, credential=credential) as client:
        result = await Provisioner(client, settings).provision()

    printer = PRINTERS[args.output_format](result)
    printer.print(output_file=args.output_file)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = parse_args(argv)
    configure_logging(args)

    try:
        asyncio.run(run(args))
    except TfsProvisionerError as e:
        # To get the full traceback run with -vvv
        logging.critical("%s", e, exc_info=logging.getLogger().isEnabledFor(logging.DEBUG))
        sys.exit(1)
