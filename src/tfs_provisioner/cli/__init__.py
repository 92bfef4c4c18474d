"""Command line interface for TFS provisioning.

This subpackage provides the command-line interface components for the
provisioner, including argument parsing, configuration loading, printer
implementations, and execution coordination.

Modules:
    commands: CLI argument parsing, configuration and execution
    printer: Output formatting and display

Components:
    Command-line Processing:
        parse_args: Command-line arguments parser
        create_settings: Builds ProvisionSettings from config file, environment and args
        configure_logging: Sets log levels from verbosity flags
        run: Function to execute provisioning with parsed arguments
        main: CLI entry point function

    Output Formatters:
        ProvisioningPrinter: Abstract base printer class
        ProvisioningPlainPrinter: Simple text output format
        ProvisioningRichPrinter: Rich table console output
        ProvisioningJSONPrinter: Structured JSON output format

Example:
    Using from command-line:
    ```bash
    $ tfs-provisioner --account myorg --project aspDemo --registry-id myuser
    ```

    Programmatic usage of CLI components:
    ```python
    from tfs_provisioner.cli import parse_args, run
    import asyncio

    args = parse_args(["--account", "myorg", "--project", "aspDemo"])
    asyncio.run(run(args))
    ```
"""

from tfs_provisioner.cli.commands import (
    configure_logging,
    create_poll_policy,
    create_settings,
    main,
    parse_args,
    run,
)
from tfs_provisioner.cli.printer import (
    ProvisioningJSONPrinter,
    ProvisioningPlainPrinter,
    ProvisioningPrinter,
    ProvisioningRichPrinter,
)

__all__ = [  # noqa: RUF022
    # Command-line processing
    "configure_logging",
    "create_poll_policy",
    "create_settings",
    "parse_args",
    "run",
    "main",
    # Output formatters
    "ProvisioningJSONPrinter",
    "ProvisioningPlainPrinter",
    "ProvisioningPrinter",
    "ProvisioningRichPrinter",
]
