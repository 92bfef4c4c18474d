"""Printer module for provisioning results.

This module renders the outcome of a provisioning run in different output
formats. All printers share the stream handling of ProvisioningPrinter and
differ only in how they lay out the provisioned resources.

Key Components:
    ProvisioningPrinter: Abstract base class defining the output contract and stream handling
    ProvisioningPlainPrinter: Plain text output for logs and terminals
    ProvisioningRichPrinter: Rich console table
    ProvisioningJSONPrinter: Structured JSON for programmatic consumption

Example:
    ```python
    from tfs_provisioner.cli.printer import ProvisioningJSONPrinter, ProvisioningRichPrinter

    ProvisioningRichPrinter(result).print()
    ProvisioningJSONPrinter(result).print(output_file="provisioning.json")
    ```
"""

import json
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.table import Table

from tfs_provisioner.core.models import ResourceDescriptor, ResourceKind
from tfs_provisioner.core.provisioner import ProvisioningResult

NOT_REQUESTED = "not requested"


class ProvisioningPrinter(ABC):
    """Base printer with required type hints."""

    result: ProvisioningResult
    _output: TextIO | None = None

    def __init__(self, result: ProvisioningResult) -> None:
        """Initialize printer with a provisioning result."""
        self.result = result

    def print(self, output_file: str | None = None) -> None:
        """
        Print the provisioning result to the given output file.

        Args:
            output_file: Path to output file, or None for stdout
        """
        if output_file:
            with Path(output_file).open("w", encoding="utf-8") as output:
                self._output = output
                self._print_content()
        else:
            # Don't close stdout
            self._output = sys.stdout
            self._print_content()

    def _resources(self) -> list[tuple[ResourceKind, ResourceDescriptor | None]]:
        return [
            (ResourceKind.PROJECT, self.result.project),
            (ResourceKind.DOCKER_ENDPOINT, self.result.docker_endpoint),
            (ResourceKind.REGISTRY_ENDPOINT, self.result.registry_endpoint),
        ]

    @abstractmethod
    def _print_content(self) -> None:
        """Print content to the configured output stream."""

    @abstractmethod
    def _write(self, content: str | Table | dict) -> None:
        """
        Write content to configured output stream.

        Args:
            content: Content to write (string, Table, or dictionary)
        """


class ProvisioningPlainPrinter(ProvisioningPrinter):
    """Provisioning result printer with plain text output."""

    def _write(self, content: str = "") -> None:
        """Write content to configured output."""
        print(content, file=self._output)

    def _print_content(self) -> None:
        self._write("Provisioned resources")
        for kind, descriptor in self._resources():
            if descriptor is None:
                self._write(f"  {kind.label}: {NOT_REQUESTED}")
            else:
                self._write(f"  {kind.label}: {descriptor.name} ({descriptor.id})")


class ProvisioningRichPrinter(ProvisioningPrinter):
    """Provisioning result printer with rich console output."""

    def _write(self, content: str | Table) -> None:
        """Write content to configured output."""
        Console(file=self._output).print(content)

    def _print_content(self) -> None:
        table = Table(title="Provisioned Resources", show_header=True, header_style="bold")
        table.add_column("Resource")
        table.add_column("Name")
        table.add_column("ID")
        table.add_column("URL", overflow="fold")

        for kind, descriptor in self._resources():
            if descriptor is None:
                table.add_row(kind.label, f"[dim]{NOT_REQUESTED}[/dim]", "", "")
            else:
                table.add_row(kind.label, f"[green]{descriptor.name}[/green]", descriptor.id, descriptor.url or "")

        self._write(table)


class ProvisioningJSONPrinter(ProvisioningPrinter):
    """Provisioning result printer with JSON output."""

    def _write(self, content: dict) -> None:
        """Write JSON content to configured output."""
        json.dump(content, self._output, indent=2)
        self._output.write("\n")

    def _print_content(self) -> None:
        self._write(self.result.to_dict())
