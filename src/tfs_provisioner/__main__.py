"""This module serves as the entry point for the tfs_provisioner application.

It imports the main function from the tfs_provisioner.cli module and
executes it when the script is run as the main module.
"""

from tfs_provisioner.cli import main

if __name__ == "__main__":
    main()
