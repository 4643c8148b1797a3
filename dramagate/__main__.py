"""Main entry point when executing dramagate as a package.

This allows running the package using python -m dramagate.
"""

from dramagate.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
