"""Main entry point when executing nanocache as a package.

This allows running the package using python -m nanocache.
"""

from nanocache.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
