"""CLI package for droidctl.

This package contains the Typer application and all subcommands.
"""

from droidctl.cli.main import app

__all__ = ["app"]
