"""CLI commands for droidctl.

This package contains all subcommand implementations.
"""

from droidctl.cli.commands import actions, adb, config, devices, history, info, packages

__all__ = ["actions", "adb", "config", "devices", "history", "info", "packages"]
