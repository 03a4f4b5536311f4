"""CLI package for Body Tracker

Commands for signing in, inspecting and clearing the stored session, and
running the API server.
"""

from cli.cli_app import BodyTrackerCLI
from cli.main import main

__all__ = [
    "BodyTrackerCLI",
    "main",
]
