"""Application layer: CLI, process lifecycle and the HTTP surface."""

from __future__ import annotations

from onrender_pinger.app.cli import cli
from onrender_pinger.app.runner import ApplicationRunner
from onrender_pinger.app.server import create_app

__all__ = [
    "cli",
    "ApplicationRunner",
    "create_app",
]
