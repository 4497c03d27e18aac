"""Application entry point for onrender-pinger.

Runs the click command; ``python -m onrender_pinger`` and the
``onrender-pinger`` console script are equivalent.

Exit Codes:
    0: Clean shutdown, or a completed ``--once`` cycle
    1: Configuration error (including no valid URL configured)
"""

from __future__ import annotations

from onrender_pinger.app.cli import cli

__all__ = ["main"]


def main() -> None:
    """Main entry point for onrender-pinger."""
    cli(prog_name="onrender-pinger")


if __name__ == "__main__":
    main()
