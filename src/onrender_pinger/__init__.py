"""OnRender Pinger - periodic uptime pinger with webhook alerts.

This package probes a configured list of HTTP endpoints on a fixed
schedule, keeping free-tier services warm, and forwards aggregated status
notifications to Discord, Slack or generic JSON webhooks.
"""

from onrender_pinger.__main__ import main

__all__ = ["main"]
