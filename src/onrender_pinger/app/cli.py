"""Command-line interface for OnRender Pinger."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click

from onrender_pinger.app.runner import EXIT_CONFIG_ERROR, ApplicationRunner
from onrender_pinger.core.config import ConfigurationError

try:
    __version__ = version("onrender-pinger")
except PackageNotFoundError:
    __version__ = "unknown"

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def validate_config_path(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: Path | None,
) -> Path | None:
    """Validate configuration file path.

    Raises:
        click.BadParameter: If the path is a directory or not a YAML file
    """
    if value is None:
        return value

    if value.exists() and value.is_dir():
        raise click.BadParameter("Configuration path must be a file, not a directory")

    valid_extensions = {".yaml", ".yml"}
    if value.suffix.lower() not in valid_extensions:
        extensions_str = ", ".join(sorted(valid_extensions))
        raise click.BadParameter(f"Invalid configuration file extension. Supported extensions: {extensions_str}")

    return value


def validate_log_level(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: str | None,
) -> str | None:
    """Validate and normalize log level.

    Returns:
        Normalized log level (uppercase), or None when not given

    Raises:
        click.BadParameter: If validation fails
    """
    if value is None:
        return value

    normalized_value = value.upper().strip()
    if normalized_value not in VALID_LOG_LEVELS:
        raise click.BadParameter(
            f'Invalid log level "{value}". Valid options: {", ".join(sorted(VALID_LOG_LEVELS))}'
        )

    return normalized_value


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default=None,
    callback=validate_config_path,
    help="Optional YAML configuration file. Environment variables override its values.",
)
@click.option(
    "--log-level",
    "-l",
    type=str,
    default=None,
    callback=validate_log_level,
    help="Logging verbosity level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    default=None,
    help="Port for the status and manual-trigger HTTP server",
)
@click.option(
    "--interval",
    "-i",
    type=click.IntRange(min=1),
    default=None,
    help="Seconds between automatic ping cycles",
)
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    help="Log webhook payloads instead of sending them",
)
@click.option(
    "--once",
    "-o",
    is_flag=True,
    help="Run a single ping cycle and exit (no HTTP server)",
)
@click.version_option(version=__version__, prog_name="OnRender Pinger")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    log_level: str | None,
    port: int | None,
    interval: int | None,
    dry_run: bool,
    once: bool,
) -> None:
    """OnRender Pinger - keep services warm and alert when they go down.

    Probes every URL in PING_URLS on a fixed interval and posts alerts to
    the Discord, Slack or generic webhooks listed in WEBHOOK_URLS.

    Examples:

        # Run with environment configuration
        PING_URLS=https://app.onrender.com onrender-pinger

        # Use a config file and a 10 minute interval
        onrender-pinger --config pinger.yaml --interval 600

        # Probe once, log webhook payloads instead of sending them
        onrender-pinger --once --dry-run
    """
    runner = ApplicationRunner(
        config_path=config,
        dry_run=dry_run,
        log_level=log_level,
        port=port,
        interval_seconds=interval,
        run_once=once,
    )

    try:
        exit_code = runner.run()
    except ConfigurationError as exc:
        click.echo(f"Configuration error:\n{exc}", err=True)
        ctx.exit(EXIT_CONFIG_ERROR)
    except KeyboardInterrupt:
        click.echo("\nShutting down gracefully...", err=True)
    else:
        ctx.exit(exit_code)
