"""Configuration system for onrender-pinger.

This module implements the configuration schema using Pydantic for
validation. Values are layered from four sources, lowest precedence first:

1. field defaults
2. an optional YAML file whose string values support ``${VAR}`` references
3. environment variables (``PING_URLS``, ``WEBHOOK_URLS``, ``PING_INTERVAL`` ...)
4. explicit overrides (CLI options)

Loading is cheap, so the running service re-reads configuration through a
:data:`ConfigSource` on every cycle, dispatch and status request.
"""

import os
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Annotated, Final, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Matches ${VARIABLE_NAME} where VARIABLE_NAME is upper-case letters, digits and underscores
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Environment variable name -> PingerConfig field name
ENV_FIELD_MAP: Final[Mapping[str, str]] = {
    "PING_URLS": "ping_urls",
    "WEBHOOK_URLS": "webhook_urls",
    "PING_INTERVAL": "ping_interval_seconds",
    "NOTIFY_SUCCESS": "notify_success",
    "PORT": "port",
    "HOST": "host",
    "LOG_LEVEL": "log_level",
    "STARTUP_DELAY": "startup_delay_seconds",
    "MANUAL_PING_MIN_INTERVAL": "manual_min_interval_seconds",
    "PROBE_TIMEOUT": "probe_timeout_seconds",
    "TRIGGER_ON_STATUS": "trigger_on_status",
    "MAX_CONCURRENCY": "max_concurrency",
    "DRY_RUN": "dry_run",
}

# Flags are enabled only by the literal string "true" (any case)
_FLAG_FIELDS: Final[frozenset[str]] = frozenset({"notify_success", "trigger_on_status", "dry_run"})

# An empty value for these variables still overrides lower layers
_LIST_FIELDS: Final[frozenset[str]] = frozenset({"ping_urls", "webhook_urls"})


class PingerConfig(BaseModel):
    """Validated runtime configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ping_urls: Annotated[
        str,
        Field(description="Comma-separated list of URLs to probe every cycle"),
    ] = ""
    webhook_urls: Annotated[
        str,
        Field(description="Comma-separated list of webhook endpoints to notify"),
    ] = ""
    ping_interval_seconds: Annotated[
        int,
        Field(
            gt=0,
            description="Seconds between automatic cycles",
        ),
    ] = 900
    notify_success: Annotated[
        bool,
        Field(description="Send a notification when every target responds"),
    ] = False
    port: Annotated[
        int,
        Field(
            ge=1,
            le=65535,
            description="Port for the status and manual-trigger HTTP surface",
        ),
    ] = 3000
    host: Annotated[
        str,
        Field(min_length=1, description="Interface the HTTP surface binds to"),
    ] = "0.0.0.0"
    log_level: Annotated[
        LogLevel,
        Field(description="Root logging level"),
    ] = "INFO"
    startup_delay_seconds: Annotated[
        float,
        Field(
            ge=0,
            description="Delay before the first automatic cycle",
        ),
    ] = 5.0
    manual_min_interval_seconds: Annotated[
        float,
        Field(
            ge=0,
            description="Minimum spacing between manual triggers",
        ),
    ] = 60.0
    probe_timeout_seconds: Annotated[
        float,
        Field(
            gt=0,
            description="Per-probe request timeout",
        ),
    ] = 30.0
    trigger_on_status: Annotated[
        bool,
        Field(description="Also start a guarded manual cycle on GET /"),
    ] = False
    max_concurrency: Annotated[
        int | None,
        Field(
            gt=0,
            description="Upper bound on concurrent probes per cycle (unbounded when unset)",
        ),
    ] = None
    dry_run: Annotated[
        bool,
        Field(description="Log rendered webhook payloads instead of sending them"),
    ] = False


type ConfigSource = Callable[[], PingerConfig]


class EnvironmentVariableError(Exception):
    """Raised when a ``${VAR}`` reference names an unset environment variable.

    The message names the variable, never a value.
    """


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails.

    Messages are multi-line and actionable: they name the failing source and
    list every invalid field.
    """


def resolve_env_var(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Resolve ``${VAR}`` references in a string value.

    Args:
        value: String potentially containing environment variable references
        environ: Variable mapping to resolve against (defaults to ``os.environ``)

    Raises:
        EnvironmentVariableError: If a referenced variable is not set

    Examples:
        >>> resolve_env_var("${HOOK}/extra", {"HOOK": "https://example.com"})
        'https://example.com/extra'
        >>> resolve_env_var("no variables here", {})
        'no variables here'
    """
    env = os.environ if environ is None else environ

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = env.get(var_name)
        if env_value is None:
            msg = (
                f"Required environment variable '{var_name}' is not set. "
                f"Please set this variable before starting the application."
            )
            raise EnvironmentVariableError(msg)
        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def resolve_env_vars_in_dict(
    data: Mapping[str, object],
    environ: Mapping[str, str] | None = None,
) -> dict[str, object]:
    """Recursively resolve environment variables in a dictionary.

    Nested dictionaries and lists are walked; non-string values are kept
    as-is. The ``object`` typing reflects unvalidated YAML data.

    Raises:
        EnvironmentVariableError: If a referenced variable is not set
    """
    result: dict[str, object] = {}

    for key, value in data.items():
        if isinstance(value, str):
            result[key] = resolve_env_var(value, environ)
        elif isinstance(value, dict):
            result[key] = resolve_env_vars_in_dict(value, environ)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
        elif isinstance(value, list):
            resolved_list: list[object] = []
            for item in value:  # pyright: ignore[reportUnknownVariableType]  # YAML list items
                if isinstance(item, str):
                    resolved_list.append(resolve_env_var(item, environ))
                elif isinstance(item, dict):
                    resolved_list.append(resolve_env_vars_in_dict(item, environ))  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
                else:
                    resolved_list.append(item)  # pyright: ignore[reportUnknownArgumentType]  # YAML primitives
            result[key] = resolved_list
        else:
            result[key] = value

    return result


def _load_yaml_file(config_path: Path, environ: Mapping[str, str] | None) -> dict[str, object]:
    if not config_path.exists():
        msg = (
            f"Configuration file not found: {config_path}\n"
            f"Please create a configuration file at this location or omit --config."
        )
        raise ConfigurationError(msg)

    try:
        with config_path.open("r") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = (
            f"Failed to parse YAML configuration file: {config_path}\n"
            f"YAML parsing error: {e}\n"
            f"Please check the file for syntax errors."
        )
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Failed to read configuration file: {config_path}\nError: {e}\nPlease check file permissions."
        raise ConfigurationError(msg) from e

    # An empty file is an empty mapping
    if raw_data is None:
        return {}

    if not isinstance(raw_data, dict):
        msg = (
            f"Invalid configuration file format: {config_path}\n"
            f"Expected YAML dictionary at root level, got: {type(raw_data).__name__}\n"
            f"Configuration file must contain key-value pairs."
        )
        raise ConfigurationError(msg)

    try:
        return resolve_env_vars_in_dict(raw_data, environ)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    except EnvironmentVariableError as e:
        msg = (
            f"Environment variable resolution failed in: {config_path}\n"
            f"{e}\n"
            f"Set the required environment variable before starting the application."
        )
        raise ConfigurationError(msg) from e


def values_from_environ(environ: Mapping[str, str]) -> dict[str, object]:
    """Extract configuration values from environment-style variables.

    Flag variables are true only for the literal ``"true"`` (any case); any
    other value turns the flag off. Blank values for non-list options are
    treated as unset.

    Examples:
        >>> values_from_environ({"PING_URLS": "https://a.test", "NOTIFY_SUCCESS": "TRUE"})
        {'ping_urls': 'https://a.test', 'notify_success': True}
    """
    values: dict[str, object] = {}
    for env_name, field_name in ENV_FIELD_MAP.items():
        raw = environ.get(env_name)
        if raw is None:
            continue
        if field_name in _LIST_FIELDS:
            values[field_name] = raw
            continue
        stripped = raw.strip()
        if not stripped:
            continue
        if field_name in _FLAG_FIELDS:
            values[field_name] = stripped.lower() == "true"
        elif field_name == "log_level":
            values[field_name] = stripped.upper()
        else:
            values[field_name] = stripped
    return values


def load_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> PingerConfig:
    """Load, layer and validate configuration.

    Args:
        config_path: Optional YAML file
        environ: Environment mapping (defaults to ``os.environ``)
        overrides: Highest-precedence values; ``None`` entries are ignored

    Returns:
        Validated PingerConfig instance

    Raises:
        ConfigurationError: If the file cannot be loaded or any value is invalid

    Examples:
        >>> config = load_config(environ={"PING_URLS": "https://a.test", "PING_INTERVAL": "600"})
        >>> config.ping_interval_seconds
        600
    """
    env = os.environ if environ is None else environ

    merged: dict[str, object] = {}
    if config_path is not None:
        merged.update(_load_yaml_file(config_path, env))
    merged.update(values_from_environ(env))
    if overrides:
        merged.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return PingerConfig.model_validate(merged)
    except ValidationError as e:
        error_lines = ["Configuration validation failed:", ""]
        for error in e.errors():
            field_path = " → ".join(str(loc) for loc in error["loc"])
            error_lines.append(f"  Field: {field_path}")
            error_lines.append(f"  Error: {error['msg']}")
            error_lines.append(f"  Type: {error['type']}")
            error_lines.append("")

        if config_path is not None:
            error_lines.append(f"Configuration file: {config_path}")
        error_lines.append("Please fix the above errors and try again.")

        msg = "\n".join(error_lines)
        raise ConfigurationError(msg) from e


def make_config_source(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> ConfigSource:
    """Build a :data:`ConfigSource` that reloads configuration on every call."""

    def source() -> PingerConfig:
        return load_config(config_path, environ=environ, overrides=overrides)

    return source
