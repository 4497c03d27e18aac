"""Core probing, policy and scheduling logic.

This package provides:
- Target URL resolution (``targets``)
- Single-target probing (``probe``) and concurrent cycles (``cycle``)
- The notification decision (``policy``)
- Timer and manual triggering (``scheduler``)
- Layered configuration loading (``config``)
"""

from onrender_pinger.core.config import (
    ConfigSource,
    ConfigurationError,
    EnvironmentVariableError,
    PingerConfig,
    load_config,
    make_config_source,
)
from onrender_pinger.core.cycle import CycleRunner
from onrender_pinger.core.policy import NotificationPolicy, build_test_payload
from onrender_pinger.core.probe import DEFAULT_USER_AGENT, ProbeExecutor
from onrender_pinger.core.scheduler import (
    ManualTriggerGuard,
    ManualTriggerThrottledError,
    Scheduler,
)
from onrender_pinger.core.targets import is_valid_url, resolve_targets, split_list

__all__ = [
    # Configuration
    "ConfigSource",
    "ConfigurationError",
    "EnvironmentVariableError",
    "PingerConfig",
    "load_config",
    "make_config_source",
    # Probing
    "CycleRunner",
    "DEFAULT_USER_AGENT",
    "ProbeExecutor",
    "is_valid_url",
    "resolve_targets",
    "split_list",
    # Policy
    "NotificationPolicy",
    "build_test_payload",
    # Scheduling
    "ManualTriggerGuard",
    "ManualTriggerThrottledError",
    "Scheduler",
]
