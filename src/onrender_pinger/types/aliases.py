"""Type aliases using modern PEP 695 syntax.

This module defines type aliases for the callables that feed per-cycle
configuration snapshots into the core components.
"""

from collections.abc import Callable

# Zero-argument callable returning a raw comma-delimited list.
# Invoked on every cycle/dispatch so configuration is never cached.
type TextSource = Callable[[], str]

# Factory for per-cycle correlation identifiers
type CorrelationIDFactory = Callable[[], str]
