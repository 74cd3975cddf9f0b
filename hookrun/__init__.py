"""hookrun - run configured and hooks-directory hooks for an event."""

__version__ = "0.1.0"

from .config import ConfigManager
from .errors import (
    ConfigError,
    ConfigInconsistency,
    ContractViolation,
    HookError,
    InternalInvariantBreach,
    UserError,
)
from .hooks import HookContext, HookRunner, RunOptions, list_hooks_for_event, run_event

__all__ = [
    "ConfigError",
    "ConfigInconsistency",
    "ConfigManager",
    "ContractViolation",
    "HookContext",
    "HookError",
    "HookRunner",
    "InternalInvariantBreach",
    "RunOptions",
    "UserError",
    "list_hooks_for_event",
    "run_event",
]
