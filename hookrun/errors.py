"""Exception taxonomy for hook discovery and dispatch.

Start failures are deliberately absent: a hook that cannot be launched is
folded into the aggregated exit code and the batch carries on.
"""


class HookError(Exception):
    """Base class for errors that stop a hook run."""


class UserError(HookError):
    """A request the user can fix (missing hook, unreadable stdin file)."""


class ConfigError(HookError):
    """A configuration value could not be interpreted."""


class ConfigInconsistency(HookError):
    """An event mapping exists for a hook whose command mapping is missing."""


class ContractViolation(HookError):
    """The caller broke the calling contract (e.g. two stdin sources)."""


class InternalInvariantBreach(HookError):
    """Discovery and dispatch disagreed about the state of the world."""
