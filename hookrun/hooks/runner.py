"""Hook runner: discover the hooks for an event and run them in parallel.

Hooks come from two places: configured ``hook.<name>.event`` mappings and
the conventional ``<hooks dir>/<event>`` executable. Their combined exit
statuses are OR-ed into a single result code.
"""

import logging
import os
from typing import Optional

from ..config import ConfigManager
from ..errors import ContractViolation, UserError
from ..pool import PoolOptions, ProcessPool, WorkerPool
from .builder import build_hook_list
from .dispatch import DispatchProtocol
from .feeder import StdinFeeder
from .models import HookList
from .options import RunOptions, RunState
from .resolver import HookResolver

logger = logging.getLogger(__name__)


class HookContext:
    """State shared by every run in the process.

    Holds the configuration, the worker pool, the events already advised
    about and the job count, which is resolved once and then reused.
    """

    def __init__(self, config: Optional[ConfigManager] = None, pool: Optional[WorkerPool] = None):
        self.config = config or ConfigManager()
        self.pool = pool or ProcessPool()
        self.advised: set[str] = set()
        self._jobs: Optional[int] = None

    def resolve_jobs(self) -> int:
        """``hook.jobs`` if set to a positive number, else the CPU count."""
        if self._jobs is None:
            configured = self.config.get_int("hook.jobs")
            if configured is not None and configured > 0:
                self._jobs = configured
            else:
                self._jobs = os.cpu_count() or 1
            logger.debug("running up to %d hooks at once", self._jobs)
        return self._jobs

    def resolver(self) -> HookResolver:
        return HookResolver(
            self.config.hooks_dir(),
            advised=self.advised,
            advice_enabled=self.config.get_bool("advice.ignoredHook", True),
        )


class HookRunner:
    """Run the hooks registered for events."""

    def __init__(self, context: Optional[HookContext] = None):
        self.context = context or HookContext()

    def list_hooks(self, event: str) -> HookList:
        if not event:
            raise ContractViolation("an event name must be provided")
        return build_hook_list(self.context.config, self.context.resolver(), event)

    def list_hooks_for_event(self, event: str) -> list[str]:
        """Identifiers of the hooks for an event, in run order."""
        hooks = self.list_hooks(event)
        try:
            return hooks.identifiers()
        finally:
            hooks.clear()

    def hook_exists(self, event: str) -> bool:
        return bool(self.list_hooks_for_event(event))

    def run_event(self, event: str, options: Optional[RunOptions]) -> int:
        """Run every hook for ``event``; return the OR of their exit codes.

        Raises:
            ContractViolation: no options, or both stdin sources configured.
            UserError: no hook found while ``error_if_missing`` is set, or the
                stdin file cannot be opened.
            ConfigInconsistency: a hook has an event but no command.
        """
        if options is None:
            raise ContractViolation("RunOptions must be provided to run_event")
        options.invoked = False
        feeder = StdinFeeder(options.stdin_file, options.stdin_lines)

        state = RunState(hooks=self.list_hooks(event), options=options)
        try:
            if not len(state.hooks):
                if not options.error_if_missing:
                    return 0
                raise UserError(f"cannot find a hook named {event}")

            jobs = options.jobs or self.context.resolve_jobs()
            # single-threaded or a single hook: nothing to keep apart
            ungroup = jobs == 1 or len(state.hooks) == 1
            pool_options = PoolOptions(
                max_parallel=jobs,
                ungroup=ungroup,
                sideband=options.sideband if options.consume_sideband else None,
            )

            logger.debug("running %d hook(s) for %s", len(state.hooks), event)
            self.context.pool.run(pool_options, DispatchProtocol(state, self.context.config, feeder))
            return state.code
        finally:
            state.release()

    def run_hooks(self, event: str, *args: str) -> int:
        """Run ``event`` with default parallel options and these arguments."""
        return self.run_event(event, RunOptions(args=list(args)))


_context: Optional[HookContext] = None


def get_context() -> HookContext:
    """Get or create the process-wide context."""
    global _context
    if _context is None:
        _context = HookContext()
    return _context


def run_event(event: str, options: Optional[RunOptions], context: Optional[HookContext] = None) -> int:
    return HookRunner(context or get_context()).run_event(event, options)


def list_hooks_for_event(event: str, context: Optional[HookContext] = None) -> list[str]:
    return HookRunner(context or get_context()).list_hooks_for_event(event)
