"""Hand hooks to the worker pool one at a time and collect their results.

The pool pulls work with ``next_task`` whenever it has a free slot and
reports back through ``on_start_failure`` and ``on_finished``. The pool
serializes these calls, so nothing here takes a lock.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from ..config import ConfigManager
from ..errors import ConfigInconsistency, InternalInvariantBreach
from ..pool import FeedStatus, StdinMode
from ..ui.output import render_error
from .feeder import StdinFeeder
from .models import HookDescriptor, command_key
from .options import RunState

logger = logging.getLogger(__name__)


@dataclass
class ProcessSpec:
    """Everything the pool needs to launch one hook process.

    Named hooks run ``command`` through the shell with ``args`` appended;
    hooks-directory hooks execute ``command`` directly. stderr is always
    merged into stdout so output interleaves the way the hook wrote it.
    """

    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, Optional[str]] = field(default_factory=dict)
    cwd: Optional[str] = None
    stdin_mode: StdinMode = StdinMode.NONE
    stdin_file: Optional[BinaryIO] = None
    use_shell: bool = False
    merge_stderr: bool = True


@dataclass
class HookTask:
    descriptor: HookDescriptor
    spec: ProcessSpec

    @property
    def label(self) -> str:
        return self.descriptor.label


class DispatchProtocol:
    """Task source bound to one run's state."""

    def __init__(self, state: RunState, config: ConfigManager, feeder: StdinFeeder):
        self.state = state
        self.config = config
        self.feeder = feeder

    def next_task(self) -> Optional[HookTask]:
        state = self.state
        if state.cursor is None:
            return None

        descriptors = state.hooks.descriptors()
        descriptor = descriptors[state.cursor]
        options = state.options

        if descriptor.is_anonymous:
            command = descriptor.target
            if not command or not os.path.exists(command):
                raise InternalInvariantBreach(
                    f"hooks-directory hook '{command}' disappeared between discovery and dispatch"
                )
            if options.cwd:
                command = os.path.abspath(command)
            use_shell = False
        else:
            key = command_key(descriptor.name)
            command = self.config.get(key)
            if command is None:
                raise ConfigInconsistency(
                    f"'{key}' must be configured or "
                    f"'hook.{descriptor.name}.event' must be removed; aborting."
                )
            use_shell = True

        spec = ProcessSpec(
            command=command,
            args=list(options.args),
            env=dict(options.env),
            cwd=options.cwd,
            stdin_mode=self.feeder.mode,
            stdin_file=self.feeder.open_input(),
            use_shell=use_shell,
        )

        next_index = state.cursor + 1
        state.cursor = next_index if next_index < len(descriptors) else None

        logger.debug("dispatching %s: %s", descriptor.label, command)
        return HookTask(descriptor=descriptor, spec=spec)

    def feed(self, task: HookTask, pending: list[str]) -> FeedStatus:
        return self.feeder.poll(task.descriptor, pending)

    def on_start_failure(self, task: HookTask, error: Optional[BaseException] = None) -> None:
        self.state.code |= 1
        if task.descriptor.is_anonymous:
            message = "failed to start hook from hooks directory"
        else:
            message = f"failed to start hook '{task.descriptor.name}'"
        if error is not None:
            message = f"{message}: {error}"
        render_error(message)

    def on_finished(self, task: HookTask, code: int) -> None:
        self.state.code |= code
        options = self.state.options
        if not options.invoked:
            options.invoked = True
        logger.debug("hook %s finished with %d", task.label, code)
