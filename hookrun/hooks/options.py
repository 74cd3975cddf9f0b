"""Per-run options and the transient state of one run."""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .models import HookList


@dataclass
class RunOptions:
    """How to run the hooks for one event.

    ``stdin_file`` and ``stdin_lines`` are mutually exclusive. ``invoked`` is
    an output: it is set once any hook has actually run.
    """

    jobs: int = 0  # 0 resolves to hook.jobs or the CPU count
    error_if_missing: bool = False
    stdin_file: Optional[str] = None
    stdin_lines: Optional[Sequence[str]] = None
    args: list[str] = field(default_factory=list)
    env: dict[str, Optional[str]] = field(default_factory=dict)  # None unsets
    cwd: Optional[str] = None
    consume_sideband: bool = False
    sideband: list[bytes] = field(default_factory=list)
    invoked: bool = False


@dataclass
class RunState:
    """Dispatch bookkeeping; lives for exactly one run."""

    hooks: HookList
    options: RunOptions
    cursor: Optional[int] = None  # index of the next undispatched descriptor
    code: int = 0

    def __post_init__(self):
        if self.cursor is None and len(self.hooks):
            self.cursor = 0

    def release(self) -> None:
        self.hooks.clear()
        self.cursor = None
