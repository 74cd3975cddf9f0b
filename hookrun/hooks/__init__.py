"""Hook discovery and dispatch."""

from .builder import build_hook_list
from .dispatch import DispatchProtocol, HookTask, ProcessSpec
from .feeder import StdinFeeder
from .loader import parse_event_key, scan_hook_names
from .models import FeedCursor, HookDescriptor, HookList
from .options import RunOptions, RunState
from .resolver import HookResolver
from .runner import HookContext, HookRunner, get_context, list_hooks_for_event, run_event

__all__ = [
    "DispatchProtocol",
    "FeedCursor",
    "HookContext",
    "HookDescriptor",
    "HookList",
    "HookResolver",
    "HookRunner",
    "HookTask",
    "ProcessSpec",
    "RunOptions",
    "RunState",
    "StdinFeeder",
    "build_hook_list",
    "get_context",
    "list_hooks_for_event",
    "parse_event_key",
    "run_event",
    "scan_hook_names",
]
