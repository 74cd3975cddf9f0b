"""Merge configured hooks and the hooks-directory hook into one list."""

import logging

from ..config import ConfigManager
from .loader import scan_hook_names
from .models import HookList
from .resolver import HookResolver

logger = logging.getLogger(__name__)


def build_hook_list(config: ConfigManager, resolver: HookResolver, event: str) -> HookList:
    """Return the hooks to run for ``event``, in run order.

    Configured hooks come first, ordered by the last time their event
    mapping was seen; the hooks-directory hook, if any, is always last.
    """
    hooks = HookList()
    for name in scan_hook_names(config, event):
        hooks.append_or_move_to_tail(name)

    path = resolver.find(event)
    if path is not None:
        hooks.append_or_move_to_tail(None, path)

    logger.debug("hooks for %s: %s", event, hooks.identifiers())
    return hooks
