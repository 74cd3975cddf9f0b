"""Terminal output for hookrun."""

from .theme import DEFAULT_PALETTE, console, err_console
from .output import render_advice, render_config_list, render_error, render_fatal, render_hook_list

__all__ = [
    "DEFAULT_PALETTE",
    "console",
    "err_console",
    "render_advice",
    "render_config_list",
    "render_error",
    "render_fatal",
    "render_hook_list",
]
