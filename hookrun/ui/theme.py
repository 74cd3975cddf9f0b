"""hookrun theme: palette and the shared consoles."""

from dataclasses import dataclass
from rich.console import Console


@dataclass(frozen=True)
class ColorPalette:
    """Core UI color palette."""

    text: str = "#b8b8cc"
    text_dim: str = "#4a4a60"
    text_muted: str = "#363648"
    hook_name: str = "#b44dff"
    advice: str = "#e5c747"
    error: str = "#e55a6e"
    fatal: str = "#d94060"


DEFAULT_PALETTE = ColorPalette()

# Hook output and diagnostics share stderr; listings go to stdout so they
# can be piped.
console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)
