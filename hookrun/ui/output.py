"""Rendering helpers for errors, advice and listings."""

from rich.text import Text

from .theme import DEFAULT_PALETTE, console, err_console


def _prefixed(prefix: str, style: str, text: str) -> Text:
    line = Text()
    line.append(f"{prefix}: ", style=f"bold {style}")
    line.append(text, style=style)
    return line


def render_error(text: str) -> None:
    """Render an error message."""
    err_console.print(_prefixed("error", DEFAULT_PALETTE.error, text))


def render_fatal(text: str, prefix: str = "fatal") -> None:
    """Render a message for an error that stopped the run."""
    err_console.print(_prefixed(prefix, DEFAULT_PALETTE.fatal, text))


def render_advice(text: str) -> None:
    """Render a hint, one ``hint:`` prefix per line."""
    for line in text.splitlines():
        err_console.print(_prefixed("hint", DEFAULT_PALETTE.advice, line))


def render_hook_list(identifiers: list[str]) -> None:
    """Print one hook identifier per line, unstyled, for scripting."""
    for identifier in identifiers:
        console.print(Text(identifier))


def render_config_list(entries: list[dict]) -> None:
    """Show flattened configuration entries, each prefixed by its origin."""
    palette = DEFAULT_PALETTE
    for entry in entries:
        line = Text()
        line.append(entry["origin"], style=f"dim {palette.text_dim}")
        line.append("  ")
        line.append(entry["key"], style=palette.hook_name)
        line.append("=", style=palette.text_muted)
        line.append(entry["value"], style=palette.text)
        console.print(line)
