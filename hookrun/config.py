"""Configuration management for hookrun.

Configuration lives in YAML files that are flattened into an ordered stream
of dotted ``key = value`` entries. Order matters: hooks are listed in the
order their event mappings are encountered, so a later file re-declaring a
hook moves it behind the others.

Sources, in order:
    ~/.config/hookrun/config.yaml   - global (or $HOOKRUN_CONFIG)
    .hookrun.yaml                   - nearest one walking up from the cwd
    --config PATH                   - explicit files
    -c key=value                    - command-line overrides
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from .errors import ConfigError
from .ui.output import render_error

logger = logging.getLogger(__name__)

GLOBAL_CONFIG_PATH = "~/.config/hookrun/config.yaml"
PROJECT_CONFIG_NAME = ".hookrun.yaml"
DEFAULT_HOOKS_PATH = ".hooks"

_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


@dataclass(frozen=True)
class ConfigEntry:
    """One flattened ``key = value`` pair and the source it came from."""

    key: str
    value: str
    origin: str


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_config(data: Any, prefix: str = "") -> Iterator[tuple[str, str]]:
    """Flatten a parsed YAML document into dotted keys, in document order.

    Nested mappings join with ``.``; a list yields one entry per element so
    that multi-valued keys such as ``hook.<name>.event`` keep every value.
    """
    if isinstance(data, dict):
        for key, value in data.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            yield from flatten_config(value, name)
    elif isinstance(data, list):
        for item in data:
            yield from flatten_config(item, prefix)
    elif data is not None and prefix:
        yield prefix, _stringify(data)


class ConfigManager:
    """Layered hookrun configuration."""

    def __init__(
        self,
        config_paths: Optional[list[str]] = None,
        start_dir: Optional[str] = None,
        include_defaults: bool = True,
    ):
        self.start_dir = Path(start_dir or ".").resolve()
        self.project_file = self._find_project_file() if include_defaults else None
        self.root = self.project_file.parent if self.project_file else self.start_dir

        self.paths: list[Path] = []
        if include_defaults:
            self.paths.append(Path(os.environ.get("HOOKRUN_CONFIG") or GLOBAL_CONFIG_PATH).expanduser())
            if self.project_file:
                self.paths.append(self.project_file)
        self.paths.extend(Path(p).expanduser() for p in config_paths or ())

        self._entries: list[ConfigEntry] = []
        for path in self.paths:
            self.load_data(self._read_yaml(path), origin=str(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any], start_dir: Optional[str] = None) -> "ConfigManager":
        """Build a manager from in-memory data, ignoring files on disk."""
        manager = cls(start_dir=start_dir, include_defaults=False)
        manager.load_data(data, origin="<memory>")
        return manager

    def _find_project_file(self) -> Optional[Path]:
        """Walk up from start_dir to find the nearest .hookrun.yaml."""
        current = self.start_dir
        for _ in range(50):  # safety limit
            candidate = current / PROJECT_CONFIG_NAME
            if candidate.is_file():
                return candidate
            parent = current.parent
            if parent == current:
                break
            current = parent
        return None

    def _read_yaml(self, path: Path) -> Any:
        """Read and parse a YAML file; missing files contribute nothing."""
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            render_error(f"Error reading config {path}: {e}")
            return None

    def load_data(self, data: Any, origin: str) -> None:
        """Append every entry of a parsed document to the stream."""
        count = 0
        for key, value in flatten_config(data):
            self._entries.append(ConfigEntry(key, value, origin))
            count += 1
        if count:
            logger.debug("loaded %d config entries from %s", count, origin)

    def add(self, key: str, value: str, origin: str = "command line") -> None:
        """Append an override; it wins over everything read before it."""
        self._entries.append(ConfigEntry(key, value, origin))

    def add_override(self, spec: str) -> None:
        """Append a ``key=value`` override as given with ``-c``."""
        key, sep, value = spec.partition("=")
        if not key or not sep:
            raise ConfigError(f"invalid config override '{spec}', expected key=value")
        self.add(key.strip(), value)

    def remove(self, key: str) -> None:
        """Drop every entry for a key."""
        self._entries = [e for e in self._entries if e.key != key]

    def entries(self) -> list[ConfigEntry]:
        return list(self._entries)

    def get_all(self, key: str) -> list[str]:
        return [e.value for e in self._entries if e.key == key]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the last value configured for a key."""
        values = self.get_all(key)
        return values[-1] if values else default

    def get_int(self, key: str) -> Optional[int]:
        value = self.get(key)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"bad numeric config value '{value}' for '{key}'") from None

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigError(f"bad boolean config value '{value}' for '{key}'")

    def hooks_dir(self) -> Path:
        """Directory holding the conventional per-event hook files."""
        path = Path(self.get("core.hooksPath") or DEFAULT_HOOKS_PATH).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return path

    def describe(self) -> list[dict]:
        """Return a summary of all entries for display."""
        return [
            {"key": e.key, "value": e.value, "origin": e.origin}
            for e in self._entries
        ]
