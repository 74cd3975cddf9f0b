"""Read hook declarations out of configuration entries."""

from typing import Iterator, Optional

from ..config import ConfigManager

_PREFIX = "hook."
_EVENT_SUFFIX = ".event"


def parse_event_key(key: str) -> Optional[str]:
    """Return the friendly name in ``hook.<name>.event``, or None.

    The name is everything between the first and the last dot, so friendly
    names may themselves contain dots.
    """
    if not key.startswith(_PREFIX) or not key.endswith(_EVENT_SUFFIX):
        return None
    name = key[len(_PREFIX):-len(_EVENT_SUFFIX)]
    return name or None


def scan_hook_names(config: ConfigManager, event: str) -> Iterator[str]:
    """Yield the friendly name of every ``hook.<name>.event = <event>`` entry.

    Names come out in encounter order, once per matching entry; a name mapped
    to the event twice is yielded twice. Event matching is exact and
    case-sensitive. Entries of any other shape are skipped silently.
    """
    for entry in config.entries():
        name = parse_event_key(entry.key)
        if name is None:
            continue
        if entry.value == event:
            yield name
