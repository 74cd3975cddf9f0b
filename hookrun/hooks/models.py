"""Hook data models: HookDescriptor, HookList and the stdin FeedCursor."""

from dataclasses import dataclass, field
from typing import Iterator, Optional

ANONYMOUS_LABEL = "hooks directory"


@dataclass(frozen=True)
class FeedCursor:
    """Position in a generated stdin sequence.

    ``index is None`` is the inactive state; otherwise the cursor sits at the
    next element to send. Transitions return new cursors.
    """

    index: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.index is not None

    def start(self) -> "FeedCursor":
        return FeedCursor(0)

    def advance(self) -> "FeedCursor":
        if self.index is None:
            raise ValueError("cannot advance an inactive cursor")
        return FeedCursor(self.index + 1)

    def release(self) -> "FeedCursor":
        return INACTIVE


INACTIVE = FeedCursor()


@dataclass
class HookDescriptor:
    """One hook to run for an event.

    A named descriptor comes from configuration and its ``target`` is the key
    its command is looked up under at dispatch time. An anonymous descriptor
    is the hooks-directory file and its ``target`` is that file's path.
    """

    name: Optional[str]
    target: str
    cursor: FeedCursor = field(default=INACTIVE)

    @property
    def is_anonymous(self) -> bool:
        return self.name is None

    @property
    def label(self) -> str:
        """Human-readable name used in messages."""
        return ANONYMOUS_LABEL if self.name is None else self.name

    @property
    def identifier(self) -> str:
        """What ``list`` prints: the friendly name, or the file path."""
        return self.target if self.name is None else self.name


def command_key(name: str) -> str:
    return f"hook.{name}.command"


class HookList:
    """Ordered, deduplicated descriptors for one event.

    Descriptors live in an arena addressed by slot number; ``_order`` holds
    the slots in run order. At most one descriptor per name and at most one
    anonymous descriptor exist, and the anonymous one is always last.
    """

    def __init__(self):
        self._slots: list[HookDescriptor] = []
        self._by_name: dict[Optional[str], int] = {}
        self._order: dict[int, None] = {}

    def append_or_move_to_tail(self, name: Optional[str], target: Optional[str] = None) -> HookDescriptor:
        """Add a descriptor at the tail, moving an existing one of that name."""
        if target is None:
            if name is None:
                raise ValueError("an anonymous hook needs a path")
            target = command_key(name)

        slot = self._by_name.get(name)
        if slot is None:
            slot = len(self._slots)
            self._slots.append(HookDescriptor(name=name, target=target))
            self._by_name[name] = slot
        else:
            self._slots[slot].target = target
            del self._order[slot]
        self._order[slot] = None

        anonymous = self._by_name.get(None)
        if name is not None and anonymous is not None:
            del self._order[anonymous]
            self._order[anonymous] = None

        return self._slots[slot]

    def get(self, name: Optional[str]) -> Optional[HookDescriptor]:
        slot = self._by_name.get(name)
        return None if slot is None else self._slots[slot]

    def descriptors(self) -> tuple[HookDescriptor, ...]:
        return tuple(self._slots[slot] for slot in self._order)

    def identifiers(self) -> list[str]:
        return [d.identifier for d in self]

    def clear(self) -> None:
        self._slots.clear()
        self._by_name.clear()
        self._order.clear()

    def __iter__(self) -> Iterator[HookDescriptor]:
        return iter(self.descriptors())

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"HookList({self.identifiers()!r})"
