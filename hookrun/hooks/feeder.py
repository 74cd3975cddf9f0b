"""Choose how a dispatched hook's stdin is populated."""

from typing import BinaryIO, Optional, Sequence

from ..errors import ContractViolation, UserError
from ..pool import FeedStatus, StdinMode
from .models import HookDescriptor


class StdinFeeder:
    """Stdin policy for one run: nothing, a file, or a generated sequence.

    In generated mode every descriptor keeps its own cursor, so each hook
    receives the whole sequence from the start, one element per line.
    """

    def __init__(self, stdin_file: Optional[str] = None, lines: Optional[Sequence[str]] = None):
        if stdin_file is not None and lines is not None:
            raise ContractViolation("choose only one method to populate stdin")
        self.stdin_file = stdin_file
        self.lines = tuple(lines) if lines is not None else None

    @property
    def mode(self) -> StdinMode:
        if self.stdin_file is not None:
            return StdinMode.FILE
        if self.lines is not None:
            return StdinMode.GENERATED
        return StdinMode.NONE

    def open_input(self) -> Optional[BinaryIO]:
        """Open a fresh read-only handle on the stdin file, if any.

        Each hook gets its own handle; the process runner closes it.
        """
        if self.stdin_file is None:
            return None
        try:
            return open(self.stdin_file, "rb")
        except OSError as e:
            raise UserError(f"could not open '{self.stdin_file}' for reading: {e.strerror}") from e

    def poll(self, descriptor: HookDescriptor, pending: list[str]) -> FeedStatus:
        """Queue the descriptor's next line on ``pending``."""
        if self.lines is None:
            return FeedStatus.DONE

        cursor = descriptor.cursor
        if not cursor.active:
            cursor = cursor.start()

        if cursor.index < len(self.lines):
            pending.append(self.lines[cursor.index] + "\n")
            descriptor.cursor = cursor.advance()
            return FeedStatus.CONTINUE

        descriptor.cursor = cursor.release()
        return FeedStatus.DONE
