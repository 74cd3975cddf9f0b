"""Locate the conventional hooks-directory file for an event."""

import errno
import logging
import os
from pathlib import Path
from typing import Optional

from ..ui.output import render_advice

logger = logging.getLogger(__name__)

# Windows hooks may carry an executable suffix.
PLATFORM_SUFFIX = ".exe" if os.name == "nt" else ""


def _access_error(path: Path) -> Optional[int]:
    """Return None when ``path`` is executable, else an errno-style code."""
    if not path.is_file():
        return errno.ENOENT
    if os.access(path, os.X_OK):
        return None
    return errno.EACCES


class HookResolver:
    """Find ``<hooks_dir>/<event>``, advising once about ignored hooks.

    ``advised`` is shared by the owner of the resolver so that the advice is
    given at most once per event for the whole process.
    """

    def __init__(self, hooks_dir: Path, advised: Optional[set[str]] = None, advice_enabled: bool = True):
        self.hooks_dir = Path(hooks_dir)
        self.advised = advised if advised is not None else set()
        self.advice_enabled = advice_enabled

    def find(self, event: str) -> Optional[str]:
        path = self.hooks_dir / event
        error = _access_error(path)

        if error is not None and PLATFORM_SUFFIX:
            suffixed = path.with_name(path.name + PLATFORM_SUFFIX)
            if _access_error(suffixed) is None:
                path, error = suffixed, None
            # otherwise keep the bare form's diagnostic

        if error is None:
            logger.debug("found hooks-directory hook %s", path)
            return str(path)

        if error == errno.EACCES:
            self._advise_ignored(event, path)
        return None

    def _advise_ignored(self, event: str, path: Path) -> None:
        if not self.advice_enabled or event in self.advised:
            return
        self.advised.add(event)
        logger.debug("ignoring non-executable hook %s", path)
        render_advice(
            f"The '{path}' hook was ignored because it's not set as executable.\n"
            "You can disable this warning with `advice.ignoredHook: false` in your config."
        )
