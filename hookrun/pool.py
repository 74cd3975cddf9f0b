"""Worker pool that runs hook processes in parallel.

The pool pulls tasks from a task source while it has free slots, runs each
as a subprocess and reports back to the source. All calls into the source
happen under one lock, so a source never sees two callbacks at once.
"""

import logging
import os
import subprocess
import sys
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, TextIO

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class StdinMode(str, Enum):
    """Where a task's stdin comes from."""

    NONE = "none"
    FILE = "file"
    GENERATED = "generated"


class FeedStatus(Enum):
    CONTINUE = "continue"
    DONE = "done"


@dataclass(frozen=True)
class PoolOptions:
    """Pool settings for one batch.

    ``ungroup`` streams output as it arrives instead of one block per task.
    A ``sideband`` list receives each task's raw output instead of the stream.
    """

    max_parallel: int = 1
    ungroup: bool = True
    sideband: Optional[list[bytes]] = None


class TaskSource(Protocol):
    def next_task(self) -> Optional[Any]: ...

    def feed(self, task: Any, pending: list[str]) -> FeedStatus: ...

    def on_start_failure(self, task: Any, error: Optional[BaseException] = None) -> None: ...

    def on_finished(self, task: Any, code: int) -> None: ...


class WorkerPool(Protocol):
    def run(self, options: PoolOptions, source: TaskSource) -> None: ...


def exit_status(returncode: int) -> int:
    """Map a Popen return code to a shell-style exit status."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def build_env(overrides: dict[str, Optional[str]]) -> dict[str, str]:
    env = dict(os.environ)
    for key, value in overrides.items():
        if value is None:
            env.pop(key, None)
        else:
            env[key] = value
    return env


def build_argv(spec: Any):
    """Command line for a task: shell one-liner or direct executable."""
    if spec.use_shell:
        if spec.args:
            # "$0" is the command itself, hook arguments follow as "$@"
            return [f'{spec.command} "$@"', spec.command, *spec.args]
        return spec.command
    return [spec.command, *spec.args]


class ProcessPool:
    """Run tasks as subprocesses on a thread pool."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stderr

    def run(self, options: PoolOptions, source: TaskSource) -> None:
        """Drain ``source``; returns once every started task has finished.

        An exception from ``next_task`` stops further dispatch and is
        re-raised after the tasks already running have completed.
        """
        lock = threading.Lock()
        max_parallel = max(1, options.max_parallel)
        running = set()
        exhausted = False

        with ThreadPoolExecutor(max_workers=max_parallel, thread_name_prefix="hook") as executor:
            while True:
                while not exhausted and len(running) < max_parallel:
                    with lock:
                        task = source.next_task()
                    if task is None:
                        exhausted = True
                        break
                    running.add(executor.submit(self._run_task, task, options, source, lock))

                if not running:
                    break

                done, running = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    future.result()

    def _output_fd(self, options: PoolOptions) -> Optional[int]:
        """Descriptor hooks may write to directly, or None when output must be piped.

        Ungrouped hooks share the pool's stream so they see the same terminal
        and their partial lines are not held back.
        """
        if not options.ungroup or options.sideband is not None:
            return None
        stream = self.stream
        try:
            fd = stream.fileno()
        except (AttributeError, OSError, ValueError):
            return None
        stream.flush()
        return fd

    def _run_task(self, task: Any, options: PoolOptions, source: TaskSource, lock: threading.Lock) -> None:
        spec = task.spec
        capture = not options.ungroup or options.sideband is not None
        feeding = spec.stdin_mode == StdinMode.GENERATED

        if spec.stdin_file is not None:
            stdin = spec.stdin_file
        elif feeding:
            stdin = subprocess.PIPE
        else:
            stdin = subprocess.DEVNULL

        stdout = self._output_fd(options)
        try:
            proc = subprocess.Popen(
                build_argv(spec),
                shell=spec.use_shell,
                cwd=spec.cwd,
                env=build_env(spec.env),
                stdin=stdin,
                stdout=subprocess.PIPE if stdout is None else stdout,
                stderr=subprocess.STDOUT if spec.merge_stderr else None,
            )
        except OSError as e:
            logger.debug("cannot spawn %s: %s", spec.command, e)
            with lock:
                source.on_start_failure(task, e)
            return
        finally:
            if spec.stdin_file is not None:
                spec.stdin_file.close()

        writer = None
        if feeding:
            writer = threading.Thread(
                target=self._feed, args=(proc, task, source, lock), daemon=True,
            )
            writer.start()

        chunks = []
        if proc.stdout is not None:
            while True:
                chunk = proc.stdout.read1(CHUNK_SIZE)
                if not chunk:
                    break
                if capture:
                    chunks.append(chunk)
                else:
                    with lock:
                        self._write(chunk)
            proc.stdout.close()
        code = exit_status(proc.wait())
        if writer is not None:
            writer.join()

        with lock:
            if chunks:
                output = b"".join(chunks)
                if options.sideband is not None:
                    options.sideband.append(output)
                else:
                    self._write(output)
            source.on_finished(task, code)

    def _feed(self, proc: subprocess.Popen, task: Any, source: TaskSource, lock: threading.Lock) -> None:
        """Pump generated input into the task's stdin until the source is done."""
        try:
            while True:
                pending: list[str] = []
                with lock:
                    status = source.feed(task, pending)
                if pending:
                    proc.stdin.write("".join(pending).encode())
                    proc.stdin.flush()
                if status is FeedStatus.DONE:
                    break
        except BrokenPipeError:
            logger.debug("%s stopped reading its input", task.spec.command)
        finally:
            try:
                proc.stdin.close()
            except BrokenPipeError:
                pass

    def _write(self, data: bytes) -> None:
        """Pass hook output through unchanged; text-only streams get it decoded."""
        stream = self.stream
        buffer = getattr(stream, "buffer", None)
        if buffer is not None:
            stream.flush()
            buffer.write(data)
            buffer.flush()
        else:
            stream.write(data.decode(errors="replace"))
            stream.flush()
