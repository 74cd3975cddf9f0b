"""Tests for the subprocess worker pool, using real /bin/sh hooks."""

import io
import os
import select
import sys

import pytest

from hookrun.config import ConfigManager
from hookrun.hooks.options import RunOptions
from hookrun.hooks.runner import HookContext, HookRunner
from hookrun.pool import PoolOptions, ProcessPool, build_argv, build_env, exit_status

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell hooks")


def write_script(path, body):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def stream():
    return io.StringIO()


def make_runner(tmp_path, stream, commands=(), event="test-hook"):
    """Runner whose configured hooks are (name, command) pairs for ``event``."""
    config = ConfigManager.from_dict(
        {"core": {"hooksPath": str(tmp_path / "hooks")}}, start_dir=str(tmp_path),
    )
    for name, command in commands:
        config.add(f"hook.{name}.event", event)
        config.add(f"hook.{name}.command", command)
    return HookRunner(HookContext(config=config, pool=ProcessPool(stream=stream)))


class TestHelpers:
    def test_exit_status(self):
        assert exit_status(0) == 0
        assert exit_status(3) == 3
        assert exit_status(-9) == 137

    def test_build_env(self, monkeypatch):
        monkeypatch.setenv("HOOKRUN_KEEP", "1")
        monkeypatch.setenv("HOOKRUN_DROP", "1")
        env = build_env({"HOOKRUN_NEW": "x", "HOOKRUN_DROP": None})
        assert env["HOOKRUN_KEEP"] == "1"
        assert env["HOOKRUN_NEW"] == "x"
        assert "HOOKRUN_DROP" not in env

    def test_build_argv(self):
        class Spec:
            command = "echo hi"
            args = ["a"]
            use_shell = True

        assert build_argv(Spec) == ['echo hi "$@"', "echo hi", "a"]
        Spec.args = []
        assert build_argv(Spec) == "echo hi"
        Spec.use_shell, Spec.command, Spec.args = False, "/x/hook", ["a"]
        assert build_argv(Spec) == ["/x/hook", "a"]

    def test_pool_options_defaults(self):
        options = PoolOptions()
        assert options.max_parallel == 1
        assert options.ungroup is True
        assert options.sideband is None


class TestProcessPool:
    def test_basic_hooks_directory(self, tmp_path, stream):
        write_script(tmp_path / "hooks" / "test-hook", "echo Test hook")
        runner = make_runner(tmp_path, stream)
        assert runner.run_event("test-hook", RunOptions(jobs=1)) == 0
        assert stream.getvalue() == "Test hook\n"

    def test_stdout_and_stderr_merged(self, tmp_path, stream):
        write_script(
            tmp_path / "hooks" / "test-hook",
            "echo >&1 Will end up on stderr\necho >&2 Will end up on stderr",
        )
        make_runner(tmp_path, stream).run_event("test-hook", RunOptions(jobs=1))
        assert stream.getvalue() == "Will end up on stderr\nWill end up on stderr\n"

    @pytest.mark.parametrize("code", [1, 2, 128, 129])
    def test_exit_code_passed_along(self, tmp_path, stream, code):
        write_script(tmp_path / "hooks" / "test-hook", f"exit {code}")
        assert make_runner(tmp_path, stream).run_event("test-hook", RunOptions(jobs=1)) == code

    def test_arguments_passed_verbatim(self, tmp_path, stream):
        write_script(tmp_path / "hooks" / "test-hook", 'echo "$1"\necho "$2"')
        options = RunOptions(jobs=1, args=["arg", "u ments"])
        make_runner(tmp_path, stream).run_event("test-hook", options)
        assert stream.getvalue() == "arg\nu ments\n"

    def test_inline_command_receives_arguments(self, tmp_path, stream):
        runner = make_runner(tmp_path, stream, commands=[("oneliner", "echo Hello")])
        runner.run_event("test-hook", RunOptions(jobs=1, args=["World"]))
        assert stream.getvalue() == "Hello World\n"

    def test_series_order_with_one_job(self, tmp_path, stream):
        write_script(tmp_path / "hooks" / "test-hook", "echo 3")
        runner = make_runner(
            tmp_path, stream, commands=[("series-1", "echo 1"), ("series-2", "echo 2")],
        )
        assert runner.run_event("test-hook", RunOptions(jobs=1)) == 0
        assert stream.getvalue() == "1\n2\n3\n"

    def test_codes_aggregate(self, tmp_path, stream):
        runner = make_runner(
            tmp_path, stream, commands=[("a", "exit 0"), ("b", "exit 2"), ("c", "exit 1")],
        )
        assert runner.run_event("test-hook", RunOptions(jobs=3)) == 3

    def test_grouped_output_keeps_blocks_together(self, tmp_path, stream):
        runner = make_runner(
            tmp_path, stream,
            commands=[("a", "echo a1; sleep 0.2; echo a2"), ("b", "echo b1; sleep 0.1; echo b2")],
        )
        runner.run_event("test-hook", RunOptions(jobs=2))
        output = stream.getvalue()
        assert "a1\na2\n" in output
        assert "b1\nb2\n" in output

    def test_stdin_file_to_every_hook(self, tmp_path, stream):
        stdin = tmp_path / "input"
        stdin.write_text("1\n2\n3\n")
        runner = make_runner(
            tmp_path, stream,
            commands=[("stdin-a", "sed 's/^/a/'"), ("stdin-b", "sed 's/^/b/'")],
        )
        runner.run_event("test-hook", RunOptions(jobs=1, stdin_file=str(stdin)))
        assert stream.getvalue() == "a1\na2\na3\nb1\nb2\nb3\n"

    def test_generated_stdin_to_every_hook(self, tmp_path, stream):
        runner = make_runner(
            tmp_path, stream, commands=[("a", "sed 's/^/a/'"), ("b", "sed 's/^/b/'")],
        )
        runner.run_event("test-hook", RunOptions(jobs=2, stdin_lines=["x", "y"]))
        output = stream.getvalue()
        assert "ax\nay\n" in output
        assert "bx\nby\n" in output

    def test_generated_stdin_ignored_by_hook(self, tmp_path, stream):
        runner = make_runner(tmp_path, stream, commands=[("a", "exit 0")])
        lines = [str(i) for i in range(10000)]
        assert runner.run_event("test-hook", RunOptions(jobs=1, stdin_lines=lines)) == 0

    def test_no_stdin_by_default(self, tmp_path, stream):
        runner = make_runner(tmp_path, stream, commands=[("a", "cat; echo done")])
        runner.run_event("test-hook", RunOptions(jobs=1))
        assert stream.getvalue() == "done\n"

    def test_bad_shebang_is_start_failure(self, tmp_path, stream, capsys):
        (tmp_path / "hooks").mkdir()
        script = tmp_path / "hooks" / "test-hook"
        script.write_text("#!/bad/path/no/spaces\n")
        script.chmod(0o755)
        options = RunOptions(jobs=1)
        assert make_runner(tmp_path, stream).run_event("test-hook", options) == 1
        assert "failed to start hook from hooks directory" in capsys.readouterr().err
        assert options.invoked is False

    def test_start_failure_does_not_stop_batch(self, tmp_path, stream, capsys):
        runner = make_runner(tmp_path, stream, commands=[("a", "echo ran"), ("b", "echo ran too")])
        # a missing working directory makes every launch fail
        options = RunOptions(jobs=1, cwd=str(tmp_path / "missing-dir"))
        assert runner.run_event("test-hook", options) == 1
        err = capsys.readouterr().err
        assert "failed to start hook 'a'" in err
        assert "failed to start hook 'b'" in err
        assert stream.getvalue() == ""

    def test_env_and_cwd(self, tmp_path, stream):
        workdir = tmp_path / "work"
        workdir.mkdir()
        runner = make_runner(tmp_path, stream, commands=[("a", 'echo "$HOOK_VAR $(pwd)"')])
        options = RunOptions(jobs=1, env={"HOOK_VAR": "set"}, cwd=str(workdir))
        runner.run_event("test-hook", options)
        assert stream.getvalue() == f"set {os.path.realpath(workdir)}\n"

    def test_sideband_collects_output(self, tmp_path, stream):
        runner = make_runner(tmp_path, stream, commands=[("a", "echo captured")])
        options = RunOptions(jobs=1, consume_sideband=True)
        runner.run_event("test-hook", options)
        assert options.sideband == [b"captured\n"]
        assert stream.getvalue() == ""

    def test_invoked_flag(self, tmp_path, stream):
        runner = make_runner(tmp_path, stream, commands=[("a", "exit 0")])
        options = RunOptions(jobs=1)
        runner.run_event("test-hook", options)
        assert options.invoked is True

    def test_fatal_dispatch_error_waits_for_running_hooks(self, tmp_path, stream):
        marker = tmp_path / "marker"
        runner = make_runner(
            tmp_path, stream, commands=[("slow", f"sleep 0.2; touch {marker}"), ("broken", "x")],
        )
        runner.context.config.remove("hook.broken.command")
        with pytest.raises(Exception, match="hook.broken.command"):
            runner.run_event("test-hook", RunOptions(jobs=2))
        assert marker.exists()


class PromptStream(io.StringIO):
    """Text sink that drops ``marker`` once a prompt has been written to it."""

    def __init__(self, marker):
        super().__init__()
        self.marker = marker

    def write(self, text):
        written = super().write(text)
        if "Continue? " in self.getvalue():
            self.marker.touch()
        return written


class TestOutputPassthrough:
    def test_partial_line_arrives_before_exit(self, tmp_path):
        marker = tmp_path / "prompt-seen"
        write_script(
            tmp_path / "hooks" / "test-hook",
            "printf 'Continue? '\n"
            "i=0\n"
            f'while [ ! -f "{marker}" ] && [ $i -lt 50 ]; do sleep 0.1; i=$((i+1)); done\n'
            f'[ -f "{marker}" ] && echo yes || echo late',
        )
        stream = PromptStream(marker)
        make_runner(tmp_path, stream).run_event("test-hook", RunOptions(jobs=1))
        assert stream.getvalue() == "Continue? yes\n"

    def test_ungrouped_hooks_write_to_stream_directly(self, tmp_path):
        write_script(
            tmp_path / "hooks" / "test-hook",
            "[ -p /dev/stdout ] && echo pipe || echo direct\n"
            "[ -p /dev/stderr ] && echo pipe >&2 || echo direct >&2",
        )
        out = tmp_path / "out"
        with open(out, "w") as stream:
            stream.write("before\n")
            make_runner(tmp_path, stream).run_event("test-hook", RunOptions(jobs=1))
        assert out.read_text() == "before\ndirect\ndirect\n"

    def test_hooks_see_terminal(self, tmp_path):
        write_script(tmp_path / "hooks" / "test-hook", "[ -t 1 ] && [ -t 2 ] && echo tty || echo no-tty")
        master, slave = os.openpty()
        try:
            with open(slave, "w") as stream:
                make_runner(tmp_path, stream).run_event("test-hook", RunOptions(jobs=1))
                ready, _, _ = select.select([master], [], [], 5)
                output = os.read(master, 1024) if ready else b""
        finally:
            os.close(master)
        assert output.replace(b"\r", b"") == b"tty\n"

    def test_bytes_passed_through_ungrouped(self, tmp_path):
        write_script(tmp_path / "hooks" / "test-hook", r"printf 'caf\351\n'")
        stream = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        make_runner(tmp_path, stream).run_event("test-hook", RunOptions(jobs=1))
        assert stream.buffer.getvalue() == b"caf\xe9\n"

    def test_bytes_passed_through_grouped(self, tmp_path):
        stream = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        runner = make_runner(
            tmp_path, stream, commands=[("a", r"printf 'caf\351\n'"), ("b", r"printf 'na\357ve\n'")],
        )
        runner.run_event("test-hook", RunOptions(jobs=2))
        output = stream.buffer.getvalue()
        assert b"caf\xe9\n" in output
        assert b"na\xefve\n" in output

    def test_sideband_keeps_raw_bytes(self, tmp_path, stream):
        runner = make_runner(tmp_path, stream, commands=[("a", r"printf 'caf\351\n'")])
        options = RunOptions(jobs=1, consume_sideband=True)
        runner.run_event("test-hook", options)
        assert options.sideband == [b"caf\xe9\n"]
