"""hookrun CLI - run the hooks for an event."""

import logging
import os
from typing import Callable

import click
from rich.logging import RichHandler

from .config import ConfigManager
from .errors import ContractViolation, HookError, InternalInvariantBreach, UserError
from .hooks import HookContext, HookRunner, RunOptions
from .ui.output import render_config_list, render_error, render_fatal, render_hook_list
from .ui.theme import err_console


class HookRunCommand(click.Command):
    """Command whose hook arguments must follow a literal ``--``."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        for marker in ("--", "--end-of-options"):
            if marker in args:
                split = args.index(marker)
                ctx.meta["hook_args"] = args[split + 1:]
                args = args[:split]
                break
        return super().parse_args(ctx, args)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _call(fn: Callable[[], int]) -> int:
    """Run ``fn``, turning hook errors into messages and exit codes."""
    try:
        return fn()
    except UserError as e:
        render_error(str(e))
        return 1
    except (ContractViolation, InternalInvariantBreach) as e:
        render_fatal(str(e), prefix="BUG")
        return 128
    except HookError as e:
        render_fatal(str(e))
        return 128


def get_runner() -> HookRunner:
    return click.get_current_context().find_object(HookRunner)


@click.group()
@click.option("--config", "config_paths", multiple=True, type=click.Path(dir_okay=False),
              help="Extra YAML config file (repeatable)")
@click.option("-c", "overrides", multiple=True, metavar="KEY=VALUE",
              help="Override a config value (repeatable)")
@click.option("-C", "directory", type=click.Path(file_okay=False, exists=True),
              help="Run as if started in this directory")
@click.option("--verbose", "-v", is_flag=True, help="Log discovery and dispatch")
@click.pass_context
def cli(ctx, config_paths, overrides, directory, verbose):
    """HOOKRUN - run the hooks registered for an event.

    Hooks are declared in config as hook.<name>.event / hook.<name>.command,
    or dropped as executables into the hooks directory.
    """
    _setup_logging(verbose)
    config = ConfigManager(config_paths=list(config_paths), start_dir=directory)
    for spec in overrides:
        try:
            config.add_override(spec)
        except HookError as e:
            raise click.BadParameter(str(e), param_hint="-c") from None
    ctx.meta["directory"] = directory
    ctx.obj = HookRunner(HookContext(config=config))


@cli.command(cls=HookRunCommand)
@click.option("--ignore-missing", is_flag=True,
              help="Silently ignore a missing <event>")
@click.option("--to-stdin", "to_stdin", metavar="PATH",
              help="File to read into hooks' stdin")
@click.option("--jobs", "-j", type=click.IntRange(min=0), default=1, show_default=True,
              help="Run up to N hooks simultaneously (0 = auto)")
@click.argument("event")
def run(ignore_missing, to_stdin, jobs, event):
    """Run the hooks for EVENT. Pass hook arguments after --."""
    ctx = click.get_current_context()
    directory = ctx.meta.get("directory")
    if to_stdin is not None and directory:
        # relative to -C, where the hooks run
        to_stdin = os.path.join(directory, to_stdin)
    options = RunOptions(
        jobs=jobs,
        error_if_missing=not ignore_missing,
        stdin_file=to_stdin,
        args=list(ctx.meta.get("hook_args", [])),
        cwd=directory,
    )
    runner = get_runner()
    code = _call(lambda: runner.run_event(event, options))
    ctx.exit(code & 0xFF)


@cli.command(name="list")
@click.argument("event")
def list_hooks(event):
    """List the hooks for EVENT in the order they run."""
    runner = get_runner()

    def _list() -> int:
        identifiers = runner.list_hooks_for_event(event)
        if not identifiers:
            return 1
        render_hook_list(identifiers)
        return 0

    click.get_current_context().exit(_call(_list))


@cli.command()
def config():
    """Show the merged configuration."""
    runner = get_runner()
    render_config_list(runner.context.config.describe())


if __name__ == "__main__":
    cli()
