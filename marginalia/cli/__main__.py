"""The `marginalia` command. Subcommand groups are imported only when invoked."""

from __future__ import annotations

import importlib
import sys
import threading
import traceback
import types
import typing as t
from pathlib import Path

import pydantic as p

import marginalia
import marginalia.lib.cli as click
from marginalia.core import MarginaliaContainer
from marginalia.errors import MarginaliaError
from marginalia.model import DeploymentEnvironment

ProjectRoot = Path(marginalia.__file__).resolve().parents[1]

# subcommand group name -> its one-line help
Commands: dict[str, str] = {
    "assignment": "Create, list and retire assignments.",
    "quota": "Inspect or reset the AI feedback quota.",
    "schema": "Apply and inspect database migrations.",
    "submission": "Show submissions and regenerate their feedback.",
    "web": "Run the HTTP API.",
}

_loaded: list[types.ModuleType] = []
_booted: MarginaliaContainer | None = None


class LazyCommandGroup(click.Group):
    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(Commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in Commands:
            return None
        mod = importlib.import_module(f"marginalia.cli.{cmd_name}")
        # wired at boot, which runs after the subcommand is resolved
        _loaded.append(mod)
        command: click.Command = getattr(mod, cmd_name)
        command.short_help = Commands[cmd_name]
        return command


@click.group(cls=LazyCommandGroup)
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=ProjectRoot / "config", type=click.URIParamType(dir_ok=True))
@click.option("-s", "--secrets-path", default=None, type=click.URIParamType(dir_ok=True))
@click.option(
    "-o",
    "--override",
    multiple=True,
    help="override one setting by its dotted path, e.g. -o pipeline.max_concurrency=8",
)
@click.option("-D", "--debug", is_flag=True, default=False, help="print tracebacks on errors and log Python warnings")
@click.pass_obj
def main(
    ct: MarginaliaContainer,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    secrets_path: p.AnyUrl | None,
    override: tuple[str, ...],
    debug: bool,
):
    """Marginalia: AI feedback on coursework submissions."""
    global _booted
    MarginaliaContainer.boot(
        ct,
        debug=debug,
        env=env,
        config_root=config_root,
        secrets_path=secrets_path,
        override=override,
        wiring=tuple(_loaded),
    )
    _booted = ct


def report(ex: Exception, show_traceback: bool) -> int:
    """Print a failed command's error and return the exit status for it."""
    click.echo(click.style("ERROR ", fg="red"), nl=False, file=sys.stderr)
    if isinstance(ex, MarginaliaError):
        click.echo(f"{ex.message} ({ex.kind})", file=sys.stderr)
    else:
        click.echo(str(ex), file=sys.stderr)
    if show_traceback:
        traceback.print_exc()
    if isinstance(ex, click.ClickException):
        return ex.exit_code
    return 2 if isinstance(ex, MarginaliaError) else 1


def execute_command(*_args: str) -> None:
    threading.current_thread().name = "marginalia-0"
    args = list(_args or sys.argv)
    prog = Path(args[0]).name
    container = MarginaliaContainer()

    try:
        with main.make_context(prog, args=args[1:]) as ctx:
            ctx.obj = container
            sys.exit(t.cast(int, main.invoke(ctx)))
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", file=sys.stderr)
        sys.exit(1)
    except click.exceptions.Exit:
        sys.exit(0)
    except Exception as ex:
        debug = _booted.debug() if _booted is not None else "-D" in args or "--debug" in args
        sys.exit(report(ex, debug))
    finally:
        container.shutdown_resources()


if __name__ == "__main__":
    execute_command(*sys.argv)
