from traceback import format_exc
from typing import Optional, cast

import typer

from dircount.cli.cli_config import CliConfig
from dircount.db.accessors.hook_bindings import get_hook_bindings, get_trigger_function
from dircount.exceptions import DirCountException
from dircount.hooks.counter_functions import ensure_directory_count_hook

from .utils import load_config, make_cli_session_factory

hooks_ns = typer.Typer()


@hooks_ns.command()
def ensure(
    ctx: typer.Context,
    version: Optional[int] = typer.Option(
        None,
        help="Version of the counter function to install. Defaults to the configured "
        "version, or the latest one.",
        min=0,
    ),
):
    """
    Installs the counter trigger, unless the same or a newer version is installed.
    """

    cli_config = cast(CliConfig, ctx.obj)
    config = load_config(cli_config)
    session_factory = make_cli_session_factory(config)

    try:
        outcome = ensure_directory_count_hook(
            session_factory=session_factory, config=config, version=version
        )
    except (DirCountException, ValueError) as e:
        typer.echo(f"Hook installation failed: {e}", err=True)
        if cli_config.verbose:
            typer.echo(format_exc())
        raise typer.Exit(code=1)

    typer.echo(outcome.value)


@hooks_ns.command()
def status(ctx: typer.Context):
    """
    Lists the installed hooks.
    """

    cli_config = cast(CliConfig, ctx.obj)
    config = load_config(cli_config)
    session_factory = make_cli_session_factory(config)

    with session_factory() as session:
        bindings = get_hook_bindings(session)
        if not bindings:
            typer.echo("No hook installed.")
            return

        for binding in bindings:
            trigger_function = get_trigger_function(
                session=session,
                table_name=binding.table_name,
                hook_name=binding.hook_name,
            )
            typer.echo(
                f"{binding.table_name}.{binding.hook_name}: version {binding.version} "
                f"({binding.implementation_ref}, installed {binding.installed.isoformat()})"
            )
            if trigger_function is None:
                typer.echo("  warning: no trigger exists", err=True)
            elif trigger_function != binding.implementation_ref:
                typer.echo(
                    f"  warning: the trigger runs {trigger_function}", err=True
                )
