from typing import cast

import typer

from dircount.cli.cli_config import CliConfig
from dircount.db.accessors.directory_counts import (
    find_count_mismatches,
    get_directory_count,
    rebuild_directory_counts,
)

from .utils import load_config, make_cli_session_factory

counts_ns = typer.Typer()


@counts_ns.command()
def show(
    ctx: typer.Context,
    directory: str = typer.Argument(..., help="Directory path, ex: /a/b."),
):
    """
    Displays the number of objects in a directory.
    """

    cli_config = cast(CliConfig, ctx.obj)
    config = load_config(cli_config)
    session_factory = make_cli_session_factory(config)

    with session_factory() as session:
        count = get_directory_count(session=session, directory=directory)

    typer.echo(f"{directory}: {count}")


@counts_ns.command()
def check(ctx: typer.Context):
    """
    Compares the maintained counts with the content of the objects table.
    """

    cli_config = cast(CliConfig, ctx.obj)
    config = load_config(cli_config)
    session_factory = make_cli_session_factory(config)

    with session_factory() as session:
        mismatches = find_count_mismatches(session)

    if not mismatches:
        typer.echo("All directory counts are consistent.")
        return

    for directory, expected, maintained in mismatches:
        typer.echo(f"{directory}: expected {expected}, found {maintained}")
    typer.echo(f"{len(mismatches)} inconsistent directory counts.", err=True)
    raise typer.Exit(code=1)


@counts_ns.command()
def rebuild(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation."),
):
    """
    Recomputes all the directory counts. Writes to the objects table are blocked
    while the counts are rebuilt.
    """

    cli_config = cast(CliConfig, ctx.obj)
    if not yes:
        typer.confirm(
            "Writes to the objects table will be blocked. Continue?", abort=True
        )

    config = load_config(cli_config)
    session_factory = make_cli_session_factory(config)

    with session_factory() as session:
        nb_directories = rebuild_directory_counts(session)
        session.commit()

    typer.echo(f"Rebuilt the counts of {nb_directories} directories.")
