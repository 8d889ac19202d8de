from pathlib import Path
from traceback import format_exc
from typing import cast

import alembic.command
import alembic.config
import typer

from dircount.cli.cli_config import CliConfig
from dircount.db.connection import make_db_url

from .utils import load_config

migrations_ns = typer.Typer()

# Root of the repository, where alembic.ini is located.
PROJECT_DIR = Path(__file__).parents[4]


def run_migration_command(cli_config: CliConfig, command: str, revision: str):
    config = load_config(cli_config)

    alembic_cfg = alembic.config.Config(str(PROJECT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option(
        "script_location", str(PROJECT_DIR / "deployment" / "migrations")
    )
    alembic_cfg.attributes["db_url"] = make_db_url(driver="psycopg2", config=config)
    alembic_cfg.attributes["configure_logger"] = False

    try:
        if command == "upgrade":
            alembic.command.upgrade(alembic_cfg, revision)
        else:
            alembic.command.downgrade(alembic_cfg, revision)
    except Exception as e:
        typer.echo(f"{command} failed: {e}.", err=True)
        if cli_config.verbose:
            typer.echo(format_exc())
        raise typer.Exit(code=1)


@migrations_ns.command()
def upgrade(
    ctx: typer.Context,
    revision: str = typer.Option("head", help="Target revision."),
):
    cli_config = cast(CliConfig, ctx.obj)
    run_migration_command(cli_config=cli_config, command="upgrade", revision=revision)


@migrations_ns.command()
def downgrade(
    ctx: typer.Context,
    revision: str = typer.Option("-1", help="Target revision."),
):
    cli_config = cast(CliConfig, ctx.obj)
    run_migration_command(cli_config=cli_config, command="downgrade", revision=revision)
