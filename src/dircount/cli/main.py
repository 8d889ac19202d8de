from pathlib import Path
from typing import Optional

import typer

from .cli_config import CliConfig
from .commands.counts import counts_ns
from .commands.hooks import hooks_ns
from .commands.migrations import migrations_ns

app = typer.Typer()


def validate_config_file_path(config: Optional[Path]) -> Optional[Path]:
    if config is not None:
        if not config.is_file():
            raise typer.BadParameter(f"'{config.absolute()}' does not exist")

    return config


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        help="Path to the configuration file. Defaults to <cwd>/config.yml.",
        callback=validate_config_file_path,
    ),
    verbose: bool = typer.Option(False, help="Show more information."),
):
    """
    Directory counts maintenance CLI for operators.
    """

    cli_config = CliConfig(
        config_file_path=Path.cwd() / "config.yml",
        verbose=verbose,
    )

    if config is not None:
        cli_config.config_file_path = config

    ctx.obj = cli_config


app.add_typer(hooks_ns, name="hooks", help="Install and inspect counter triggers.")
app.add_typer(counts_ns, name="counts", help="Inspect and repair directory counts.")
app.add_typer(migrations_ns, name="migrations", help="Run DB migrations.")


if __name__ == "__main__":
    app()
