from __future__ import annotations

import os
from pathlib import Path

import typer

from rbcli import __version__
from rbcli.cli.commands.annotate_cmd import annotate
from rbcli.cli.commands.create_cmd import create
from rbcli.cli.commands.delete_cmd import delete_local, delete_remote
from rbcli.cli.commands.promote_cmd import promote
from rbcli.cli.commands.update_cmd import update
from rbcli.core.config import ENV_ACCESS_TOKEN, ENV_CONFIG, ENV_PASSWORD, ENV_URL, ENV_USER
from rbcli.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(create)
app.command()(update)
app.command()(promote)
app.command("delete-local")(delete_local)
app.command("delete-remote")(delete_remote)
app.command()(annotate)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(None, "--config", help="Path to a TOML config file"),
    url: str | None = typer.Option(None, "--url", help="Platform URL"),
    access_token: str | None = typer.Option(None, "--access-token", help="Access token"),
    user: str | None = typer.Option(None, "--user", help="User name"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if config is not None:
        try:
            path = config.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --config: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[ENV_CONFIG] = str(path)

    # Flags win over the environment; the context reads both from here.
    for env_key, value in (
        (ENV_URL, url),
        (ENV_ACCESS_TOKEN, access_token),
        (ENV_USER, user),
        (ENV_PASSWORD, password),
    ):
        if value:
            os.environ[env_key] = value


def main() -> None:
    app()
