from __future__ import annotations

import typer

from rbcli.cli.commands._helpers import exit_on_error
from rbcli.cli.context import build_context
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails
from rbcli.services.lifecycle.promote import (
    PromoteOptions,
    ReleaseBundlePromoteCommand,
    parse_repositories,
)


def promote(
    name: str = typer.Argument(..., help="Release bundle name"),
    version: str = typer.Argument(..., help="Release bundle version"),
    environment: str = typer.Argument(..., help="Target environment"),
    project: str = typer.Option("", "--project", help="Project key"),
    signing_key: str = typer.Option("", "--signing-key", help="Signing key name"),
    include_repos: str | None = typer.Option(
        None, "--include-repos", help="Repositories to promote to: 'repo1;repo2'"
    ),
    exclude_repos: str | None = typer.Option(
        None, "--exclude-repos", help="Repositories to skip: 'repo1;repo2'"
    ),
    promotion_type: str = typer.Option(
        "", "--promotion-type", help="copy, move, without_copy or without_copy_move"
    ),
    sync: bool = typer.Option(True, "--sync/--async", help="Wait for the operation to complete"),
) -> None:
    """Promote a release bundle to an environment."""
    ctx = build_context()

    command = ReleaseBundlePromoteCommand(
        artifactory=ctx.artifactory,
        lifecycle=ctx.lifecycle,
        console=ctx.console,
        options=PromoteOptions(
            details=ReleaseBundleDetails(name=name, version=version),
            environment=environment,
            params=QueryParams(project_key=project, is_async=not sync, promotion_type=promotion_type),
            signing_key=signing_key,
            include_repositories=parse_repositories(include_repos),
            exclude_repositories=parse_repositories(exclude_repos),
        ),
    )
    exit_on_error(command.run(), ctx)
    ctx.console.success(f"release bundle {name}/{version} promoted to {environment}")
