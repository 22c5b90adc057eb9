from __future__ import annotations

from pathlib import Path

import typer

from rbcli.cli.commands._helpers import exit_on_error, usage_error
from rbcli.cli.context import build_context
from rbcli.services.lifecycle.delete import (
    DeleteLocalOptions,
    DeleteRemoteOptions,
    ReleaseBundleDeleteLocalCommand,
    ReleaseBundleDeleteRemoteCommand,
    distribution_rules_from_flags,
    read_distribution_rules,
)
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails

MIXED_DIST_RULES_ERR_MSG = "--dist-rules cannot be combined with --site, --city or --country-codes"


def _confirm_or_abort(question: str, quiet: bool) -> None:
    if quiet:
        return
    if not typer.confirm(question, default=False):
        typer.echo("aborted", err=True)
        raise typer.Exit(code=0)


def delete_local(
    name: str = typer.Argument(..., help="Release bundle name"),
    version: str = typer.Argument(..., help="Release bundle version"),
    environment: str = typer.Argument("", help="Only delete promotions to this environment"),
    project: str = typer.Option("", "--project", help="Project key"),
    sync: bool = typer.Option(True, "--sync/--async", help="Wait for the operation to complete"),
    quiet: bool = typer.Option(False, "--quiet", help="Skip the confirmation prompt"),
) -> None:
    """Delete a release bundle version, or its promotions to one environment."""
    target = f"{name}/{version}" + (f" promotions to {environment}" if environment else "")
    _confirm_or_abort(f"Delete release bundle {target}?", quiet)

    ctx = build_context()

    command = ReleaseBundleDeleteLocalCommand(
        artifactory=ctx.artifactory,
        lifecycle=ctx.lifecycle,
        console=ctx.console,
        options=DeleteLocalOptions(
            details=ReleaseBundleDetails(name=name, version=version),
            params=QueryParams(project_key=project, is_async=not sync),
            environment=environment,
        ),
    )
    exit_on_error(command.run(), ctx)
    ctx.console.success(f"release bundle {target} deleted")


def delete_remote(
    name: str = typer.Argument(..., help="Release bundle name"),
    version: str = typer.Argument(..., help="Release bundle version"),
    site: str = typer.Option("", "--site", help="Distribution target site; '*' by default"),
    city: str = typer.Option("", "--city", help="Distribution target city"),
    country_codes: str = typer.Option("", "--country-codes", help="Country codes: 'US;DE'"),
    dist_rules: Path | None = typer.Option(None, "--dist-rules", help="Path to a distribution rules file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would be deleted"),
    project: str = typer.Option("", "--project", help="Project key"),
    sync: bool = typer.Option(True, "--sync/--async", help="Wait for the operation to complete"),
    quiet: bool = typer.Option(False, "--quiet", help="Skip the confirmation prompt"),
) -> None:
    """Delete a release bundle from its distribution targets."""
    if dist_rules is not None and (site or city or country_codes):
        usage_error(MIXED_DIST_RULES_ERR_MSG)
    if not dry_run:
        _confirm_or_abort(f"Delete release bundle {name}/{version} from distribution targets?", quiet)

    ctx = build_context()

    if dist_rules is not None:
        rules = exit_on_error(read_distribution_rules(dist_rules), ctx)
    else:
        rules = distribution_rules_from_flags(site, city, country_codes)

    command = ReleaseBundleDeleteRemoteCommand(
        artifactory=ctx.artifactory,
        lifecycle=ctx.lifecycle,
        console=ctx.console,
        options=DeleteRemoteOptions(
            details=ReleaseBundleDetails(name=name, version=version),
            params=QueryParams(project_key=project, is_async=not sync),
            rules=rules,
            dry_run=dry_run,
        ),
    )
    exit_on_error(command.run(), ctx)
    if dry_run:
        ctx.console.success(f"dry run of remote delete for {name}/{version} completed")
    else:
        ctx.console.success(f"release bundle {name}/{version} deleted from distribution targets")
