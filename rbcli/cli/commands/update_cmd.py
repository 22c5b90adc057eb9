from __future__ import annotations

from pathlib import Path

import typer

from rbcli.cli.commands._helpers import exit_on_error, fail, usage_error
from rbcli.cli.context import build_context
from rbcli.core.result import Err
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails, SpecFiles
from rbcli.services.lifecycle.spec import load_spec, parse_spec_vars
from rbcli.services.lifecycle.update import ReleaseBundleUpdateCommand, UpdateOptions

MISSING_UPDATE_SOURCE_ERR_MSG = (
    "either --spec or source type flags "
    "(--source-type-release-bundles, --source-type-builds) must be provided"
)


def update(
    name: str = typer.Argument(..., help="Release bundle name"),
    version: str = typer.Argument(..., help="Release bundle version"),
    add: bool = typer.Option(False, "--add", help="Add sources to the release bundle"),
    spec: Path | None = typer.Option(None, "--spec", help="Path to a file spec"),
    spec_vars: str | None = typer.Option(
        None, "--spec-vars", help="Spec variables: 'key1=value1;key2=value2'"
    ),
    source_type_builds: str | None = typer.Option(
        None,
        "--source-type-builds",
        help="Builds to add: 'name=b1, id=1, include-deps=true; name=b2, id=2'",
    ),
    source_type_release_bundles: str | None = typer.Option(
        None,
        "--source-type-release-bundles",
        help="Release bundles to add: 'name=rb1, version=1.0; name=rb2, version=2.0'",
    ),
    project: str = typer.Option("", "--project", help="Project key"),
    signing_key: str = typer.Option("", "--signing-key", help="Signing key name"),
    sync: bool = typer.Option(True, "--sync/--async", help="Wait for the operation to complete"),
) -> None:
    """Add sources to an existing release bundle."""
    if spec is None and not source_type_builds and not source_type_release_bundles:
        usage_error(MISSING_UPDATE_SOURCE_ERR_MSG)

    ctx = build_context()

    update_spec: SpecFiles | None = None
    if spec is not None:
        update_spec = exit_on_error(load_spec(spec, spec_vars=parse_spec_vars(spec_vars)), ctx)

    command = ReleaseBundleUpdateCommand(
        artifactory=ctx.artifactory,
        lifecycle=ctx.lifecycle,
        console=ctx.console,
        options=UpdateOptions(
            details=ReleaseBundleDetails(name=name, version=version),
            params=QueryParams(project_key=project, is_async=not sync),
            signing_key=signing_key,
            add_sources=add,
            spec=update_spec,
            sources_builds=source_type_builds or "",
            sources_release_bundles=source_type_release_bundles or "",
        ),
    )
    result = command.run()
    if isinstance(result, Err):
        fail(result.error, ctx)
    ctx.console.success(f"release bundle {name}/{version} updated")
