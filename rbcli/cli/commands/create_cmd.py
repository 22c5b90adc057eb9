from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import typer

from rbcli.cli.commands._helpers import exit_on_error, fail
from rbcli.cli.context import build_context
from rbcli.core.result import Err, Ok, Result
from rbcli.services.lifecycle.create import CreateOptions, ReleaseBundleCreateCommand
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails
from rbcli.services.lifecycle.spec import (
    ENV_BUILD_NAME,
    ENV_BUILD_NUMBER,
    CreationInputs,
    resolve_creation_spec,
)
from rbcli.services.lifecycle.version import VersionSource, supports_multi_source

SINGLE_CREATION_METHOD_ERR_MSG = (
    "exactly one creation source must be supplied: --spec, --builds, or --release-bundles.\n"
    "Opt to use the --spec option as the --builds and --release-bundles are deprecated"
)
MIXED_SOURCE_FLAGS_ERR_MSG = (
    "only multiple sources must be supplied: --source-type-release-bundles, --source-type-builds,\n"
    "or one of: --spec, --builds or --release-bundles"
)
MISSING_BUILD_ERR_MSG = (
    f"Either --build-name or {ENV_BUILD_NAME}, and --build-number or {ENV_BUILD_NUMBER} must be defined"
)


def check_create_flags(
    inputs: CreationInputs,
    *,
    artifactory: VersionSource,
    env: Mapping[str, str] | None = None,
) -> Result[None, LifecycleError]:
    """Reject flag combinations before anything else runs.

    The server is only asked for its version when multi-source flags are
    present.
    """
    environ = os.environ if env is None else env
    methods = sum(
        1
        for present in (
            inputs.spec_path is not None,
            inputs.builds_spec_path is not None,
            inputs.release_bundles_spec_path is not None,
        )
        if present
    )
    if methods > 1:
        return Err(LifecycleError(kind="ambiguous_input", message=SINGLE_CREATION_METHOD_ERR_MSG))

    multi_source = bool(inputs.sources_builds or inputs.sources_release_bundles)
    if multi_source:
        supported = supports_multi_source(artifactory)
        if isinstance(supported, Err):
            return supported
        if methods > 0:
            return Err(LifecycleError(kind="ambiguous_input", message=MIXED_SOURCE_FLAGS_ERR_MSG))

    if methods == 0 and not multi_source:
        has_name = bool(inputs.build_name) or bool(environ.get(ENV_BUILD_NAME))
        has_number = bool(inputs.build_number) or bool(environ.get(ENV_BUILD_NUMBER))
        if not (has_name and has_number):
            return Err(LifecycleError(kind="missing_input", message=MISSING_BUILD_ERR_MSG))

    return Ok(None)


def create(
    name: str = typer.Argument(..., help="Release bundle name"),
    version: str = typer.Argument(..., help="Release bundle version"),
    spec: Path | None = typer.Option(None, "--spec", help="Path to a file spec"),
    spec_vars: str | None = typer.Option(
        None, "--spec-vars", help="Spec variables: 'key1=value1;key2=value2'"
    ),
    builds: Path | None = typer.Option(
        None, "--builds", help="[Deprecated] Path to a builds spec file"
    ),
    release_bundles: Path | None = typer.Option(
        None, "--release-bundles", help="[Deprecated] Path to a release bundles spec file"
    ),
    source_type_builds: str | None = typer.Option(
        None,
        "--source-type-builds",
        help="Builds to include: 'name=b1, id=1, include-deps=true; name=b2, id=2'",
    ),
    source_type_release_bundles: str | None = typer.Option(
        None,
        "--source-type-release-bundles",
        help="Release bundles to include: 'name=rb1, version=1.0; name=rb2, version=2.0'",
    ),
    build_name: str | None = typer.Option(None, "--build-name", help="Build name"),
    build_number: str | None = typer.Option(None, "--build-number", help="Build number"),
    project: str = typer.Option("", "--project", help="Project key"),
    signing_key: str = typer.Option("", "--signing-key", help="Signing key name"),
    sync: bool = typer.Option(True, "--sync/--async", help="Wait for the operation to complete"),
    draft: bool = typer.Option(False, "--draft", help="Create the release bundle as a draft"),
) -> None:
    """Create a release bundle."""
    ctx = build_context()

    inputs = CreationInputs(
        spec_path=spec,
        spec_vars=spec_vars,
        builds_spec_path=builds,
        release_bundles_spec_path=release_bundles,
        sources_builds=source_type_builds,
        sources_release_bundles=source_type_release_bundles,
        build_name=build_name,
        build_number=build_number,
        project=project,
    )

    exit_on_error(check_create_flags(inputs, artifactory=ctx.artifactory), ctx)
    creation_spec = exit_on_error(resolve_creation_spec(inputs), ctx)

    command = ReleaseBundleCreateCommand(
        artifactory=ctx.artifactory,
        lifecycle=ctx.lifecycle,
        console=ctx.console,
        options=CreateOptions(
            details=ReleaseBundleDetails(name=name, version=version),
            params=QueryParams(project_key=project, is_async=not sync),
            signing_key=signing_key,
            draft=draft,
            spec=creation_spec,
            builds_spec_path=builds,
            release_bundles_spec_path=release_bundles,
            sources_builds=source_type_builds or "",
            sources_release_bundles=source_type_release_bundles or "",
        ),
    )
    result = command.run()
    if isinstance(result, Err):
        fail(result.error, ctx)
    ctx.console.success(f"release bundle {name}/{version} created")

