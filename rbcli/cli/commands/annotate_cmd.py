from __future__ import annotations

import typer

from rbcli.cli.commands._helpers import exit_on_error
from rbcli.cli.context import build_context
from rbcli.services.lifecycle.annotate import AnnotateOptions, ReleaseBundleAnnotateCommand
from rbcli.services.lifecycle.identifiers import DEFAULT_PROJECT
from rbcli.services.lifecycle.model import ReleaseBundleDetails


def annotate(
    name: str = typer.Argument(..., help="Release bundle name"),
    version: str = typer.Argument(..., help="Release bundle version"),
    tag: str | None = typer.Option(None, "--tag", help="Tag to set; an empty value clears it"),
    properties: str = typer.Option("", "--properties", help="Properties to set: 'k1=v1;k2=v2,v3'"),
    del_prop: str = typer.Option("", "--del-prop", help="Property keys to delete: 'k1;k2'"),
    recursive: bool = typer.Option(
        True, "--recursive/--no-recursive", help="Apply properties to the bundle's artifacts too"
    ),
    project: str = typer.Option("", "--project", help="Project key"),
) -> None:
    """Tag a release bundle or change its properties."""
    ctx = build_context()

    command = ReleaseBundleAnnotateCommand(
        artifactory=ctx.artifactory,
        lifecycle=ctx.lifecycle,
        console=ctx.console,
        options=AnnotateOptions(
            details=ReleaseBundleDetails(name=name, version=version),
            project=project or DEFAULT_PROJECT,
            tag=tag,
            properties=properties,
            delete_properties=del_prop,
            recursive=recursive,
        ),
    )
    exit_on_error(command.run(), ctx)
    ctx.console.success(f"release bundle {name}/{version} annotated")
