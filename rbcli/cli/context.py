from __future__ import annotations

from dataclasses import dataclass

import typer

from rbcli.clients.http import client_for
from rbcli.core.config import (
    ServerDetails,
    load_config_or_default,
    resolve_config_path,
    resolve_server_details,
)
from rbcli.core.errors import ErrorCode
from rbcli.core.result import Err
from rbcli.output.console import ConsoleProtocol, RichConsole
from rbcli.services.lifecycle.artifactory import ArtifactoryApi, ArtifactoryService
from rbcli.services.lifecycle.lifecycle_api import LifecycleApi, LifecycleService


@dataclass(frozen=True, slots=True)
class CLIContext:
    server: ServerDetails
    console: ConsoleProtocol
    artifactory: ArtifactoryApi
    lifecycle: LifecycleApi


def build_context() -> CLIContext:
    config_path = resolve_config_path(None)
    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    server_result = resolve_server_details(config=config_result.value)
    if isinstance(server_result, Err):
        typer.echo(f"error: {server_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    server = server_result.value
    http = client_for(server)
    return CLIContext(
        server=server,
        console=RichConsole(),
        artifactory=ArtifactoryService(http=http, server=server),
        lifecycle=LifecycleService(http=http, server=server),
    )
