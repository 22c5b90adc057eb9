"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from rbcli.core.errors import ErrorCode
from rbcli.core.result import Err, Result
from rbcli.output.console import Style
from rbcli.services.lifecycle.errors import LifecycleError, LifecycleErrorKind

if TYPE_CHECKING:
    from rbcli.cli.context import CLIContext


def exit_code_for(kind: LifecycleErrorKind) -> ErrorCode:
    match kind:
        case "unsupported_version":
            return ErrorCode.ENV_ERROR
        case "network" | "resolution_failed":
            return ErrorCode.NETWORK_ERROR
        case "io":
            return ErrorCode.IO_ERROR
        case _:
            return ErrorCode.USER_ERROR


def fail(error: LifecycleError, ctx: CLIContext) -> NoReturn:
    ctx.console.error(error.message)
    if error.hint:
        ctx.console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(exit_code_for(error.kind)))


def exit_on_error[T](result: Result[T, LifecycleError], ctx: CLIContext) -> T:
    """Return the Ok value, or report the error and exit with its code."""
    if isinstance(result, Err):
        fail(result.error, ctx)
    return result.value


def usage_error(message: str) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(ErrorCode.USER_ERROR))
