"""Release bundle promotion to an environment."""

from __future__ import annotations

from dataclasses import dataclass, field

from rbcli.core.result import Err, Result
from rbcli.core.structured import StrDict
from rbcli.output.console import ConsoleProtocol, Style
from rbcli.services.lifecycle.artifactory import ArtifactoryApi
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.lifecycle_api import LifecycleApi, PromotionOptions
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails
from rbcli.services.lifecycle.version import MIN_LIFECYCLE_VERSION, check_server_version

PROMOTION_TYPES = ("copy", "move", "without_copy", "without_copy_move")


def parse_repositories(raw: str | None) -> tuple[str, ...]:
    """Split a ``repo1;repo2`` list, dropping blanks."""
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(";") if item.strip())


@dataclass(frozen=True, slots=True)
class PromoteOptions:
    details: ReleaseBundleDetails
    environment: str
    params: QueryParams = field(default_factory=QueryParams)
    signing_key: str = ""
    include_repositories: tuple[str, ...] = ()
    exclude_repositories: tuple[str, ...] = ()


@dataclass(slots=True)
class ReleaseBundlePromoteCommand:
    artifactory: ArtifactoryApi
    lifecycle: LifecycleApi
    console: ConsoleProtocol
    options: PromoteOptions

    def run(self) -> Result[StrDict, LifecycleError]:
        ok = check_server_version(self.artifactory, MIN_LIFECYCLE_VERSION)
        if isinstance(ok, Err):
            return ok

        opts = self.options
        if not opts.environment:
            return Err(LifecycleError(kind="missing_input", message="a target environment must be provided"))
        if opts.params.promotion_type and opts.params.promotion_type not in PROMOTION_TYPES:
            return Err(
                LifecycleError(
                    kind="invalid_input",
                    message=f"unsupported promotion type '{opts.params.promotion_type}'",
                    hint=f"expected one of: {', '.join(PROMOTION_TYPES)}",
                )
            )

        self.console.print(
            f"promote release bundle {opts.details.name}/{opts.details.version} to {opts.environment}",
            Style.DIM,
        )
        return self.lifecycle.promote(
            opts.details,
            opts.params,
            opts.signing_key,
            PromotionOptions(
                environment=opts.environment,
                include_repositories=opts.include_repositories,
                exclude_repositories=opts.exclude_repositories,
            ),
        )
