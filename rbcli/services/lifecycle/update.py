"""Adding sources to an existing release bundle."""

from __future__ import annotations

from dataclasses import dataclass, field

from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import StrDict
from rbcli.output.console import ConsoleProtocol, Style
from rbcli.services.lifecycle.artifactory import ArtifactoryApi
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.lifecycle_api import LifecycleApi
from rbcli.services.lifecycle.model import QueryParams, RbSource, ReleaseBundleDetails, SpecFiles
from rbcli.services.lifecycle.sources import sources_from_flags, sources_from_spec
from rbcli.services.lifecycle.validation import validate_and_identify_spec
from rbcli.services.lifecycle.version import MIN_LIFECYCLE_VERSION, check_server_version

MISSING_OPERATION_ERR_MSG = "at least one operation flag must be provided: --add"
NO_UPDATE_INPUT_ERR_MSG = "no spec file or source flags provided"
EMPTY_UPDATE_SOURCES_ERR_MSG = "at least one source must be provided to update a release bundle"


@dataclass(frozen=True, slots=True)
class UpdateOptions:
    details: ReleaseBundleDetails
    params: QueryParams = field(default_factory=QueryParams)
    signing_key: str = ""
    add_sources: bool = False
    spec: SpecFiles | None = None
    sources_builds: str = ""
    sources_release_bundles: str = ""


@dataclass(slots=True)
class ReleaseBundleUpdateCommand:
    """Add sources to a release bundle.

    Update always runs in multi-source mode; there is no legacy shape.
    Project keys on release-bundle sources are sent as given.
    """

    artifactory: ArtifactoryApi
    lifecycle: LifecycleApi
    console: ConsoleProtocol
    options: UpdateOptions

    def run(self) -> Result[StrDict, LifecycleError]:
        ok = check_server_version(self.artifactory, MIN_LIFECYCLE_VERSION)
        if isinstance(ok, Err):
            return ok

        if not self.options.add_sources:
            return Err(LifecycleError(kind="missing_input", message=MISSING_OPERATION_ERR_MSG))

        collected = self._collect_sources()
        if isinstance(collected, Err):
            return collected
        if not collected.value:
            return Err(LifecycleError(kind="missing_input", message=EMPTY_UPDATE_SOURCES_ERR_MSG))

        opts = self.options
        bundle = f"{opts.details.name}/{opts.details.version}"
        self.console.print(
            f"add {len(collected.value)} source(s) to release bundle {bundle}",
            Style.DIM,
        )
        return self.lifecycle.update_from_multiple_sources(
            opts.details, opts.params, opts.signing_key, collected.value
        )

    def _collect_sources(self) -> Result[tuple[RbSource, ...], LifecycleError]:
        opts = self.options
        if opts.sources_builds or opts.sources_release_bundles:
            return Ok(
                sources_from_flags(
                    sources_builds=opts.sources_builds,
                    sources_release_bundles=opts.sources_release_bundles,
                    project_key=opts.params.project_key,
                    console=self.console,
                )
            )

        if opts.spec is None:
            return Err(LifecycleError(kind="missing_input", message=NO_UPDATE_INPUT_ERR_MSG))

        detected = validate_and_identify_spec(opts.spec.files, True)
        if isinstance(detected, Err):
            return detected
        return sources_from_spec(self.artifactory, opts.spec, detected.value)
