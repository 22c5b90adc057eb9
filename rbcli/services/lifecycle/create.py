"""Release bundle creation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import StrDict
from rbcli.output.console import ConsoleProtocol, Style
from rbcli.services.lifecycle.artifactory import ArtifactoryApi
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.lifecycle_api import LifecycleApi
from rbcli.services.lifecycle.model import (
    AqlSource,
    ArtifactsSource,
    BuildsSource,
    CreationRequest,
    MultiSourceRequest,
    PackagesSource,
    QueryParams,
    RbSource,
    ReleaseBundleDetails,
    ReleaseBundlesSource,
    SingleSourceRequest,
    SourceType,
    SpecFiles,
)
from rbcli.services.lifecycle.sources import (
    aql_source_from_spec,
    artifacts_source_from_spec,
    builds_source_from_legacy,
    builds_source_from_spec,
    packages_source_from_spec,
    release_bundles_source_from_legacy,
    release_bundles_source_from_spec,
    sources_from_flags,
    sources_from_spec,
    with_repository_keys,
    with_repository_keys_from_project,
)
from rbcli.services.lifecycle.spec import read_builds_spec, read_release_bundles_spec
from rbcli.services.lifecycle.validation import validate_and_identify_spec
from rbcli.services.lifecycle.version import (
    MIN_LIFECYCLE_VERSION,
    check_server_version,
    supports_multi_source,
)

NO_SOURCE_IDENTIFIED_ERR_MSG = "release bundle creation failed, unable to identify source for creation"


@dataclass(frozen=True, slots=True)
class CreateOptions:
    details: ReleaseBundleDetails
    params: QueryParams = field(default_factory=QueryParams)
    signing_key: str = ""
    draft: bool = False
    spec: SpecFiles | None = None
    builds_spec_path: Path | None = None
    release_bundles_spec_path: Path | None = None
    sources_builds: str = ""
    sources_release_bundles: str = ""


def send_creation_request(
    lifecycle: LifecycleApi,
    details: ReleaseBundleDetails,
    params: QueryParams,
    request: CreationRequest,
) -> Result[StrDict, LifecycleError]:
    """Dispatch a request to the lifecycle method matching its shape."""
    match request:
        case MultiSourceRequest(sources=sources, signing_key=key, draft=draft):
            return lifecycle.create_from_multiple_sources(details, params, key, sources, draft)
        case SingleSourceRequest(source=AqlSource() as source, signing_key=key, draft=draft):
            return lifecycle.create_from_aql(details, params, key, source, draft)
        case SingleSourceRequest(source=ArtifactsSource() as source, signing_key=key, draft=draft):
            return lifecycle.create_from_artifacts(details, params, key, source, draft)
        case SingleSourceRequest(source=BuildsSource() as source, signing_key=key, draft=draft):
            return lifecycle.create_from_builds(details, params, key, source, draft)
        case SingleSourceRequest(source=ReleaseBundlesSource() as source, signing_key=key, draft=draft):
            return lifecycle.create_from_release_bundles(details, params, key, source, draft)
        case SingleSourceRequest(source=PackagesSource() as source, signing_key=key, draft=draft):
            return lifecycle.create_from_packages(details, params, key, source, draft)
    raise TypeError(f"unsupported creation request: {request!r}")


@dataclass(slots=True)
class ReleaseBundleCreateCommand:
    """Create a release bundle from a spec, legacy spec files or source flags.

    One server-side creation call at most; every validation failure is
    reported before anything is sent.
    """

    artifactory: ArtifactoryApi
    lifecycle: LifecycleApi
    console: ConsoleProtocol
    options: CreateOptions

    def run(self) -> Result[StrDict, LifecycleError]:
        ok = check_server_version(self.artifactory, MIN_LIFECYCLE_VERSION)
        if isinstance(ok, Err):
            return ok

        multi_source_supported = isinstance(supports_multi_source(self.artifactory), Ok)

        detected = self._identify_source_types(multi_source_supported)
        if isinstance(detected, Err):
            return detected
        source_types = detected.value

        if source_types and all(t == source_types[0] for t in source_types):
            return self._create_from_single_source(source_types[0])

        if multi_source_supported:
            return self._create_from_multiple_sources()

        return Err(LifecycleError(kind="missing_input", message=NO_SOURCE_IDENTIFIED_ERR_MSG))

    def _identify_source_types(
        self, multi_source_supported: bool
    ) -> Result[list[SourceType], LifecycleError]:
        opts = self.options
        source_types: list[SourceType] = []
        if opts.builds_spec_path is not None:
            source_types.append(SourceType.BUILDS)
        if opts.release_bundles_spec_path is not None:
            source_types.append(SourceType.RELEASE_BUNDLES)

        if opts.spec is not None:
            return validate_and_identify_spec(opts.spec.files, multi_source_supported)
        return Ok(source_types)

    def _send(self, request: CreationRequest, label: str) -> Result[StrDict, LifecycleError]:
        details = self.options.details
        self.console.print(
            f"create release bundle {details.name}/{details.version} from {label}", Style.DIM
        )
        return send_creation_request(self.lifecycle, details, self.options.params, request)

    def _single(self, source: RbSource) -> SingleSourceRequest:
        opts = self.options
        return SingleSourceRequest(source=source, signing_key=opts.signing_key, draft=opts.draft)

    def _create_from_single_source(self, source_type: SourceType) -> Result[StrDict, LifecycleError]:
        match source_type:
            case SourceType.AQL:
                return self._create_from_aql()
            case SourceType.ARTIFACTS:
                return self._create_from_artifacts()
            case SourceType.BUILDS:
                return self._create_from_builds()
            case SourceType.RELEASE_BUNDLES:
                return self._create_from_release_bundles()
            case SourceType.PACKAGES:
                return self._create_from_packages()

    def _spec(self) -> SpecFiles:
        return self.options.spec or SpecFiles(files=())

    def _create_from_aql(self) -> Result[StrDict, LifecycleError]:
        source = aql_source_from_spec(self._spec())
        return self._send(self._single(source), "aql")

    def _create_from_artifacts(self) -> Result[StrDict, LifecycleError]:
        source = artifacts_source_from_spec(self.artifactory, self._spec())
        if isinstance(source, Err):
            return source
        return self._send(self._single(source.value), "artifacts")

    def _create_from_builds(self) -> Result[StrDict, LifecycleError]:
        path = self.options.builds_spec_path
        if path is not None:
            legacy = read_builds_spec(path)
            if isinstance(legacy, Err):
                return legacy
            source = builds_source_from_legacy(self.artifactory, legacy.value)
        else:
            source = builds_source_from_spec(self.artifactory, self._spec())
        if isinstance(source, Err):
            return source

        if not source.value.builds:
            return Err(
                LifecycleError(
                    kind="missing_input",
                    message="at least one build is expected in order to create a release bundle from builds",
                )
            )
        return self._send(self._single(source.value), "builds")

    def _create_from_release_bundles(self) -> Result[StrDict, LifecycleError]:
        path = self.options.release_bundles_spec_path
        if path is not None:
            legacy = read_release_bundles_spec(path)
            if isinstance(legacy, Err):
                return legacy
            bundles = release_bundles_source_from_legacy(legacy.value)
        else:
            parsed = release_bundles_source_from_spec(self._spec())
            if isinstance(parsed, Err):
                return parsed
            bundles = parsed.value

        if not bundles.release_bundles:
            return Err(
                LifecycleError(
                    kind="missing_input",
                    message=(
                        "at least one release bundle is expected in order to create a release bundle "
                        "from release bundles"
                    ),
                )
            )
        return self._send(self._single(with_repository_keys(bundles)), "release bundles")

    def _create_from_packages(self) -> Result[StrDict, LifecycleError]:
        source = packages_source_from_spec(self._spec())
        if not source.packages:
            return Err(
                LifecycleError(
                    kind="missing_input",
                    message=(
                        "at least one package is expected in order to create a release bundle from packages"
                    ),
                )
            )
        return self._send(self._single(source), "packages")

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
            return Err(LifecycleError(kind="missing_input", message="no spec file input"))

        detected = validate_and_identify_spec(opts.spec.files, True)
        if isinstance(detected, Err):
            return detected
        return sources_from_spec(self.artifactory, opts.spec, detected.value)

    def _create_from_multiple_sources(self) -> Result[StrDict, LifecycleError]:
        collected = self._collect_sources()
        if isinstance(collected, Err):
            return collected

        sources = with_repository_keys_from_project(collected.value)
        if not sources:
            return Err(LifecycleError(kind="missing_input", message=NO_SOURCE_IDENTIFIED_ERR_MSG))

        request = MultiSourceRequest(
            sources=sources,
            signing_key=self.options.signing_key,
            draft=self.options.draft,
        )
        return self._send(request, "multiple sources")
