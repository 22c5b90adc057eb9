"""Conversion of specs and flags into typed creation sources."""

from __future__ import annotations

from collections.abc import Sequence

from rbcli.core.result import Err, Ok, Result
from rbcli.output.console import ConsoleProtocol
from rbcli.services.lifecycle.artifactory import ArtifactoryApi
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.identifiers import (
    RELEASE_BUNDLES_V2,
    build_info_repository,
    project_suffix,
    split_name_and_version,
)
from rbcli.services.lifecycle.model import (
    AqlSource,
    ArtifactsSource,
    ArtifactSource,
    BuildSource,
    BuildsSource,
    FileGroup,
    PackageSource,
    PackagesSource,
    RbSource,
    ReleaseBundleSource,
    ReleaseBundlesSource,
    SourceType,
    SpecFiles,
)
from rbcli.services.lifecycle.search import (
    ResultReader,
    build_name_and_number,
    latest_build_number,
    search_files,
)
from rbcli.services.lifecycle.spec import LegacyBuild, LegacyReleaseBundle
from rbcli.services.lifecycle.validation import parse_flag


def aql_source_from_spec(spec: SpecFiles) -> AqlSource:
    """Wrap the first group's ``items.find`` criteria as a full AQL query."""
    for group in spec.files:
        if group.aql:
            return AqlSource(query=f"items.find({group.aql})")
    return AqlSource(query="")


def artifact_groups(spec: SpecFiles) -> list[FileGroup]:
    return [group for group in spec.files if group.pattern]


def _collect_artifacts(readers: Sequence[ResultReader]) -> Result[ArtifactsSource, LifecycleError]:
    artifacts: list[ArtifactSource] = []
    for reader in readers:
        items = reader.items()
        if isinstance(items, Err):
            return items
        artifacts.extend(ArtifactSource(path=item.full_path, sha256=item.sha256) for item in items.value)
    return Ok(ArtifactsSource(artifacts=tuple(artifacts)))


def artifacts_source_from_spec(
    api: ArtifactoryApi, spec: SpecFiles
) -> Result[ArtifactsSource, LifecycleError]:
    """Search every pattern group and collect path and checksum per artifact.

    Temporary search results are always removed; a cleanup failure is
    reported together with any conversion failure.
    """
    search = search_files(api, artifact_groups(spec))
    if isinstance(search, Err):
        return search
    readers, cleanup = search.value

    try:
        converted = _collect_artifacts(readers)
    finally:
        removed = cleanup()

    if isinstance(removed, Err):
        if isinstance(converted, Err):
            return Err(converted.error.join(removed.error))
        return removed
    return converted


def builds_source_from_legacy(
    api: ArtifactoryApi, builds: Sequence[LegacyBuild]
) -> Result[BuildsSource, LifecycleError]:
    out: list[BuildSource] = []
    for build in builds:
        if not build.name:
            return Err(
                LifecycleError(kind="invalid_input", message="every build in a builds spec must have a name")
            )
        number = build.number
        if not number:
            latest = latest_build_number(api, build.name, build.project)
            if isinstance(latest, Err):
                return latest
            number = latest.value
            if not number:
                return Err(
                    LifecycleError(
                        kind="resolution_failed",
                        message=(
                            f"could not find a build info with name '{build.name}' in artifactory"
                            f"{project_suffix(build.project)}"
                        ),
                    )
                )
        out.append(
            BuildSource(
                name=build.name,
                number=number,
                repository=build_info_repository(build.project),
                include_dependencies=build.include_dependencies,
            )
        )
    return Ok(BuildsSource(builds=tuple(out)))


def builds_source_from_spec(
    api: ArtifactoryApi, spec: SpecFiles
) -> Result[BuildsSource, LifecycleError]:
    out: list[BuildSource] = []
    for group in spec.files:
        if not group.build:
            continue
        project = group.project or ""
        resolved = build_name_and_number(api, group.build, project)
        if isinstance(resolved, Err):
            return resolved
        name, number = resolved.value

        include_deps = parse_flag(group.include_deps, default=False)
        if include_deps is None:
            return Err(
                LifecycleError(
                    kind="invalid_input",
                    message=f"invalid value provided to the 'includeDeps' field: '{group.include_deps}'",
                )
            )
        out.append(
            BuildSource(
                name=name,
                number=number,
                repository=build_info_repository(project),
                include_dependencies=include_deps,
            )
        )
    return Ok(BuildsSource(builds=tuple(out)))


def release_bundles_source_from_legacy(bundles: Sequence[LegacyReleaseBundle]) -> ReleaseBundlesSource:
    return ReleaseBundlesSource(
        release_bundles=tuple(
            ReleaseBundleSource(name=rb.name, version=rb.version, project_key=rb.project) for rb in bundles
        )
    )


def release_bundles_source_from_spec(spec: SpecFiles) -> Result[ReleaseBundlesSource, LifecycleError]:
    out: list[ReleaseBundleSource] = []
    for group in spec.files:
        if not group.bundle:
            continue
        name, version = split_name_and_version(group.bundle)
        if not name or not version:
            return Err(
                LifecycleError(
                    kind="invalid_input",
                    message=(
                        "invalid release bundle source was provided. Both name and version are mandatory. "
                        f"Provided name: '{name}', version: '{version}'"
                    ),
                )
            )
        out.append(ReleaseBundleSource(name=name, version=version, project_key=group.project or ""))
    return Ok(ReleaseBundlesSource(release_bundles=tuple(out)))


def packages_source_from_spec(spec: SpecFiles) -> PackagesSource:
    return PackagesSource(
        packages=tuple(
            PackageSource(
                name=group.package,
                version=group.version or "",
                package_type=group.package_type or "",
                repository_key=group.repo_key or "",
            )
            for group in spec.files
            if group.package
        )
    )


def with_repository_keys(source: ReleaseBundlesSource) -> ReleaseBundlesSource:
    """Derive ``<project>-release-bundles-v2`` for bundles that name a project."""
    return ReleaseBundlesSource(
        release_bundles=tuple(
            ReleaseBundleSource(
                name=rb.name,
                version=rb.version,
                project_key=rb.project_key,
                repository_key=(
                    f"{rb.project_key}-{RELEASE_BUNDLES_V2}" if rb.project_key else rb.repository_key
                ),
            )
            for rb in source.release_bundles
        )
    )


def with_repository_keys_from_project(sources: Sequence[RbSource]) -> tuple[RbSource, ...]:
    """Apply ``with_repository_keys`` to every release-bundles source.

    Only triggered when the list leads with release bundles; otherwise the
    list is returned as is.
    """
    if not sources or not isinstance(sources[0], ReleaseBundlesSource):
        return tuple(sources)
    return tuple(
        with_repository_keys(source) if isinstance(source, ReleaseBundlesSource) else source
        for source in sources
    )


def parse_key_value_string(entry: str, console: ConsoleProtocol) -> dict[str, str]:
    """Parse ``k1=v1,k2=v2``; malformed pairs are reported and skipped."""
    out: dict[str, str] = {}
    for pair in entry.split(","):
        if "=" not in pair:
            console.warning(f"ignoring '{pair}': inappropriate format, it should be k=v")
            continue
        key, value = pair.split("=", 1)
        out[key.strip()] = value.strip()
    return out


def _entries(raw: str, console: ConsoleProtocol) -> list[str]:
    entries: list[str] = []
    for entry in raw.split(";"):
        if entry.strip():
            entries.append(entry.strip())
        else:
            console.warning(f"ignoring an empty entry in '{raw}'")
    return entries


def builds_source_from_flag(raw: str, project_key: str, console: ConsoleProtocol) -> BuildsSource | None:
    """Parse ``name=a, id=1, include-deps=true; name=b, id=2``."""
    builds: list[BuildSource] = []
    for entry in _entries(raw, console):
        fields = parse_key_value_string(entry, console)
        builds.append(
            BuildSource(
                name=fields.get("name", ""),
                number=fields.get("id", ""),
                repository=build_info_repository(project_key),
                include_dependencies=parse_flag(fields.get("include-deps"), default=False) is True,
            )
        )
    if not builds:
        return None
    return BuildsSource(builds=tuple(builds))


def release_bundles_source_from_flag(
    raw: str, project_key: str, console: ConsoleProtocol
) -> ReleaseBundlesSource | None:
    """Parse ``name=a, version=1.0; name=b, version=2.0``."""
    bundles: list[ReleaseBundleSource] = []
    for entry in _entries(raw, console):
        fields = parse_key_value_string(entry, console)
        bundles.append(
            ReleaseBundleSource(
                name=fields.get("name", ""),
                version=fields.get("version", ""),
                project_key=project_key,
            )
        )
    if not bundles:
        return None
    return ReleaseBundlesSource(release_bundles=tuple(bundles))


def sources_from_flags(
    *,
    sources_builds: str | None,
    sources_release_bundles: str | None,
    project_key: str,
    console: ConsoleProtocol,
) -> tuple[RbSource, ...]:
    """Builds first, then release bundles; empty kinds are omitted."""
    sources: list[RbSource] = []
    if sources_builds:
        builds = builds_source_from_flag(sources_builds, project_key, console)
        if builds is not None:
            sources.append(builds)
    if sources_release_bundles:
        bundles = release_bundles_source_from_flag(sources_release_bundles, project_key, console)
        if bundles is not None:
            sources.append(bundles)
    return tuple(sources)


def source_from_spec(
    api: ArtifactoryApi, spec: SpecFiles, source_type: SourceType
) -> Result[RbSource, LifecycleError]:
    """Build the single source of ``source_type`` described by the spec file."""
    match source_type:
        case SourceType.AQL:
            return Ok(aql_source_from_spec(spec))
        case SourceType.ARTIFACTS:
            return artifacts_source_from_spec(api, spec)
        case SourceType.BUILDS:
            return builds_source_from_spec(api, spec)
        case SourceType.RELEASE_BUNDLES:
            return release_bundles_source_from_spec(spec)
        case SourceType.PACKAGES:
            return Ok(packages_source_from_spec(spec))


def sources_from_spec(
    api: ArtifactoryApi, spec: SpecFiles, detected: Sequence[SourceType]
) -> Result[tuple[RbSource, ...], LifecycleError]:
    """One source per distinct detected kind, in order of first appearance."""
    seen: list[SourceType] = []
    for source_type in detected:
        if source_type not in seen:
            seen.append(source_type)

    sources: list[RbSource] = []
    for source_type in seen:
        source = source_from_spec(api, spec, source_type)
        if isinstance(source, Err):
            return source
        sources.append(source.value)
    return Ok(tuple(sources))
