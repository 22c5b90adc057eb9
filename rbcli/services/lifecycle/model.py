"""Domain model for release bundle creation and update.

Each creation source kind is its own dataclass carrying only its own
payload; ``RbSource`` is the closed union of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar


class SourceType(StrEnum):
    """Kinds of input a release bundle can be populated from."""

    AQL = "aql"
    ARTIFACTS = "artifacts"
    BUILDS = "builds"
    RELEASE_BUNDLES = "release_bundles"
    PACKAGES = "packages"


@dataclass(frozen=True, slots=True)
class FileGroup:
    """One entry of a spec file's ``files`` list.

    Flags (``include_deps``, ``recursive``, ...) keep their textual form so
    the validator can reject values that are not booleans.
    """

    aql: str | None = None
    # builds
    build: str | None = None
    include_deps: str | None = None
    # release bundles (project is shared with builds)
    bundle: str | None = None
    project: str | None = None
    # artifacts
    pattern: str | None = None
    exclusions: tuple[str, ...] = ()
    props: str | None = None
    exclude_props: str | None = None
    recursive: str | None = None
    # packages
    package: str | None = None
    version: str | None = None
    package_type: str | None = None
    repo_key: str | None = None
    # Part of the shared spec schema but never valid for bundle creation.
    path_mapping_input: str | None = None
    path_mapping_output: str | None = None
    target: str | None = None
    sort_order: str | None = None
    sort_by: tuple[str, ...] = ()
    exclude_artifacts: str | None = None
    public_gpg_key: str | None = None
    offset: int | None = None
    limit: int | None = None
    archive: str | None = None
    symlinks: str | None = None
    regexp: str | None = None
    ant: str | None = None
    explode: str | None = None
    bypass_archive_inspection: str | None = None
    transitive: str | None = None


@dataclass(frozen=True, slots=True)
class SpecFiles:
    """A parsed spec file."""

    files: tuple[FileGroup, ...]


@dataclass(frozen=True, slots=True)
class ArtifactSource:
    path: str
    sha256: str


@dataclass(frozen=True, slots=True)
class BuildSource:
    name: str
    number: str
    repository: str
    include_dependencies: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseBundleSource:
    name: str
    version: str
    project_key: str = ""
    repository_key: str = ""


@dataclass(frozen=True, slots=True)
class PackageSource:
    name: str
    version: str
    package_type: str
    repository_key: str


@dataclass(frozen=True, slots=True)
class AqlSource:
    source_type: ClassVar[SourceType] = SourceType.AQL

    query: str


@dataclass(frozen=True, slots=True)
class ArtifactsSource:
    source_type: ClassVar[SourceType] = SourceType.ARTIFACTS

    artifacts: tuple[ArtifactSource, ...]


@dataclass(frozen=True, slots=True)
class BuildsSource:
    source_type: ClassVar[SourceType] = SourceType.BUILDS

    builds: tuple[BuildSource, ...]


@dataclass(frozen=True, slots=True)
class ReleaseBundlesSource:
    source_type: ClassVar[SourceType] = SourceType.RELEASE_BUNDLES

    release_bundles: tuple[ReleaseBundleSource, ...]


@dataclass(frozen=True, slots=True)
class PackagesSource:
    source_type: ClassVar[SourceType] = SourceType.PACKAGES

    packages: tuple[PackageSource, ...]


type RbSource = AqlSource | ArtifactsSource | BuildsSource | ReleaseBundlesSource | PackagesSource


@dataclass(frozen=True, slots=True)
class ReleaseBundleDetails:
    name: str
    version: str


@dataclass(frozen=True, slots=True)
class QueryParams:
    """Optional query parameters shared by lifecycle operations."""

    project_key: str = ""
    is_async: bool = True
    promotion_type: str = ""


@dataclass(frozen=True, slots=True)
class SingleSourceRequest:
    """Legacy request shape: exactly one source kind."""

    source: RbSource
    signing_key: str = ""
    draft: bool = False


@dataclass(frozen=True, slots=True)
class MultiSourceRequest:
    """Unified request shape: an ordered list of typed sources."""

    sources: tuple[RbSource, ...]
    signing_key: str = ""
    draft: bool = False


type CreationRequest = SingleSourceRequest | MultiSourceRequest
