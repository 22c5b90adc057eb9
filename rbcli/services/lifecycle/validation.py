"""Creation source detection and validation.

A spec file group declares exactly one creation source kind. Which kinds
may appear, and whether several may be combined in one request, depends
on ``multi_source_supported``: whether the server is recent enough for
multi-source and package creation. The flag is always passed explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence

from rbcli.core.result import Err, Ok, Result
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.identifiers import human_join
from rbcli.services.lifecycle.model import FileGroup, SourceType

MISSING_CREATION_SOURCES_ERR_MSG = (
    "unexpected err while validating spec - could not detect any creation sources"
)
MULTIPLE_CREATION_SOURCES_ERR_MSG = (
    "multiple creation sources were detected in separate spec files. "
    "Only a single creation source should be provided. Detected:"
)
SINGLE_AQL_ERR_MSG = "only a single aql query can be provided"
UNSUPPORTED_CREATION_SOURCE_METHOD = "creation source 'package' is not supported in current version"
SINGLE_SOURCE_PER_FILE_ERR_MSG = (
    "exactly one creation source should be defined per file "
    "(aql, builds, release bundles or pattern (artifacts))"
)
EMPTY_SPEC_ERR_MSG = "spec must include at least one file group"
NO_SOURCE_IN_FILE_ERR_MSG = (
    "no creation source was defined in a spec file group "
    "(aql, build, bundle, pattern or package)"
)

_BASE_ALLOWED_FIELDS = [
    "aql",
    "build",
    "includeDeps",
    "bundle",
    "project",
    "pattern",
    "exclusions",
    "props",
    "excludeProps",
    "recursive",
]
_PACKAGE_FIELDS = ["package", "version", "type", "repoKey"]

_TRUE = frozenset({"1", "t", "true"})
_FALSE = frozenset({"0", "f", "false"})


def parse_flag(value: str | None, *, default: bool) -> bool | None:
    """Interpret a textual flag; None means the value is not a boolean."""
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _flag_set(value: str | None) -> bool:
    return parse_flag(value, default=False) is True


def _unsupported_fields_err(multi_source_supported: bool) -> LifecycleError:
    allowed = _BASE_ALLOWED_FIELDS + (_PACKAGE_FIELDS if multi_source_supported else [])
    quoted = human_join([f"'{name}'" for name in allowed])
    return LifecycleError(
        kind="unsupported_input",
        message=(
            "unsupported fields were provided in file spec. "
            f"release bundle creation file spec only supports the following fields: {quoted}"
        ),
    )


def _reject_if_any(
    source_type: SourceType, forbidden: Sequence[bool], message: str
) -> Result[SourceType, LifecycleError]:
    if any(forbidden):
        return Err(LifecycleError(kind="unsupported_input", message=message))
    return Ok(source_type)


def validate_file(group: FileGroup, multi_source_supported: bool) -> Result[SourceType, LifecycleError]:
    """Determine which creation source a file group declares.

    Without multi-source support exactly one of aql, build, bundle and
    pattern must be set and packages are refused. With it, the first match
    in the order aql, build, bundle, pattern, package wins.
    """
    is_aql = bool(group.aql)
    is_build = bool(group.build)
    is_bundle = bool(group.bundle)
    is_pattern = bool(group.pattern)
    is_package = bool(group.package)

    is_project = bool(group.project)
    is_exclusions = bool(group.exclusions) and bool(group.exclusions[0])
    is_props = bool(group.props)
    is_exclude_props = bool(group.exclude_props)

    include_deps = parse_flag(group.include_deps, default=False)
    if include_deps is None:
        return Err(
            LifecycleError(
                kind="invalid_input",
                message=f"invalid value provided to the 'includeDeps' field: '{group.include_deps}'",
            )
        )
    recursive = parse_flag(group.recursive, default=True)
    if recursive is None:
        return Err(
            LifecycleError(
                kind="invalid_input",
                message=f"invalid value provided to the 'recursive' field: '{group.recursive}'",
            )
        )
    non_default_recursive = not recursive

    unsupported = (
        bool(group.path_mapping_input) or bool(group.path_mapping_output),
        bool(group.target),
        bool(group.sort_order),
        bool(group.sort_by),
        _flag_set(group.exclude_artifacts),
        bool(group.public_gpg_key),
        (group.offset or 0) > 0,
        (group.limit or 0) > 0,
        bool(group.archive),
        _flag_set(group.symlinks),
        group.regexp == "true",
        group.ant == "true",
        _flag_set(group.explode),
        _flag_set(group.bypass_archive_inspection),
        _flag_set(group.transitive),
    )
    if any(unsupported):
        return Err(_unsupported_fields_err(multi_source_supported))

    if not multi_source_supported:
        if is_package:
            return Err(LifecycleError(kind="unsupported_input", message=UNSUPPORTED_CREATION_SOURCE_METHOD))
        if sum((is_aql, is_build, is_bundle, is_pattern)) != 1:
            return Err(LifecycleError(kind="ambiguous_input", message=SINGLE_SOURCE_PER_FILE_ERR_MSG))

    # First match wins; mixed kinds inside one group are not re-checked here
    # when multi-source support is on.
    if is_aql:
        return _reject_if_any(
            SourceType.AQL,
            (include_deps, is_project, is_exclusions, is_props, is_exclude_props, non_default_recursive),
            "aql creation source supports no other fields",
        )
    if is_build:
        return _reject_if_any(
            SourceType.BUILDS,
            (is_exclusions, is_props, is_exclude_props, non_default_recursive),
            "builds creation source only supports the 'includeDeps' and 'project' fields",
        )
    if is_bundle:
        return _reject_if_any(
            SourceType.RELEASE_BUNDLES,
            (include_deps, is_exclusions, is_props, is_exclude_props, non_default_recursive),
            "release bundles creation source only supports the 'project' field",
        )
    if is_pattern:
        return _reject_if_any(
            SourceType.ARTIFACTS,
            (include_deps, is_project),
            "artifacts creation source only supports the "
            "'exclusions', 'props', 'excludeProps' and 'recursive' fields",
        )
    if is_package:
        return _reject_if_any(
            SourceType.PACKAGES,
            (
                include_deps,
                is_exclusions,
                is_props,
                is_exclude_props,
                non_default_recursive,
                is_project,
            ),
            "packages creation source only supports the 'version', 'type' and 'repoKey' fields",
        )

    return Err(LifecycleError(kind="missing_input", message=NO_SOURCE_IN_FILE_ERR_MSG))


def detect_source_types(
    files: Sequence[FileGroup], multi_source_supported: bool
) -> Result[list[SourceType], LifecycleError]:
    """Validate every group in order; stop at the first failure."""
    detected: list[SourceType] = []
    for group in files:
        result = validate_file(group, multi_source_supported)
        if isinstance(result, Err):
            return result
        detected.append(result.value)
    return Ok(detected)


def _multiple_sources_err(detected: Sequence[SourceType]) -> LifecycleError:
    distinct: list[str] = []
    for source_type in detected:
        if source_type.value not in distinct:
            distinct.append(source_type.value)
    return LifecycleError(
        kind="ambiguous_input",
        message=f"{MULTIPLE_CREATION_SOURCES_ERR_MSG} '{human_join(distinct)}'",
    )


def validate_creation_sources(
    detected: Sequence[SourceType], multi_source_supported: bool
) -> Result[None, LifecycleError]:
    """Check the detected source list as a whole.

    A single aql query is enforced in both modes. Without multi-source
    support packages are refused and all kinds must be identical.
    """
    if not detected:
        return Err(LifecycleError(kind="missing_input", message=MISSING_CREATION_SOURCES_ERR_MSG))

    if not multi_source_supported:
        if SourceType.PACKAGES in detected:
            return Err(LifecycleError(kind="unsupported_input", message=UNSUPPORTED_CREATION_SOURCE_METHOD))
        if any(source_type != detected[0] for source_type in detected):
            return Err(_multiple_sources_err(detected))

    if sum(1 for source_type in detected if source_type == SourceType.AQL) > 1:
        return Err(LifecycleError(kind="ambiguous_input", message=SINGLE_AQL_ERR_MSG))

    return Ok(None)


def validate_and_identify_spec(
    files: Sequence[FileGroup], multi_source_supported: bool
) -> Result[list[SourceType], LifecycleError]:
    if not files:
        return Err(LifecycleError(kind="missing_input", message=EMPTY_SPEC_ERR_MSG))

    detected = detect_source_types(files, multi_source_supported)
    if isinstance(detected, Err):
        return detected

    checked = validate_creation_sources(detected.value, multi_source_supported)
    if isinstance(checked, Err):
        return checked
    return detected
