"""Spec file loading.

Three JSON documents feed release bundle creation:

- the unified spec: ``{"files": [<file group>, ...]}``
- the legacy builds spec: ``{"builds": [{"name", "number", "project", "includeDependencies"}]}``
- the legacy release-bundles spec: ``{"releaseBundles": [{"name", "version", "project"}]}``
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import (
    as_str_dict,
    get_flag,
    get_int,
    get_list,
    get_str,
    get_str_list,
    get_table,
)
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.identifiers import escape_slashes
from rbcli.services.lifecycle.model import FileGroup, SpecFiles

ENV_BUILD_NAME = "JFROG_CLI_BUILD_NAME"
ENV_BUILD_NUMBER = "JFROG_CLI_BUILD_NUMBER"

MISSING_CREATION_INPUT_ERR_MSG = (
    "either the --spec flag must be provided, "
    "or both --build-name and --build-number flags (or their corresponding environment variables "
    f"{ENV_BUILD_NAME} and {ENV_BUILD_NUMBER}) must be set"
)


@dataclass(frozen=True, slots=True)
class LegacyBuild:
    name: str
    number: str = ""
    project: str = ""
    include_dependencies: bool = False


@dataclass(frozen=True, slots=True)
class LegacyReleaseBundle:
    name: str
    version: str = ""
    project: str = ""


def parse_spec_vars(raw: str | None) -> dict[str, str]:
    """Parse ``key1=value1;key2=value2``; entries without '=' are ignored."""
    out: dict[str, str] = {}
    if not raw:
        return out
    for entry in raw.split(";"):
        if "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        key = key.strip()
        if key:
            out[key] = value.strip()
    return out


def _apply_spec_vars(text: str, spec_vars: Mapping[str, str]) -> str:
    for key, value in spec_vars.items():
        text = text.replace("${" + key + "}", value)
    return text


def read_json_object(
    path: Path, *, what: str, spec_vars: Mapping[str, str] | None = None
) -> Result[dict[str, object], LifecycleError]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(LifecycleError(kind="io", message=f"failed to read {what}: {e}", hint=str(path)))

    if spec_vars:
        text = _apply_spec_vars(text, spec_vars)

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            LifecycleError(kind="invalid_input", message=f"invalid JSON in {what}: {e}", hint=str(path))
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            LifecycleError(kind="invalid_input", message=f"{what} root must be a JSON object", hint=str(path))
        )
    return Ok(data)


def _aql_text(group: Mapping[str, object]) -> str | None:
    aql = get_table(group, "aql")
    if aql is None:
        return None
    items_find = aql.get("items.find", aql.get("itemsFind"))
    if isinstance(items_find, str):
        return items_find.strip() or None
    if items_find is None:
        return None
    return json.dumps(items_find, separators=(",", ":"))


def parse_file_group(group: Mapping[str, object]) -> FileGroup:
    path_mapping = get_table(group, "pathMapping") or {}
    return FileGroup(
        aql=_aql_text(group),
        build=get_str(group, "build"),
        include_deps=get_flag(group, "includeDeps"),
        bundle=get_str(group, "bundle"),
        project=get_str(group, "project"),
        pattern=get_str(group, "pattern"),
        exclusions=get_str_list(group, "exclusions"),
        props=get_str(group, "props"),
        exclude_props=get_str(group, "excludeProps"),
        recursive=get_flag(group, "recursive"),
        package=get_str(group, "package"),
        version=get_str(group, "version"),
        package_type=get_str(group, "type"),
        repo_key=get_str(group, "repoKey"),
        path_mapping_input=get_str(path_mapping, "input"),
        path_mapping_output=get_str(path_mapping, "output"),
        target=get_str(group, "target"),
        sort_order=get_str(group, "sortOrder"),
        sort_by=get_str_list(group, "sortBy"),
        exclude_artifacts=get_flag(group, "excludeArtifacts"),
        public_gpg_key=get_str(group, "publicGpgKey"),
        offset=get_int(group, "offset"),
        limit=get_int(group, "limit"),
        archive=get_str(group, "archive"),
        symlinks=get_flag(group, "symlinks"),
        regexp=get_flag(group, "regexp"),
        ant=get_flag(group, "ant"),
        explode=get_flag(group, "explode"),
        bypass_archive_inspection=get_flag(group, "bypassArchiveInspection"),
        transitive=get_flag(group, "transitive"),
    )


def parse_spec(data: Mapping[str, object]) -> Result[SpecFiles, LifecycleError]:
    files = get_list(data, "files")
    if files is None:
        return Err(LifecycleError(kind="invalid_input", message="spec must contain a 'files' list"))

    groups: list[FileGroup] = []
    for item in files:
        group = as_str_dict(item)
        if group is None:
            return Err(
                LifecycleError(kind="invalid_input", message="every spec file group must be a JSON object")
            )
        groups.append(parse_file_group(group))
    return Ok(SpecFiles(files=tuple(groups)))


def load_spec(path: Path, *, spec_vars: Mapping[str, str] | None = None) -> Result[SpecFiles, LifecycleError]:
    data = read_json_object(path, what="spec file", spec_vars=spec_vars)
    if isinstance(data, Err):
        return data
    return parse_spec(data.value)


def read_builds_spec(path: Path) -> Result[tuple[LegacyBuild, ...], LifecycleError]:
    data = read_json_object(path, what="builds spec")
    if isinstance(data, Err):
        return data

    builds: list[LegacyBuild] = []
    for item in get_list(data.value, "builds") or []:
        entry = as_str_dict(item)
        if entry is None:
            continue
        builds.append(
            LegacyBuild(
                name=get_str(entry, "name") or "",
                number=get_str(entry, "number") or "",
                project=get_str(entry, "project") or "",
                include_dependencies=entry.get("includeDependencies") is True,
            )
        )
    return Ok(tuple(builds))


def read_release_bundles_spec(path: Path) -> Result[tuple[LegacyReleaseBundle, ...], LifecycleError]:
    data = read_json_object(path, what="release bundles spec")
    if isinstance(data, Err):
        return data

    bundles: list[LegacyReleaseBundle] = []
    for item in get_list(data.value, "releaseBundles") or []:
        entry = as_str_dict(item)
        if entry is None:
            continue
        bundles.append(
            LegacyReleaseBundle(
                name=get_str(entry, "name") or "",
                version=get_str(entry, "version") or "",
                project=get_str(entry, "project") or "",
            )
        )
    return Ok(tuple(bundles))


def spec_from_build(name: str, number: str, project: str) -> SpecFiles:
    """A one-group spec pointing at a single build."""
    identifier = f"{escape_slashes(name)}/{escape_slashes(number)}"
    return SpecFiles(files=(FileGroup(build=identifier, project=project or None),))


@dataclass(frozen=True, slots=True)
class CreationInputs:
    """The creation-related flags as the CLI received them."""

    spec_path: Path | None = None
    spec_vars: str | None = None
    builds_spec_path: Path | None = None
    release_bundles_spec_path: Path | None = None
    sources_builds: str | None = None
    sources_release_bundles: str | None = None
    build_name: str | None = None
    build_number: str | None = None
    project: str = ""


def resolve_creation_spec(
    inputs: CreationInputs, *, env: Mapping[str, str] | None = None
) -> Result[SpecFiles | None, LifecycleError]:
    """Work out which spec (if any) drives a create command.

    Legacy spec paths and multi-source flags bypass the spec file entirely.
    ``--spec`` wins over build name/number, which fall back to the
    ``JFROG_CLI_BUILD_*`` environment variables.
    """
    if inputs.builds_spec_path is not None or inputs.release_bundles_spec_path is not None:
        return Ok(None)

    if inputs.sources_builds or inputs.sources_release_bundles:
        return Ok(None)

    if inputs.spec_path is not None:
        return load_spec(inputs.spec_path, spec_vars=parse_spec_vars(inputs.spec_vars))

    environ = os.environ if env is None else env
    build_name = inputs.build_name if inputs.build_name is not None else environ.get(ENV_BUILD_NAME, "")
    build_number = (
        inputs.build_number if inputs.build_number is not None else environ.get(ENV_BUILD_NUMBER, "")
    )

    if build_name and build_number:
        return Ok(spec_from_build(build_name, build_number, inputs.project))

    return Err(LifecycleError(kind="missing_input", message=MISSING_CREATION_INPUT_ERR_MSG))
