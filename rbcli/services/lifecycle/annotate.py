"""Release bundle annotation: tag and manifest properties."""

from __future__ import annotations

from dataclasses import dataclass

from rbcli.core.result import Err, Ok, Result
from rbcli.output.console import ConsoleProtocol, Style
from rbcli.services.lifecycle.artifactory import ArtifactoryApi
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.identifiers import DEFAULT_PROJECT, build_repo_key
from rbcli.services.lifecycle.lifecycle_api import LifecycleApi
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails
from rbcli.services.lifecycle.version import MIN_LIFECYCLE_VERSION, check_server_version

NO_ACTION_ERR_MSG = "action is not specified. One of tag/properties/del-prop should be specified"

MANIFEST_FILE = "release-bundle.json.evd"


def manifest_path(project: str, name: str, version: str) -> str:
    return f"{build_repo_key(project)}/{name}/{version}/{MANIFEST_FILE}"


def parse_properties(raw: str) -> Result[str, LifecycleError]:
    """Turn ``k1=v1;k2=v2,v3`` into the storage API's ``k1=v1|k2=v2,v3``."""
    pairs: list[str] = []
    for entry in raw.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            return Err(
                LifecycleError(
                    kind="invalid_input",
                    message=f"invalid property '{entry}'",
                    hint="expected key=value pairs separated by ';'",
                )
            )
        pairs.append(f"{key.strip()}={value.strip()}")
    return Ok("|".join(pairs))


def parse_property_keys(raw: str) -> tuple[str, ...]:
    return tuple(key.strip() for key in raw.split(";") if key.strip())


@dataclass(frozen=True, slots=True)
class AnnotateOptions:
    details: ReleaseBundleDetails
    project: str = DEFAULT_PROJECT
    # None leaves the tag alone; "" clears it.
    tag: str | None = None
    properties: str = ""
    delete_properties: str = ""
    recursive: bool = True


@dataclass(slots=True)
class ReleaseBundleAnnotateCommand:
    artifactory: ArtifactoryApi
    lifecycle: LifecycleApi
    console: ConsoleProtocol
    options: AnnotateOptions

    def run(self) -> Result[None, LifecycleError]:
        ok = check_server_version(self.artifactory, MIN_LIFECYCLE_VERSION)
        if isinstance(ok, Err):
            return ok

        opts = self.options
        keys = parse_property_keys(opts.delete_properties)
        if opts.tag is None and not opts.properties.strip() and not keys:
            return Err(LifecycleError(kind="missing_input", message=NO_ACTION_ERR_MSG))

        properties = parse_properties(opts.properties)
        if isinstance(properties, Err):
            return properties

        project = opts.project or DEFAULT_PROJECT
        name, version = opts.details.name, opts.details.version

        if opts.tag is not None:
            self.console.print(f"tag release bundle {name}/{version} with '{opts.tag}'", Style.DIM)
            tagged = self.lifecycle.set_tag(opts.details, QueryParams(project_key=project), opts.tag)
            if isinstance(tagged, Err):
                return tagged

        path = manifest_path(project, name, version)
        if properties.value:
            self.console.print(f"set properties on {path}", Style.DIM)
            ok = self.artifactory.set_properties(path, properties.value, recursive=opts.recursive)
            if isinstance(ok, Err):
                return ok

        if keys:
            self.console.print(f"delete properties {', '.join(keys)} from {path}", Style.DIM)
            ok = self.artifactory.delete_properties(path, keys, recursive=opts.recursive)
            if isinstance(ok, Err):
                return ok

        return Ok(None)
