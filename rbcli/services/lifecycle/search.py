"""Artifact and build-info searches backed by AQL.

Search results are spooled to temporary JSON-lines files, one per file
group, so large result sets are never held in memory. The caller reads
them through ``ResultReader`` and must always invoke the returned cleanup
callback.
"""

from __future__ import annotations

import json
import posixpath
import tempfile
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import StrDict, get_str
from rbcli.services.lifecycle.artifactory import ArtifactoryApi
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.identifiers import (
    build_info_repository,
    project_suffix,
    split_name_and_version,
)
from rbcli.services.lifecycle.model import FileGroup

type Cleanup = Callable[[], Result[None, LifecycleError]]


@dataclass(frozen=True, slots=True)
class ResultItem:
    repo: str
    path: str
    name: str
    sha256: str

    @property
    def full_path(self) -> str:
        """``repo/path/name`` with ``.`` path segments collapsed."""
        return posixpath.normpath(posixpath.join(self.repo, self.path, self.name))


class ResultReader:
    """Iterates over the items of one spooled search result."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def items(self) -> Result[list[ResultItem], LifecycleError]:
        try:
            return Ok(list(self._iter()))
        except OSError as e:
            return Err(
                LifecycleError(kind="io", message=f"failed to read search results: {e}", hint=str(self.path))
            )
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            return Err(
                LifecycleError(kind="io", message=f"corrupt search result file: {e}", hint=str(self.path))
            )

    def _iter(self) -> Iterator[ResultItem]:
        with self.path.open(encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                row = json.loads(line)
                yield ResultItem(
                    repo=row["repo"],
                    path=row["path"],
                    name=row["name"],
                    sha256=row["sha256"],
                )


def _split_path(pattern: str) -> tuple[str, str]:
    if "/" not in pattern:
        return "", pattern
    path, name = pattern.rsplit("/", 1)
    return path, name


def _props_criteria(props: str, *, negate: bool) -> list[StrDict]:
    criteria: list[StrDict] = []
    for entry in props.split(";"):
        if "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        key = key.strip()
        if not key:
            continue
        op = "$nmatch" if negate else "$match"
        criteria.append({f"@{key}": {op: value.strip()}})
    return criteria


def _exclusion_criteria(repo: str, exclusion: str) -> StrDict:
    excluded_path, excluded_name = _split_path(exclusion)
    if excluded_path == repo:
        excluded_path = ""
    elif excluded_path.startswith(f"{repo}/"):
        excluded_path = excluded_path[len(repo) + 1 :]

    if not excluded_path or excluded_path == "*":
        return {"name": {"$nmatch": excluded_name}}
    return {
        "$or": [
            {"path": {"$nmatch": excluded_path}},
            {"name": {"$nmatch": excluded_name}},
        ]
    }


def build_pattern_aql(group: FileGroup) -> str:
    """Translate a ``pattern`` file group into an AQL query.

    The first path segment is the repository. Wildcards ``*`` and ``?``
    are passed through to AQL's ``$match``.
    """
    pattern = (group.pattern or "").lstrip("/")
    repo, _, rest = pattern.partition("/")
    recursive = (group.recursive or "true").lower() not in ("false", "f", "0")

    criteria: list[StrDict] = [{"repo": repo}]
    if rest and rest != "*":
        path, name = _split_path(rest)
        if recursive:
            criteria.append(
                {
                    "$or": [
                        {"path": {"$match": path or "."}, "name": {"$match": name}},
                        {"path": {"$match": f"{path}/*" if path else "*"}, "name": {"$match": name}},
                    ]
                }
            )
        else:
            criteria.append({"path": {"$match": path or "."}, "name": {"$match": name}})
    elif not recursive:
        criteria.append({"path": "."})

    for exclusion in group.exclusions:
        if exclusion:
            criteria.append(_exclusion_criteria(repo, exclusion))

    if group.props:
        criteria.extend(_props_criteria(group.props, negate=False))
    if group.exclude_props:
        negated = _props_criteria(group.exclude_props, negate=True)
        if negated:
            criteria.append({"$or": negated})

    query = json.dumps({"$and": criteria}, separators=(",", ":"))
    return f'items.find({query}).include("repo","path","name","sha256")'


def _remove_files(paths: Sequence[Path]) -> Result[None, LifecycleError]:
    failures: list[str] = []
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            failures.append(f"{path}: {e}")
    if failures:
        return Err(
            LifecycleError(
                kind="io",
                message="failed to remove temporary search result files",
                hint="; ".join(failures),
            )
        )
    return Ok(None)


def _spool(rows: Sequence[StrDict]) -> Path:
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", prefix="rbcli-search-", suffix=".jsonl", delete=False
    ) as f:
        for row in rows:
            item = {key: get_str(row, key) or "" for key in ("repo", "path", "name", "sha256")}
            f.write(json.dumps(item))
            f.write("\n")
        return Path(f.name)


def search_files(
    api: ArtifactoryApi, groups: Sequence[FileGroup]
) -> Result[tuple[list[ResultReader], Cleanup], LifecycleError]:
    """Run one AQL search per pattern group and spool the results.

    On failure the files written so far are removed before returning.
    """
    spooled: list[Path] = []

    def cleanup() -> Result[None, LifecycleError]:
        return _remove_files(spooled)

    for group in groups:
        rows = api.aql(build_pattern_aql(group))
        if isinstance(rows, Err):
            removed = cleanup()
            if isinstance(removed, Err):
                return Err(rows.error.join(removed.error))
            return rows
        try:
            spooled.append(_spool(rows.value))
        except OSError as e:
            error = LifecycleError(kind="io", message=f"failed to write search results: {e}")
            removed = cleanup()
            if isinstance(removed, Err):
                return Err(error.join(removed.error))
            return Err(error)

    return Ok(([ResultReader(path) for path in spooled], cleanup))


def latest_build_number(api: ArtifactoryApi, name: str, project: str) -> Result[str, LifecycleError]:
    """Number of the most recently published build, or "" if there is none.

    Build-info files are stored as ``<name>/<number>-<timestamp>.json``.
    """
    criteria = {"repo": build_info_repository(project), "path": name}
    query = (
        f"items.find({json.dumps(criteria, separators=(',', ':'))})"
        '.include("name","created").sort({"$desc":["created"]}).limit(1)'
    )
    rows = api.aql(query)
    if isinstance(rows, Err):
        return rows
    if not rows.value:
        return Ok("")

    file_name = get_str(rows.value[0], "name") or ""
    stem = file_name.removesuffix(".json")
    number, sep, _ = stem.rpartition("-")
    return Ok(number if sep else stem)


def build_name_and_number(
    api: ArtifactoryApi, identifier: str, project: str
) -> Result[tuple[str, str], LifecycleError]:
    """Resolve ``name[/number]``; a missing number means the latest build."""
    name, number = split_name_and_version(identifier)
    if name and not number:
        latest = latest_build_number(api, name, project)
        if isinstance(latest, Err):
            return latest
        number = latest.value

    if not name or not number:
        return Err(
            LifecycleError(
                kind="resolution_failed",
                message=(
                    f"could not identify a build info by the '{identifier}' identifier in artifactory"
                    f"{project_suffix(project)}"
                ),
            )
        )
    return Ok((name, number))

