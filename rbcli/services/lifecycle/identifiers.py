"""Naming rules for repositories and ``name/version`` identifiers."""

from __future__ import annotations

RELEASE_BUNDLES_V2 = "release-bundles-v2"
DEFAULT_PROJECT = "default"
DEFAULT_BUILD_INFO_REPOSITORY = "artifactory-build-info"


def build_repo_key(project: str) -> str:
    """Repository holding release bundles of a project; ``default`` maps to the shared one."""
    if project in ("", DEFAULT_PROJECT):
        return RELEASE_BUNDLES_V2
    return f"{project}-{RELEASE_BUNDLES_V2}"


def build_info_repository(project: str) -> str:
    """Repository holding build-info JSON files of a project."""
    if not project:
        return DEFAULT_BUILD_INFO_REPOSITORY
    return f"{project}-build-info"


def escape_slashes(value: str) -> str:
    return value.replace("/", "\\/")


def _unescape_slashes(value: str) -> str:
    return value.replace("\\/", "/")


def split_name_and_version(identifier: str) -> tuple[str, str]:
    """Split ``name/version`` on the last slash not escaped as ``\\/``.

    A missing separator yields an empty version.
    """
    idx = len(identifier) - 1
    while idx >= 0:
        if identifier[idx] == "/" and (idx == 0 or identifier[idx - 1] != "\\"):
            return _unescape_slashes(identifier[:idx]), _unescape_slashes(identifier[idx + 1 :])
        idx -= 1
    return _unescape_slashes(identifier), ""


def human_join(items: list[str]) -> str:
    """Join items as prose: 'a', 'a and b', 'a, b and c'."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])} and {items[-1]}"


def project_suffix(project: str) -> str:
    """`` (project 'p')`` for messages about project-scoped lookups, else ""."""
    return f" (project '{project}')" if project else ""
