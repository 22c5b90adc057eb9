"""Server version parsing and feature gating."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from rbcli.core.result import Err, Ok, Result
from rbcli.services.lifecycle.errors import LifecycleError

MIN_LIFECYCLE_VERSION = "7.63.2"
MIN_MULTI_SOURCE_VERSION = "7.114.0"

_VERSION_RE = re.compile(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str) -> Version | None:
    """Parse the leading ``major[.minor[.patch]]`` of a version string.

    Suffixes such as ``-rc1`` or a fourth component are ignored.
    """
    m = _VERSION_RE.match(text)
    if m is None:
        return None
    return Version(int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0))


class VersionSource(Protocol):
    def get_version(self) -> Result[str, LifecycleError]: ...


def validate_minimum_version(current: str, minimum: str) -> Result[None, LifecycleError]:
    cur = parse_version(current)
    req = parse_version(minimum)
    if cur is None or req is None:
        return Err(
            LifecycleError(
                kind="unsupported_version",
                message=f"could not parse Artifactory version '{current}'",
            )
        )
    if cur < req:
        return Err(
            LifecycleError(
                kind="unsupported_version",
                message=(
                    f"this operation requires Artifactory version {minimum} or higher, "
                    f"but the server runs version {current}"
                ),
            )
        )
    return Ok(None)


def check_server_version(source: VersionSource, minimum: str) -> Result[None, LifecycleError]:
    """Query the server version and compare it with ``minimum``."""
    version = source.get_version()
    if isinstance(version, Err):
        return version
    return validate_minimum_version(version.value, minimum)


def supports_multi_source(source: VersionSource) -> Result[None, LifecycleError]:
    """Ok when the server accepts multi-source and package creation."""
    return check_server_version(source, MIN_MULTI_SOURCE_VERSION)
