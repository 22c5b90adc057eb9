"""Artifactory REST calls used by release bundle commands."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from time import sleep
from typing import Protocol
from urllib.parse import quote

from rbcli.clients.http import HttpClient, HttpError
from rbcli.core.config import ServerDetails
from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import StrDict, as_obj_list, as_str_dict, get_list, get_str
from rbcli.services.lifecycle.errors import LifecycleError

READ_RETRY_ATTEMPTS = 3
READ_RETRY_DELAY_SECONDS = 1.0

_TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


class ArtifactoryApi(Protocol):
    def get_version(self) -> Result[str, LifecycleError]: ...

    def aql(self, query: str) -> Result[list[StrDict], LifecycleError]: ...

    def set_properties(
        self, path: str, properties: str, *, recursive: bool
    ) -> Result[None, LifecycleError]: ...

    def delete_properties(
        self, path: str, keys: Sequence[str], *, recursive: bool
    ) -> Result[None, LifecycleError]: ...


def _is_transient(error: HttpError) -> bool:
    return error.status == 0 or error.status in _TRANSIENT_STATUSES


def _network_error(message: str, error: HttpError) -> LifecycleError:
    return LifecycleError(kind="network", message=message, hint=str(error))


@dataclass(slots=True)
class ArtifactoryService:
    """Artifactory calls; every one is idempotent and retried."""

    http: HttpClient
    server: ServerDetails
    retry_attempts: int = READ_RETRY_ATTEMPTS

    def _read(
        self, call: Callable[[], Result[object, HttpError]], *, message: str
    ) -> Result[object, LifecycleError]:
        attempts = max(1, self.retry_attempts)
        for attempt in range(attempts):
            result = call()
            if isinstance(result, Ok):
                return result
            if attempt < attempts - 1 and _is_transient(result.error):
                sleep(READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            return Err(_network_error(message, result.error))
        return Err(LifecycleError(kind="network", message=message))

    def get_version(self) -> Result[str, LifecycleError]:
        url = f"{self.server.artifactory_url}api/system/version"
        result = self._read(lambda: self.http.get_json(url), message="failed to get Artifactory version")
        if isinstance(result, Err):
            return result

        data = as_str_dict(result.value)
        version = get_str(data, "version") if data is not None else None
        if version is None:
            return Err(
                LifecycleError(
                    kind="network",
                    message="unexpected response from Artifactory version endpoint",
                    hint=url,
                )
            )
        return Ok(version)

    def aql(self, query: str) -> Result[list[StrDict], LifecycleError]:
        url = f"{self.server.artifactory_url}api/search/aql"
        result = self._read(lambda: self.http.post_text(url, query), message="AQL search failed")
        if isinstance(result, Err):
            return result

        data = as_str_dict(result.value)
        rows = get_list(data, "results") if data is not None else None
        if rows is None:
            return Err(
                LifecycleError(kind="network", message="unexpected AQL response", hint=query)
            )
        out: list[StrDict] = []
        for row in as_obj_list(rows) or []:
            item = as_str_dict(row)
            if item is not None:
                out.append(item)
        return Ok(out)

    def _storage_url(self, path: str) -> str:
        return f"{self.server.artifactory_url}api/storage/{quote(path.strip('/'))}"

    def set_properties(self, path: str, properties: str, *, recursive: bool) -> Result[None, LifecycleError]:
        """Set ``k1=v1,v2|k2=v3`` on ``path`` (and its children when recursive)."""
        url = self._storage_url(path)
        params = {"properties": properties, "recursive": "1" if recursive else "0"}
        result = self._read(
            lambda: self.http.send_json("PUT", url, None, params=params),
            message=f"failed to set properties on {path}",
        )
        if isinstance(result, Err):
            return result
        return Ok(None)

    def delete_properties(
        self, path: str, keys: Sequence[str], *, recursive: bool
    ) -> Result[None, LifecycleError]:
        url = self._storage_url(path)
        params = {"properties": ",".join(keys), "recursive": "1" if recursive else "0"}
        result = self._read(
            lambda: self.http.send_json("DELETE", url, None, params=params),
            message=f"failed to delete properties from {path}",
        )
        if isinstance(result, Err):
            return result
        return Ok(None)
