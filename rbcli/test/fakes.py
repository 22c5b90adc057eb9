"""In-memory collaborators for service and CLI tests."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import StrDict
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.lifecycle_api import PromotionOptions, RemoteDeleteOptions
from rbcli.services.lifecycle.model import (
    AqlSource,
    ArtifactsSource,
    BuildsSource,
    PackagesSource,
    QueryParams,
    RbSource,
    ReleaseBundleDetails,
    ReleaseBundlesSource,
)


@dataclass
class FakeArtifactory:
    """Answers AQL queries from rows keyed by a substring of the query."""

    version: str = "7.114.0"
    version_error: LifecycleError | None = None
    rows: dict[str, list[StrDict]] = field(default_factory=dict)
    aql_error: LifecycleError | None = None
    queries: list[str] = field(default_factory=list)
    version_calls: int = 0
    property_error: LifecycleError | None = None
    property_calls: list[tuple[str, str, object, bool]] = field(default_factory=list)

    def get_version(self) -> Result[str, LifecycleError]:
        self.version_calls += 1
        if self.version_error is not None:
            return Err(self.version_error)
        return Ok(self.version)

    def aql(self, query: str) -> Result[list[StrDict], LifecycleError]:
        self.queries.append(query)
        if self.aql_error is not None:
            return Err(self.aql_error)
        for needle, rows in self.rows.items():
            if needle in query:
                return Ok(list(rows))
        return Ok([])

    def set_properties(self, path: str, properties: str, *, recursive: bool) -> Result[None, LifecycleError]:
        self.property_calls.append(("set", path, properties, recursive))
        return Err(self.property_error) if self.property_error is not None else Ok(None)

    def delete_properties(
        self, path: str, keys: Sequence[str], *, recursive: bool
    ) -> Result[None, LifecycleError]:
        self.property_calls.append(("delete", path, tuple(keys), recursive))
        return Err(self.property_error) if self.property_error is not None else Ok(None)


@dataclass(frozen=True)
class LifecycleCall:
    method: str
    details: ReleaseBundleDetails
    params: QueryParams
    signing_key: str
    payload: object
    draft: bool = False


@dataclass
class FakeLifecycle:
    """Records every call and answers with ``response`` or ``error``."""

    response: StrDict = field(default_factory=dict)
    error: LifecycleError | None = None
    promotions: list[StrDict] = field(default_factory=list)
    calls: list[LifecycleCall] = field(default_factory=list)

    def _record(self, call: LifecycleCall) -> Result[StrDict, LifecycleError]:
        self.calls.append(call)
        if self.error is not None:
            return Err(self.error)
        return Ok(self.response)

    def create_from_aql(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: AqlSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("aql", details, params, signing_key, source, draft))

    def create_from_artifacts(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: ArtifactsSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("artifacts", details, params, signing_key, source, draft))

    def create_from_builds(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: BuildsSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("builds", details, params, signing_key, source, draft))

    def create_from_release_bundles(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: ReleaseBundlesSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("release_bundles", details, params, signing_key, source, draft))

    def create_from_packages(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: PackagesSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("packages", details, params, signing_key, source, draft))

    def create_from_multiple_sources(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        sources: Sequence[RbSource],
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("multiple", details, params, signing_key, tuple(sources), draft))

    def update_from_multiple_sources(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        sources: Sequence[RbSource],
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("update", details, params, signing_key, tuple(sources)))

    def promote(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        options: PromotionOptions,
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("promote", details, params, signing_key, options))

    def delete_local(
        self, details: ReleaseBundleDetails, params: QueryParams
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("delete_local", details, params, "", None))

    def get_promotions(
        self, details: ReleaseBundleDetails, params: QueryParams
    ) -> Result[list[StrDict], LifecycleError]:
        self.calls.append(LifecycleCall("get_promotions", details, params, "", None))
        if self.error is not None:
            return Err(self.error)
        return Ok(list(self.promotions))

    def delete_promotion(
        self, details: ReleaseBundleDetails, params: QueryParams, created_millis: str
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("delete_promotion", details, params, "", created_millis))

    def remote_delete(
        self, details: ReleaseBundleDetails, params: QueryParams, options: RemoteDeleteOptions
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("remote_delete", details, params, "", options))

    def set_tag(
        self, details: ReleaseBundleDetails, params: QueryParams, tag: str
    ) -> Result[StrDict, LifecycleError]:
        return self._record(LifecycleCall("set_tag", details, params, "", tag))
