"""Lifecycle REST API: release bundle creation, update, promotion, deletion and tagging.

Write calls are sent once. They are not retried because a timed-out
creation may still have been applied by the server.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

from rbcli.clients.http import HttpClient
from rbcli.core.config import ServerDetails
from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import StrDict, as_obj_list, as_str_dict
from rbcli.services.lifecycle.errors import LifecycleError
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

SIGNING_KEY_HEADER = "X-JFrog-Signing-Key-Name"


@dataclass(frozen=True, slots=True)
class PromotionOptions:
    environment: str
    include_repositories: tuple[str, ...] = ()
    exclude_repositories: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DistributionRule:
    """Where a distributed copy lives; ``*`` matches every site."""

    site_name: str = "*"
    city_name: str = ""
    country_codes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RemoteDeleteOptions:
    rules: tuple[DistributionRule, ...] = (DistributionRule(),)
    dry_run: bool = False


class LifecycleApi(Protocol):
    def create_from_aql(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: AqlSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]: ...

    def create_from_artifacts(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: ArtifactsSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]: ...

    def create_from_builds(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: BuildsSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]: ...

    def create_from_release_bundles(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: ReleaseBundlesSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]: ...

    def create_from_packages(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: PackagesSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]: ...

    def create_from_multiple_sources(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        sources: Sequence[RbSource],
        draft: bool,
    ) -> Result[StrDict, LifecycleError]: ...

    def update_from_multiple_sources(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        sources: Sequence[RbSource],
    ) -> Result[StrDict, LifecycleError]: ...

    def promote(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        options: PromotionOptions,
    ) -> Result[StrDict, LifecycleError]: ...

    def delete_local(
        self, details: ReleaseBundleDetails, params: QueryParams
    ) -> Result[StrDict, LifecycleError]: ...

    def get_promotions(
        self, details: ReleaseBundleDetails, params: QueryParams
    ) -> Result[list[StrDict], LifecycleError]: ...

    def delete_promotion(
        self, details: ReleaseBundleDetails, params: QueryParams, created_millis: str
    ) -> Result[StrDict, LifecycleError]: ...

    def remote_delete(
        self, details: ReleaseBundleDetails, params: QueryParams, options: RemoteDeleteOptions
    ) -> Result[StrDict, LifecycleError]: ...

    def set_tag(
        self, details: ReleaseBundleDetails, params: QueryParams, tag: str
    ) -> Result[StrDict, LifecycleError]: ...


def source_payload(source: RbSource) -> StrDict:
    """The body fragment describing one source, keyed by its kind."""
    match source:
        case AqlSource(query=query):
            return {"aql": query}
        case ArtifactsSource(artifacts=artifacts):
            return {"artifacts": [{"path": a.path, "sha256": a.sha256} for a in artifacts]}
        case BuildsSource(builds=builds):
            return {
                "builds": [
                    {
                        "build_name": b.name,
                        "build_number": b.number,
                        "build_repository": b.repository,
                        "include_dependencies": b.include_dependencies,
                    }
                    for b in builds
                ]
            }
        case ReleaseBundlesSource(release_bundles=bundles):
            out: list[StrDict] = []
            for rb in bundles:
                entry: StrDict = {
                    "release_bundle_name": rb.name,
                    "release_bundle_version": rb.version,
                }
                if rb.project_key:
                    entry["project_key"] = rb.project_key
                if rb.repository_key:
                    entry["repository_key"] = rb.repository_key
                out.append(entry)
            return {"release_bundles": out}
        case PackagesSource(packages=packages):
            return {
                "packages": [
                    {
                        "package_name": p.name,
                        "package_version": p.version,
                        "package_type": p.package_type,
                        "repository_key": p.repository_key,
                    }
                    for p in packages
                ]
            }


def multi_source_payload(sources: Sequence[RbSource]) -> list[StrDict]:
    return [{"source_type": str(source.source_type), **source_payload(source)} for source in sources]


def _query(params: QueryParams, *, draft: bool | None = None) -> dict[str, str]:
    query: dict[str, str] = {"async": "true" if params.is_async else "false"}
    if params.project_key:
        query["project"] = params.project_key
    if params.promotion_type:
        query["operation"] = params.promotion_type
    if draft:
        query["draft"] = "true"
    return query


def _headers(signing_key: str) -> dict[str, str]:
    if not signing_key:
        return {}
    return {SIGNING_KEY_HEADER: signing_key}


def _decode(raw: bytes) -> StrDict:
    if not raw.strip():
        return {}
    try:
        data: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return as_str_dict(data) or {}


@dataclass(slots=True)
class LifecycleService:
    http: HttpClient
    server: ServerDetails

    @property
    def _release_bundle_url(self) -> str:
        return f"{self.server.lifecycle_url}api/v2/release_bundle"

    def _bundle_path(self, details: ReleaseBundleDetails) -> str:
        return f"{quote(details.name, safe='')}/{quote(details.version, safe='')}"

    def _send(
        self,
        method: str,
        url: str,
        body: Mapping[str, object] | None,
        *,
        query: Mapping[str, str],
        signing_key: str = "",
        message: str,
    ) -> Result[StrDict, LifecycleError]:
        payload = None if body is None else dict(body)
        result = self.http.send_json(method, url, payload, params=query, headers=_headers(signing_key))
        if isinstance(result, Err):
            return Err(LifecycleError(kind="network", message=message, hint=str(result.error)))
        return Ok(_decode(result.value))

    def _create_single(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: RbSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        body: StrDict = {
            "release_bundle_name": details.name,
            "release_bundle_version": details.version,
            "skip_docker_manifest_resolution": False,
            "source_type": str(source.source_type),
            "source": source_payload(source),
        }
        return self._send(
            "POST",
            self._release_bundle_url,
            body,
            query=_query(params, draft=draft),
            signing_key=signing_key,
            message=f"failed to create release bundle {details.name}/{details.version}",
        )

    def create_from_aql(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: AqlSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._create_single(details, params, signing_key, source, draft)

    def create_from_artifacts(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: ArtifactsSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._create_single(details, params, signing_key, source, draft)

    def create_from_builds(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: BuildsSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._create_single(details, params, signing_key, source, draft)

    def create_from_release_bundles(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: ReleaseBundlesSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._create_single(details, params, signing_key, source, draft)

    def create_from_packages(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        source: PackagesSource,
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        return self._create_single(details, params, signing_key, source, draft)

    def create_from_multiple_sources(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        sources: Sequence[RbSource],
        draft: bool,
    ) -> Result[StrDict, LifecycleError]:
        body: StrDict = {
            "release_bundle_name": details.name,
            "release_bundle_version": details.version,
            "skip_docker_manifest_resolution": False,
            "sources": multi_source_payload(sources),
        }
        return self._send(
            "POST",
            self._release_bundle_url,
            body,
            query=_query(params, draft=draft),
            signing_key=signing_key,
            message=f"failed to create release bundle {details.name}/{details.version}",
        )

    def update_from_multiple_sources(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        sources: Sequence[RbSource],
    ) -> Result[StrDict, LifecycleError]:
        return self._send(
            "PATCH",
            f"{self._release_bundle_url}/{self._bundle_path(details)}",
            {"add_sources": multi_source_payload(sources)},
            query=_query(params),
            signing_key=signing_key,
            message=f"failed to update release bundle {details.name}/{details.version}",
        )

    def promote(
        self,
        details: ReleaseBundleDetails,
        params: QueryParams,
        signing_key: str,
        options: PromotionOptions,
    ) -> Result[StrDict, LifecycleError]:
        body: StrDict = {
            "environment": options.environment,
            "included_repository_keys": list(options.include_repositories),
            "excluded_repository_keys": list(options.exclude_repositories),
        }
        return self._send(
            "POST",
            f"{self.server.lifecycle_url}api/v2/promotion/records/{self._bundle_path(details)}",
            body,
            query=_query(params),
            signing_key=signing_key,
            message=f"failed to promote release bundle {details.name}/{details.version}",
        )

    @property
    def _promotion_records_url(self) -> str:
        return f"{self.server.lifecycle_url}api/v2/promotion/records"

    def delete_local(
        self, details: ReleaseBundleDetails, params: QueryParams
    ) -> Result[StrDict, LifecycleError]:
        return self._send(
            "DELETE",
            f"{self._release_bundle_url}/records/{self._bundle_path(details)}",
            None,
            query=_query(params),
            message=f"failed to delete release bundle {details.name}/{details.version}",
        )

    def get_promotions(
        self, details: ReleaseBundleDetails, params: QueryParams
    ) -> Result[list[StrDict], LifecycleError]:
        query = {"project": params.project_key} if params.project_key else None
        url = f"{self._promotion_records_url}/{self._bundle_path(details)}"
        result = self.http.get_json(url, params=query)
        if isinstance(result, Err):
            return Err(
                LifecycleError(
                    kind="network",
                    message=f"failed to list promotions of release bundle {details.name}/{details.version}",
                    hint=str(result.error),
                )
            )
        data = as_str_dict(result.value) or {}
        rows = as_obj_list(data.get("promotions")) or []
        return Ok([row for row in (as_str_dict(item) for item in rows) if row is not None])

    def delete_promotion(
        self, details: ReleaseBundleDetails, params: QueryParams, created_millis: str
    ) -> Result[StrDict, LifecycleError]:
        return self._send(
            "DELETE",
            f"{self._promotion_records_url}/{self._bundle_path(details)}/{quote(created_millis, safe='')}",
            None,
            query=_query(params),
            message=f"failed to delete promotion {created_millis} of {details.name}/{details.version}",
        )

    def remote_delete(
        self, details: ReleaseBundleDetails, params: QueryParams, options: RemoteDeleteOptions
    ) -> Result[StrDict, LifecycleError]:
        body: StrDict = {
            "dry_run": options.dry_run,
            "distribution_rules": [
                {
                    "site_name": rule.site_name,
                    "city_name": rule.city_name,
                    "country_codes": list(rule.country_codes),
                }
                for rule in options.rules
            ],
        }
        return self._send(
            "POST",
            f"{self.server.lifecycle_url}api/v2/distribution/remote_delete/{self._bundle_path(details)}",
            body,
            query=_query(params),
            message=f"failed to delete release bundle {details.name}/{details.version} remotely",
        )

    def set_tag(
        self, details: ReleaseBundleDetails, params: QueryParams, tag: str
    ) -> Result[StrDict, LifecycleError]:
        return self._send(
            "PUT",
            f"{self._release_bundle_url}/{self._bundle_path(details)}/tag",
            {"tag": tag},
            query={"project": params.project_key} if params.project_key else {},
            message=f"failed to tag release bundle {details.name}/{details.version}",
        )
