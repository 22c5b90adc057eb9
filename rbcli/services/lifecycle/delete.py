"""Release bundle deletion, locally or from distribution targets.

A local delete without an environment removes the version itself; with an
environment it only removes that environment's promotion records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from rbcli.core.result import Err, Ok, Result
from rbcli.core.structured import StrDict, as_obj_list, as_str_dict
from rbcli.output.console import ConsoleProtocol, Style
from rbcli.services.lifecycle.artifactory import ArtifactoryApi
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.lifecycle_api import DistributionRule, LifecycleApi, RemoteDeleteOptions
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails
from rbcli.services.lifecycle.spec import read_json_object
from rbcli.services.lifecycle.version import MIN_LIFECYCLE_VERSION, check_server_version


def distribution_rules_from_flags(
    site: str = "", city: str = "", country_codes: str = ""
) -> tuple[DistributionRule, ...]:
    codes = tuple(code.strip() for code in country_codes.split(";") if code.strip())
    return (DistributionRule(site_name=site or "*", city_name=city, country_codes=codes),)


def _rule_from_json(item: object, *, path: Path) -> Result[DistributionRule, LifecycleError]:
    data = as_str_dict(item)
    if data is None:
        return Err(
            LifecycleError(
                kind="invalid_input", message="each distribution rule must be an object", hint=str(path)
            )
        )
    site = data.get("site_name", "*")
    city = data.get("city_name", "")
    codes = as_obj_list(data.get("country_codes", [])) or []
    if not isinstance(site, str) or not isinstance(city, str) or not all(isinstance(c, str) for c in codes):
        return Err(
            LifecycleError(
                kind="invalid_input",
                message="distribution rule fields must be strings",
                hint=str(path),
            )
        )
    return Ok(
        DistributionRule(site_name=site or "*", city_name=city, country_codes=tuple(str(c) for c in codes))
    )


def read_distribution_rules(path: Path) -> Result[tuple[DistributionRule, ...], LifecycleError]:
    """Read ``{"distribution_rules": [{"site_name": ..., ...}]}`` from a file."""
    data = read_json_object(path, what="distribution rules")
    if isinstance(data, Err):
        return data

    items = as_obj_list(data.value.get("distribution_rules"))
    if not items:
        return Err(
            LifecycleError(
                kind="invalid_input",
                message="distribution rules file has no 'distribution_rules' entries",
                hint=str(path),
            )
        )

    rules: list[DistributionRule] = []
    for item in items:
        rule = _rule_from_json(item, path=path)
        if isinstance(rule, Err):
            return rule
        rules.append(rule.value)
    return Ok(tuple(rules))


@dataclass(frozen=True, slots=True)
class DeleteLocalOptions:
    details: ReleaseBundleDetails
    params: QueryParams = field(default_factory=QueryParams)
    environment: str = ""


@dataclass(slots=True)
class ReleaseBundleDeleteLocalCommand:
    artifactory: ArtifactoryApi
    lifecycle: LifecycleApi
    console: ConsoleProtocol
    options: DeleteLocalOptions

    def run(self) -> Result[StrDict, LifecycleError]:
        ok = check_server_version(self.artifactory, MIN_LIFECYCLE_VERSION)
        if isinstance(ok, Err):
            return ok

        opts = self.options
        if not opts.environment:
            self.console.print(
                f"delete release bundle {opts.details.name}/{opts.details.version}", Style.DIM
            )
            return self.lifecycle.delete_local(opts.details, opts.params)
        return self._delete_promotions()

    def _delete_promotions(self) -> Result[StrDict, LifecycleError]:
        opts = self.options
        promotions = self.lifecycle.get_promotions(opts.details, opts.params)
        if isinstance(promotions, Err):
            return promotions

        created = [
            str(row["created_millis"])
            for row in promotions.value
            if row.get("environment") == opts.environment and row.get("created_millis") is not None
        ]
        if not created:
            return Err(
                LifecycleError(
                    kind="resolution_failed",
                    message=(
                        f"no promotion of release bundle {opts.details.name}/{opts.details.version}"
                        f" to environment '{opts.environment}' was found"
                    ),
                )
            )

        response: StrDict = {}
        for millis in created:
            self.console.print(
                f"delete promotion of {opts.details.name}/{opts.details.version} to {opts.environment}"
                f" ({millis})",
                Style.DIM,
            )
            result = self.lifecycle.delete_promotion(opts.details, opts.params, millis)
            if isinstance(result, Err):
                return result
            response = result.value
        return Ok(response)


@dataclass(frozen=True, slots=True)
class DeleteRemoteOptions:
    details: ReleaseBundleDetails
    params: QueryParams = field(default_factory=QueryParams)
    rules: tuple[DistributionRule, ...] = (DistributionRule(),)
    dry_run: bool = False


@dataclass(slots=True)
class ReleaseBundleDeleteRemoteCommand:
    artifactory: ArtifactoryApi
    lifecycle: LifecycleApi
    console: ConsoleProtocol
    options: DeleteRemoteOptions

    def run(self) -> Result[StrDict, LifecycleError]:
        ok = check_server_version(self.artifactory, MIN_LIFECYCLE_VERSION)
        if isinstance(ok, Err):
            return ok

        opts = self.options
        if not opts.rules:
            return Err(
                LifecycleError(kind="missing_input", message="at least one distribution rule is required")
            )

        prefix = "[dry run] " if opts.dry_run else ""
        self.console.print(
            f"{prefix}delete release bundle {opts.details.name}/{opts.details.version}"
            " from distribution targets",
            Style.DIM,
        )
        return self.lifecycle.remote_delete(
            opts.details, opts.params, RemoteDeleteOptions(rules=opts.rules, dry_run=opts.dry_run)
        )
