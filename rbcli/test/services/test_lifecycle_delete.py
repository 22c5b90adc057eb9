from __future__ import annotations

import json
from pathlib import Path

from rbcli.core.result import Err, Ok
from rbcli.output.console import MockConsole
from rbcli.services.lifecycle.delete import (
    DeleteLocalOptions,
    DeleteRemoteOptions,
    ReleaseBundleDeleteLocalCommand,
    ReleaseBundleDeleteRemoteCommand,
    distribution_rules_from_flags,
    read_distribution_rules,
)
from rbcli.services.lifecycle.errors import LifecycleError
from rbcli.services.lifecycle.lifecycle_api import DistributionRule, RemoteDeleteOptions
from rbcli.services.lifecycle.model import QueryParams, ReleaseBundleDetails
from rbcli.test.fakes import FakeArtifactory, FakeLifecycle

DETAILS = ReleaseBundleDetails(name="my-bundle", version="1.0.0")


def _local(
    lifecycle: FakeLifecycle, options: DeleteLocalOptions, version: str = "7.90.0"
) -> ReleaseBundleDeleteLocalCommand:
    return ReleaseBundleDeleteLocalCommand(
        artifactory=FakeArtifactory(version=version),
        lifecycle=lifecycle,
        console=MockConsole(),
        options=options,
    )


def _remote(lifecycle: FakeLifecycle, options: DeleteRemoteOptions) -> ReleaseBundleDeleteRemoteCommand:
    return ReleaseBundleDeleteRemoteCommand(
        artifactory=FakeArtifactory(version="7.90.0"),
        lifecycle=lifecycle,
        console=MockConsole(),
        options=options,
    )


def test_delete_version() -> None:
    lifecycle = FakeLifecycle()
    params = QueryParams(project_key="proj", is_async=False)

    result = _local(lifecycle, DeleteLocalOptions(details=DETAILS, params=params)).run()

    assert isinstance(result, Ok)
    (call,) = lifecycle.calls
    assert call.method == "delete_local"
    assert call.params == params


def test_delete_promotions_of_one_environment() -> None:
    lifecycle = FakeLifecycle(
        promotions=[
            {"environment": "PROD", "created_millis": 1},
            {"environment": "QA", "created_millis": 2},
            {"environment": "PROD", "created_millis": 3},
        ]
    )

    result = _local(lifecycle, DeleteLocalOptions(details=DETAILS, environment="PROD")).run()

    assert isinstance(result, Ok)
    assert [(c.method, c.payload) for c in lifecycle.calls] == [
        ("get_promotions", None),
        ("delete_promotion", "1"),
        ("delete_promotion", "3"),
    ]


def test_unknown_environment_deletes_nothing() -> None:
    lifecycle = FakeLifecycle(promotions=[{"environment": "QA", "created_millis": 2}])

    result = _local(lifecycle, DeleteLocalOptions(details=DETAILS, environment="PROD")).run()

    assert isinstance(result, Err)
    assert result.error.kind == "resolution_failed"
    assert "'PROD'" in result.error.message
    assert [c.method for c in lifecycle.calls] == ["get_promotions"]


def test_delete_local_old_server() -> None:
    lifecycle = FakeLifecycle()

    result = _local(lifecycle, DeleteLocalOptions(details=DETAILS), version="7.1.0").run()

    assert isinstance(result, Err)
    assert result.error.kind == "unsupported_version"
    assert lifecycle.calls == []


def test_delete_local_failure_is_returned() -> None:
    lifecycle = FakeLifecycle(error=LifecycleError(kind="network", message="boom"))

    result = _local(lifecycle, DeleteLocalOptions(details=DETAILS)).run()

    assert isinstance(result, Err)
    assert result.error.message == "boom"


def test_remote_delete() -> None:
    lifecycle = FakeLifecycle()
    rules = (DistributionRule(site_name="edge-eu"),)

    result = _remote(lifecycle, DeleteRemoteOptions(details=DETAILS, rules=rules, dry_run=True)).run()

    assert isinstance(result, Ok)
    assert lifecycle.calls[0].payload == RemoteDeleteOptions(rules=rules, dry_run=True)


def test_remote_delete_needs_a_rule() -> None:
    lifecycle = FakeLifecycle()

    result = _remote(lifecycle, DeleteRemoteOptions(details=DETAILS, rules=())).run()

    assert isinstance(result, Err)
    assert result.error.kind == "missing_input"
    assert lifecycle.calls == []


def test_rules_from_flags() -> None:
    assert distribution_rules_from_flags() == (DistributionRule(),)
    assert distribution_rules_from_flags("", "Berlin", "DE; AT;") == (
        DistributionRule(site_name="*", city_name="Berlin", country_codes=("DE", "AT")),
    )


def test_read_distribution_rules(tmp_path: Path) -> None:
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps(
            {
                "distribution_rules": [
                    {"site_name": "edge-eu", "country_codes": ["DE"]},
                    {"city_name": "Austin"},
                ]
            }
        ),
        encoding="utf-8",
    )

    assert read_distribution_rules(path) == Ok(
        (
            DistributionRule(site_name="edge-eu", country_codes=("DE",)),
            DistributionRule(site_name="*", city_name="Austin"),
        )
    )


def test_read_distribution_rules_rejects_bad_entries(tmp_path: Path) -> None:
    empty = tmp_path / "empty.json"
    empty.write_text('{"distribution_rules": []}', encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text('{"distribution_rules": [{"site_name": 3}]}', encoding="utf-8")

    for path in (empty, bad):
        result = read_distribution_rules(path)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"

    missing = read_distribution_rules(tmp_path / "missing.json")
    assert isinstance(missing, Err)
    assert missing.error.kind == "io"
