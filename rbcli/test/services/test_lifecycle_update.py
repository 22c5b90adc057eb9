from __future__ import annotations

import pytest

from rbcli.core.result import Err, Ok
from rbcli.output.console import MockConsole
from rbcli.services.lifecycle.model import (
    BuildSource,
    BuildsSource,
    FileGroup,
    QueryParams,
    ReleaseBundleDetails,
    ReleaseBundleSource,
    ReleaseBundlesSource,
    SpecFiles,
)
from rbcli.services.lifecycle.update import (
    EMPTY_UPDATE_SOURCES_ERR_MSG,
    MISSING_OPERATION_ERR_MSG,
    NO_UPDATE_INPUT_ERR_MSG,
    ReleaseBundleUpdateCommand,
    UpdateOptions,
)
from rbcli.test.fakes import FakeArtifactory, FakeLifecycle

DETAILS = ReleaseBundleDetails(name="my-bundle", version="1.0.0")


def _command(lifecycle: FakeLifecycle, **options: object) -> ReleaseBundleUpdateCommand:
    return ReleaseBundleUpdateCommand(
        artifactory=FakeArtifactory(),
        lifecycle=lifecycle,
        console=MockConsole(),
        options=UpdateOptions(details=DETAILS, **options),  # type: ignore[arg-type]
    )


def test_add_builds_from_flag() -> None:
    lifecycle = FakeLifecycle()

    result = _command(lifecycle, add_sources=True, sources_builds="name=b1,id=5").run()

    assert isinstance(result, Ok)
    call = lifecycle.calls[0]
    assert call.method == "update"
    assert call.payload == (
        BuildsSource(builds=(BuildSource(name="b1", number="5", repository="artifactory-build-info"),)),
    )


def test_add_flag_is_mandatory() -> None:
    lifecycle = FakeLifecycle()

    result = _command(lifecycle, sources_builds="name=b1,id=5").run()

    assert isinstance(result, Err)
    assert result.error.message == MISSING_OPERATION_ERR_MSG
    assert lifecycle.calls == []


def test_spec_or_flags_required() -> None:
    result = _command(FakeLifecycle(), add_sources=True).run()
    assert isinstance(result, Err)
    assert result.error.message == NO_UPDATE_INPUT_ERR_MSG


def test_empty_flags_are_an_error() -> None:
    result = _command(FakeLifecycle(), add_sources=True, sources_release_bundles=" ; ").run()
    assert isinstance(result, Err)
    assert result.error.message == EMPTY_UPDATE_SOURCES_ERR_MSG


def test_flags_win_over_spec() -> None:
    lifecycle = FakeLifecycle()
    spec = SpecFiles(files=(FileGroup(build="from-spec/1"),))

    _command(lifecycle, add_sources=True, spec=spec, sources_builds="name=from-flag,id=2").run()

    builds = lifecycle.calls[0].payload[0]  # type: ignore[index]
    assert builds.builds[0].name == "from-flag"


def test_flag_sources_add_builds_before_release_bundles() -> None:
    lifecycle = FakeLifecycle()

    _command(
        lifecycle,
        add_sources=True,
        sources_release_bundles="name=rb,version=1",
        sources_builds="name=b1,id=5",
    ).run()

    builds, bundles = lifecycle.calls[0].payload  # type: ignore[misc]
    assert isinstance(builds, BuildsSource)
    assert isinstance(bundles, ReleaseBundlesSource)


def test_spec_sources_keep_project_keys_as_given() -> None:
    lifecycle = FakeLifecycle()
    spec = SpecFiles(files=(FileGroup(bundle="rb/1", project="p"), FileGroup(build="a/1")))

    result = _command(
        lifecycle, add_sources=True, spec=spec, params=QueryParams(project_key="p"), signing_key="k"
    ).run()

    assert isinstance(result, Ok)
    call = lifecycle.calls[0]
    assert call.signing_key == "k"
    assert call.params.project_key == "p"
    bundles, builds = call.payload  # type: ignore[misc]
    assert bundles == ReleaseBundlesSource(
        release_bundles=(ReleaseBundleSource(name="rb", version="1", project_key="p"),)
    )
    assert isinstance(builds, BuildsSource)


@pytest.mark.parametrize(
    "files",
    [
        (),
        (FileGroup(aql="{}"), FileGroup(aql="{}")),
        (FileGroup(pattern="r/*", target="x/"),),
    ],
)
def test_invalid_spec(files: tuple[FileGroup, ...]) -> None:
    lifecycle = FakeLifecycle()

    result = _command(lifecycle, add_sources=True, spec=SpecFiles(files=files)).run()

    assert isinstance(result, Err)
    assert lifecycle.calls == []
