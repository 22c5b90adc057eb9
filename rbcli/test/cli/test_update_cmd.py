from __future__ import annotations

import pytest
import typer

from rbcli.cli.context import CLIContext
from rbcli.core.config import ServerDetails
from rbcli.core.errors import ErrorCode
from rbcli.output.console import MockConsole
from rbcli.services.lifecycle.model import ReleaseBundlesSource
from rbcli.test.fakes import FakeArtifactory, FakeLifecycle


def _update(**overrides: object) -> None:
    import rbcli.cli.commands.update_cmd as update_cmd

    args: dict[str, object] = {
        "name": "my-bundle",
        "version": "1.0.0",
        "add": True,
        "spec": None,
        "spec_vars": None,
        "source_type_builds": None,
        "source_type_release_bundles": None,
        "project": "",
        "signing_key": "",
        "sync": True,
    }
    args.update(overrides)
    update_cmd.update(**args)  # type: ignore[arg-type]


def test_update_without_sources_fails_before_connecting(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    import rbcli.cli.commands.update_cmd as update_cmd

    def fake_build_context() -> CLIContext:
        raise AssertionError("context must not be built")

    monkeypatch.setattr(update_cmd, "build_context", fake_build_context)

    with pytest.raises(typer.Exit) as exc:
        _update()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert update_cmd.MISSING_UPDATE_SOURCE_ERR_MSG in capsys.readouterr().err


def test_update_adds_release_bundle_sources(monkeypatch: pytest.MonkeyPatch) -> None:
    import rbcli.cli.commands.update_cmd as update_cmd

    lifecycle = FakeLifecycle()
    console = MockConsole()
    ctx = CLIContext(
        server=ServerDetails(url="https://example.jfrog.io/"),
        console=console,
        artifactory=FakeArtifactory(version="7.114.0"),
        lifecycle=lifecycle,
    )
    monkeypatch.setattr(update_cmd, "build_context", lambda: ctx)

    _update(source_type_release_bundles="name=rb1, version=2.0", signing_key="key")

    assert [c.method for c in lifecycle.calls] == ["update"]
    call = lifecycle.calls[0]
    assert call.signing_key == "key"
    assert isinstance(call.payload, tuple)
    (source,) = call.payload
    assert isinstance(source, ReleaseBundlesSource)
    assert [(rb.name, rb.version) for rb in source.release_bundles] == [("rb1", "2.0")]
    assert console.find("release bundle my-bundle/1.0.0 updated")


def test_update_without_add_flag_is_a_user_error(monkeypatch: pytest.MonkeyPatch) -> None:
    import rbcli.cli.commands.update_cmd as update_cmd

    lifecycle = FakeLifecycle()
    ctx = CLIContext(
        server=ServerDetails(url="https://example.jfrog.io/"),
        console=MockConsole(),
        artifactory=FakeArtifactory(version="7.114.0"),
        lifecycle=lifecycle,
    )
    monkeypatch.setattr(update_cmd, "build_context", lambda: ctx)

    with pytest.raises(typer.Exit) as exc:
        _update(add=False, source_type_builds="name=b1, id=3")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert lifecycle.calls == []
