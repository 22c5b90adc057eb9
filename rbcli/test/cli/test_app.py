from __future__ import annotations

import os
from pathlib import Path

import pytest
import typer

from rbcli import __version__
from rbcli.core.config import ENV_ACCESS_TOKEN, ENV_CONFIG, ENV_URL


def _callback(**overrides: object) -> None:
    from rbcli.cli.app import _main  # pyright: ignore[reportPrivateUsage]

    args: dict[str, object] = {
        "version": False,
        "config": None,
        "url": None,
        "access_token": None,
        "user": None,
        "password": None,
    }
    args.update(overrides)
    _main(**args)  # type: ignore[arg-type]


def test_version_flag_prints_and_exits(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(typer.Exit) as exc:
        _callback(version=True)

    assert exc.value.exit_code == 0
    assert capsys.readouterr().out.strip() == __version__


def test_connection_flags_are_exported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (ENV_URL, ENV_ACCESS_TOKEN, ENV_CONFIG):
        monkeypatch.setenv(key, "")
    config = tmp_path / "rbcli.toml"

    _callback(url="https://example.jfrog.io", access_token="t0k", config=config)

    assert os.environ[ENV_URL] == "https://example.jfrog.io"
    assert os.environ[ENV_ACCESS_TOKEN] == "t0k"
    assert os.environ[ENV_CONFIG] == str(config.resolve())
