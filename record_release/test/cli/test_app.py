from __future__ import annotations

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from record_release import __version__
from record_release.cli.app import app, main_phase_entry, post_phase_entry

_RUNNER_ENV = (
    "ACTIONS_RUNTIME_TOKEN",
    "ACTIONS_RESULTS_URL",
    "GITHUB_STATE",
    "GITHUB_OUTPUT",
    "GITHUB_EVENT_PATH",
    "RECORD_RELEASE_BLOB_DIR",
)


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in _RUNNER_ENV:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("INPUT_") or name.startswith("STATE_"):
            monkeypatch.delenv(name, raising=False)

    ws = tmp_path / "ws"
    ws.mkdir()
    runner_temp = tmp_path / "temp"
    runner_temp.mkdir()
    monkeypatch.setenv("GITHUB_WORKSPACE", str(ws))
    monkeypatch.setenv("RUNNER_TEMP", str(runner_temp))
    return ws


def test_version_flag_prints_version() -> None:
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_main_without_token_or_artifacts_fails(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["main"])
    assert result.exit_code == 1
    assert "token is required" in result.output


def test_post_without_handoff_skips(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["post"])
    assert result.exit_code == 0
    assert "Skipping post run" in result.output


def test_upload_mode_hands_files_to_post(
    workspace: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (workspace / "dist").mkdir()
    (workspace / "dist" / "app.bin").write_bytes(b"binary")
    blob_dir = tmp_path / "blobs"
    monkeypatch.setenv("RECORD_RELEASE_BLOB_DIR", str(blob_dir))
    monkeypatch.setenv("INPUT_ARTIFACTS", "dist/*.bin")

    runner = CliRunner()
    main = runner.invoke(app, ["main"])
    assert main.exit_code == 0, main.output
    assert not blob_dir.exists() or not any(blob_dir.iterdir())

    post = runner.invoke(app, ["post"])
    assert post.exit_code == 0, post.output

    bundles = [p for p in blob_dir.iterdir() if p.is_dir()]
    assert len(bundles) == 1
    assert (bundles[0] / "files" / "dist" / "app.bin").read_bytes() == b"binary"


def test_phase_entry_points_dispatch_to_commands(workspace: Path) -> None:
    with pytest.raises(SystemExit) as main_exit:
        main_phase_entry()
    assert main_exit.value.code == 1

    with pytest.raises(SystemExit) as post_exit:
        post_phase_entry()
    assert post_exit.value.code == 0
