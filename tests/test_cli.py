from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from buildorch.cli import app

from conftest import FakeRunner


cli = CliRunner()


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "buildorch.yaml"
    path.write_text(
        "paths:\n"
        f"  source_root: {tmp_path / 'src'}\n"
        f"  install_prefix: {tmp_path / 'prefix'}\n"
        f"  runs_dir: {tmp_path / 'runs'}\n"
        f"  overlay: {tmp_path / 'overlay.json'}\n"
        "build:\n"
        "  jobs: 1\n"
    )
    return path


def test_list_command(config):
    result = cli.invoke(app, ["list", "--config", str(config)])

    assert result.exit_code == 0
    assert "- all: mesa, piglit [meta task]" in result.output
    assert "git:https://gitlab.freedesktop.org/mesa/mesa.git" in result.output


def test_build_list_flag_exits_without_running(config):
    fake = FakeRunner()
    with patch("buildorch.cli.CommandRunner", return_value=fake):
        result = cli.invoke(app, ["build", "--list", "--config", str(config)])

    assert result.exit_code == 0
    assert "Available tasks:" in result.output
    assert fake.calls == []


def test_malformed_overlay_stops_before_any_task(config, tmp_path):
    (tmp_path / "overlay.json").write_text("{not json")
    fake = FakeRunner()
    with patch("buildorch.cli.CommandRunner", return_value=fake):
        result = cli.invoke(app, ["build", "--config", str(config)])

    assert result.exit_code == 1
    assert "Malformed overlay" in result.output
    assert "Fix or remove the overlay file" in result.output
    assert fake.calls == []
    assert not (tmp_path / "src").exists()


def test_unknown_task_is_not_fatal(config):
    fake = FakeRunner()
    with patch("buildorch.cli.CommandRunner", return_value=fake):
        result = cli.invoke(app, ["build", "nope", "--config", str(config)])

    assert result.exit_code == 0
    assert "Unknown task: nope" in result.output
    assert "- libdrm: no dependencies" in result.output
    assert fake.calls == []


def test_build_single_task_without_dependencies(config, tmp_path):
    fake = FakeRunner()
    with patch("buildorch.cli.CommandRunner", return_value=fake):
        result = cli.invoke(app, ["build", "piglit", "--no-deps", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert fake.commands()[0] == "git clone https://gitlab.freedesktop.org/mesa/piglit.git ."
    assert all("mesa.git" not in c for c in fake.commands())
    assert (tmp_path / "src" / "mesa" / "piglit" / "build").is_dir()


def test_strict_failure_exits_nonzero(config):
    fake = FakeRunner(failures={"git clone"})
    with patch("buildorch.cli.CommandRunner", return_value=fake):
        result = cli.invoke(app, ["build", "libdrm", "--strict", "--config", str(config)])

    assert result.exit_code == 1
    assert "Command failed" in result.output


def test_missing_settings_file(tmp_path):
    result = cli.invoke(app, ["list", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Settings file not found" in result.output
