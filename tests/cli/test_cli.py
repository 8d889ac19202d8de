import datetime as dt
from pathlib import Path

import pytest
import pytz
from typer.testing import CliRunner

from dircount.cli.commands import counts, hooks
from dircount.cli.main import app
from dircount.db.models import HookBindingDb
from dircount.exceptions import HookInstallConflict
from dircount.types.hooks import HookInstallOutcome


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    config_file_path = tmp_path / "config.yml"
    config_file_path.write_text(
        "postgres:\n  host: 127.0.0.1\ncounters:\n  max_create_attempts: 20\n"
    )
    return config_file_path


@pytest.fixture
def session_factory_mock(mocker):
    session_factory = mocker.MagicMock()
    mocker.patch.object(hooks, "make_cli_session_factory", return_value=session_factory)
    mocker.patch.object(counts, "make_cli_session_factory", return_value=session_factory)
    return session_factory


def test_missing_config_file(runner: CliRunner, tmp_path: Path):
    result = runner.invoke(
        app, ["--config", str(tmp_path / "missing.yml"), "hooks", "status"]
    )
    assert result.exit_code != 0


def test_hooks_ensure(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    ensure_mock = mocker.patch.object(
        hooks,
        "ensure_directory_count_hook",
        return_value=HookInstallOutcome.INSTALLED,
    )

    result = runner.invoke(
        app, ["--config", str(config_file), "hooks", "ensure", "--version", "2"]
    )

    assert result.exit_code == 0, result.output
    assert "installed" in result.output
    ensure_mock.assert_called_once()
    kwargs = ensure_mock.call_args.kwargs
    assert kwargs["version"] == 2
    assert kwargs["session_factory"] is session_factory_mock
    assert kwargs["config"].counters.max_create_attempts.value == 20
    assert kwargs["config"].postgres.host.value == "127.0.0.1"


def test_hooks_ensure_failure(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    mocker.patch.object(
        hooks,
        "ensure_directory_count_hook",
        side_effect=HookInstallConflict("too many conflicts"),
    )

    result = runner.invoke(app, ["--config", str(config_file), "hooks", "ensure"])

    assert result.exit_code == 1
    assert "too many conflicts" in result.output


def test_hooks_status(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    binding = HookBindingDb(
        table_name="objects",
        hook_name="trg_directory_counts",
        version=2,
        implementation_ref="directory_counts_trigger_v2",
        installed=pytz.utc.localize(dt.datetime(2026, 9, 1)),
    )
    mocker.patch.object(hooks, "get_hook_bindings", return_value=[binding])
    mocker.patch.object(
        hooks, "get_trigger_function", return_value="directory_counts_trigger_v2"
    )

    result = runner.invoke(app, ["--config", str(config_file), "hooks", "status"])

    assert result.exit_code == 0, result.output
    assert "objects.trg_directory_counts: version 2" in result.output
    assert "warning" not in result.output


def test_hooks_status_without_trigger(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    binding = HookBindingDb(
        table_name="objects",
        hook_name="trg_directory_counts",
        version=2,
        implementation_ref="directory_counts_trigger_v2",
        installed=pytz.utc.localize(dt.datetime(2026, 9, 1)),
    )
    mocker.patch.object(hooks, "get_hook_bindings", return_value=[binding])
    mocker.patch.object(hooks, "get_trigger_function", return_value=None)

    result = runner.invoke(app, ["--config", str(config_file), "hooks", "status"])

    assert result.exit_code == 0, result.output
    assert "warning: no trigger exists" in result.output
    assert "None" not in result.output


def test_counts_show(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    mocker.patch.object(counts, "get_directory_count", return_value=12)

    result = runner.invoke(app, ["--config", str(config_file), "counts", "show", "/a/b"])

    assert result.exit_code == 0, result.output
    assert "/a/b: 12" in result.output


def test_counts_check_consistent(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    mocker.patch.object(counts, "find_count_mismatches", return_value=[])

    result = runner.invoke(app, ["--config", str(config_file), "counts", "check"])

    assert result.exit_code == 0, result.output


def test_counts_check_drift(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    mocker.patch.object(
        counts, "find_count_mismatches", return_value=[("/a", 3, 2)]
    )

    result = runner.invoke(app, ["--config", str(config_file), "counts", "check"])

    assert result.exit_code == 1
    assert "/a: expected 3, found 2" in result.output


def test_counts_rebuild_requires_confirmation(
    runner: CliRunner, config_file: Path, session_factory_mock, mocker
):
    rebuild_mock = mocker.patch.object(
        counts, "rebuild_directory_counts", return_value=4
    )

    result = runner.invoke(
        app, ["--config", str(config_file), "counts", "rebuild"], input="n\n"
    )
    assert result.exit_code != 0
    rebuild_mock.assert_not_called()

    result = runner.invoke(
        app, ["--config", str(config_file), "counts", "rebuild", "--yes"]
    )
    assert result.exit_code == 0, result.output
    assert "Rebuilt the counts of 4 directories." in result.output
    rebuild_mock.assert_called_once()
