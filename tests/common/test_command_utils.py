import logging
import subprocess

import pytest
from pytest_mock import MockerFixture

from common.command_utils import (
    COMMAND_NOT_FOUND_EXIT_CODE,
    CommandExecutor,
    command_exists,
    log_message,
    run_command,
)
from provision.exceptions import CommandError


@pytest.fixture
def mock_logger(mocker: MockerFixture):
    """Fixture to create a mock logger for testing."""
    return mocker.MagicMock(spec=logging.Logger)


@pytest.fixture
def mock_subprocess_run(mocker: MockerFixture):
    return mocker.patch("common.command_utils.subprocess.run")


def test_log_message_levels(mock_logger):
    log_message("done", "success", mock_logger)
    log_message("careful", "warning", mock_logger)
    log_message("boom", "error", mock_logger)
    log_message("detail", "debug", mock_logger)
    log_message("odd", "unknown-level", mock_logger)

    mock_logger.info.assert_any_call("done", exc_info=False)
    mock_logger.info.assert_any_call("odd", exc_info=False)
    mock_logger.warning.assert_called_once_with("careful", exc_info=False)
    mock_logger.error.assert_called_once_with("boom", exc_info=False)
    mock_logger.debug.assert_called_once_with("detail", exc_info=False)


def test_run_command_combines_output(mock_subprocess_run, mock_logger):
    mock_subprocess_run.return_value = subprocess.CompletedProcess(
        ["nginx", "-t"], 0, stdout="syntax is ok\n", stderr=None
    )

    result = run_command(["nginx", "-t"], None, current_logger=mock_logger)

    assert result.stdout == "syntax is ok\n"
    mock_subprocess_run.assert_called_once_with(
        ["nginx", "-t"],
        check=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        input=None,
        cwd=None,
        env=None,
    )


def test_run_command_reraises_called_process_error(mock_subprocess_run, mock_logger):
    mock_subprocess_run.side_effect = subprocess.CalledProcessError(
        1, ["false"], output="nope"
    )

    with pytest.raises(subprocess.CalledProcessError):
        run_command(["false"], None, current_logger=mock_logger)
    mock_logger.error.assert_called()


def test_executor_returns_exit_code_and_output(mock_subprocess_run):
    mock_subprocess_run.return_value = subprocess.CompletedProcess(
        ["systemctl"], 3, stdout="inactive\n"
    )

    result = CommandExecutor().run("systemctl", ["is-active", "nginx"], check=False)

    assert result.exit_code == 3
    assert result.output == "inactive\n"


def test_executor_raises_command_error_on_failure(mock_subprocess_run):
    mock_subprocess_run.return_value = subprocess.CompletedProcess(
        ["apt-get"], 100, stdout="Reading lists...\nE: Unable to locate package php9.9-fpm\n"
    )

    with pytest.raises(CommandError) as excinfo:
        CommandExecutor().run("apt-get", ["install", "-yq", "php9.9-fpm"])

    error = excinfo.value
    assert error.exit_code == 100
    assert error.command == ["apt-get", "install", "-yq", "php9.9-fpm"]
    assert "E: Unable to locate package php9.9-fpm" in str(error)


def test_executor_reports_missing_command(mock_subprocess_run):
    mock_subprocess_run.side_effect = FileNotFoundError(2, "No such file", "ufw")

    result = CommandExecutor().run("ufw", ["status"], check=False)
    assert result.exit_code == COMMAND_NOT_FOUND_EXIT_CODE

    with pytest.raises(CommandError):
        CommandExecutor().run("ufw", ["status"])


def test_executor_merges_env_and_passes_stdin(mock_subprocess_run, monkeypatch):
    monkeypatch.setenv("PATH", "/usr/bin")
    mock_subprocess_run.return_value = subprocess.CompletedProcess(["mysql"], 0, stdout="1\n")

    CommandExecutor().run(
        "mysql", ["--user=root"], cmd_input="SELECT 1;", env={"MYSQL_PWD": "pw"}
    )

    kwargs = mock_subprocess_run.call_args.kwargs
    assert kwargs["input"] == "SELECT 1;"
    assert kwargs["env"]["MYSQL_PWD"] == "pw"
    assert kwargs["env"]["PATH"] == "/usr/bin"


def test_executor_never_logs_stdin_or_env(mock_subprocess_run, caplog):
    mock_subprocess_run.return_value = subprocess.CompletedProcess(["mysql"], 0, stdout="")

    with caplog.at_level(logging.DEBUG):
        CommandExecutor().run(
            "mysql",
            ["--user=root"],
            cmd_input="ALTER USER 'root'@'localhost' IDENTIFIED BY 'hunter2';",
            env={"MYSQL_PWD": "hunter2"},
        )

    assert "mysql --user=root" in caplog.text
    assert "hunter2" not in caplog.text


def test_command_exists(mocker: MockerFixture):
    mocker.patch("common.command_utils.shutil.which", side_effect=lambda name: "/usr/sbin/ufw" if name == "ufw" else None)
    assert command_exists("ufw")
    assert not command_exists("firewalld")
    assert CommandExecutor().exists("ufw")
