from __future__ import annotations
import logging
from pathlib import Path
import signal
import subprocess
from typing import Iterator
import pytest
from click.testing import CliRunner
from pytest_mock import MockerFixture
from conftest import FakeHTTP
from workstation_setup import cli
from workstation_setup.console import LOGGER_NAME, console
from workstation_setup.errors import InstallError


@pytest.fixture(autouse=True)
def isolate_cli(mocker: MockerFixture) -> Iterator[None]:
    mocker.patch("workstation_setup.cli.install_signal_handlers")
    no_color = console.no_color
    logger = logging.getLogger(LOGGER_NAME)
    handlers = logger.handlers[:]
    yield
    for h in logger.handlers[:]:
        if h not in handlers:
            h.close()
            logger.removeHandler(h)
    console.no_color = no_color


def args(tmp_path: Path, *extra: str) -> list[str]:
    return ["--config-dir", str(tmp_path), "--log-file", str(tmp_path / "logs" / "setup.log"), *extra]


def test_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-h"]) == 0
    assert "--config-dir" in capsys.readouterr().out


def test_unknown_option() -> None:
    assert cli.main(["--frobnicate"]) == 1


def test_missing_config_dir(tmp_path: Path) -> None:
    assert cli.main(["--config-dir", str(tmp_path / "nope")]) == 1


def test_options_reach_config(tmp_path: Path, mocker: MockerFixture) -> None:
    setup = mocker.patch("workstation_setup.cli.WorkstationSetup")
    assert cli.main(args(tmp_path, "--user", "alice", "--no-color", "-v")) == 0
    config = setup.call_args.args[0]
    assert config.CONFIG_DIR == tmp_path.resolve()
    assert config.USERNAME == "alice"
    assert config.LOG_FILE == tmp_path / "logs" / "setup.log"
    assert console.no_color
    setup.return_value.run.assert_called_once_with()
    assert (tmp_path / "logs" / "setup.log").exists()


def test_sudo_denied(tmp_path: Path, mocker: MockerFixture, http: FakeHTTP) -> None:
    def fake_run(cmd, **_kwargs):
        if cmd == ["sudo", "-v"]:
            raise subprocess.CalledProcessError(1, cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    run = mocker.patch("workstation_setup.commands.subprocess.run", side_effect=fake_run)
    assert cli.main(args(tmp_path)) == 1
    assert [c.args[0] for c in run.call_args_list] == [["sudo", "-k"], ["sudo", "-v"]]
    assert http.calls == []
    assert "sudo authentication required" in (tmp_path / "logs" / "setup.log").read_text()


def test_setup_error(tmp_path: Path, mocker: MockerFixture) -> None:
    setup = mocker.patch("workstation_setup.cli.WorkstationSetup")
    setup.return_value.run.side_effect = InstallError("Command not found: raco")
    assert cli.main(args(tmp_path)) == 1


def test_interrupted(tmp_path: Path, mocker: MockerFixture) -> None:
    setup = mocker.patch("workstation_setup.cli.WorkstationSetup")
    setup.return_value.run.side_effect = KeyboardInterrupt
    assert cli.main(args(tmp_path)) == 130


@pytest.mark.parametrize("signum,code", [(signal.SIGTERM, 143), (signal.SIGHUP, 129)])
def test_signal_handler(signum: int, code: int) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.signal_handler(signum, None)
    assert exc_info.value.code == code


def test_help_lists_every_option() -> None:
    result = CliRunner().invoke(cli.cli, ["--help"])
    assert result.exit_code == 0
    for option in ("--verbose", "--no-color", "--config-dir", "--user", "--log-file"):
        assert option in result.output


def test_log_file_under_regular_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    argv = ["--config-dir", str(tmp_path), "--log-file", str(blocker / "setup.log")]
    assert cli.main(argv) == 1
    assert "Fatal error" in capsys.readouterr().err


def test_unexpected_error(tmp_path: Path, mocker: MockerFixture) -> None:
    setup = mocker.patch("workstation_setup.cli.WorkstationSetup")
    setup.return_value.run.side_effect = PermissionError("~/.local/bin")
    assert cli.main(args(tmp_path)) == 1
