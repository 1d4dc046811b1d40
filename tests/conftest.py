from __future__ import annotations
from dataclasses import dataclass, field
import io
import logging
from pathlib import Path
import subprocess
import tarfile
from typing import Any, Optional
import pytest
from pytest_mock import MockerFixture
import requests
from workstation_setup.commands import CommandRunner
from workstation_setup.config import Config
from workstation_setup.errors import InstallError


class FakeRunner(CommandRunner):
    """Records every command instead of running it."""

    def __init__(
        self,
        fail_on: Optional[list[str]] = None,
        outputs: Optional[dict[tuple[str, ...], str]] = None,
    ) -> None:
        self.calls: list[list[str]] = []
        self.inputs: list[Optional[str]] = []
        self.cwds: list[Optional[str]] = []
        self.fail_on = fail_on
        self.outputs = outputs or {}

    def run(
        self,
        *args: Any,
        cwd: Any = None,
        env: Any = None,
        input: Optional[str] = None,
        capture_output: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd = [str(a) for a in args]
        self.calls.append(cmd)
        self.inputs.append(input)
        self.cwds.append(str(cwd) if cwd is not None else None)
        if check and self.fail_on is not None and cmd[: len(self.fail_on)] == self.fail_on:
            raise InstallError(f"Command failed with exit code 1: {' '.join(cmd)}")
        return subprocess.CompletedProcess(cmd, 0, stdout=self.outputs.get(tuple(cmd), ""), stderr="")


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code
        self.headers = {"content-length": str(len(content))}

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *_exc: Any) -> None:
        pass

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size: int = 1) -> Any:
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]


@dataclass
class FakeHTTP:
    served: dict[str, bytes] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def get(self, url: str, **_kwargs: Any) -> FakeResponse:
        self.calls.append(url)
        if url not in self.served:
            return FakeResponse(b"Not Found", status_code=404)
        return FakeResponse(self.served[url])


@pytest.fixture(autouse=True)
def capture_all_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def http(mocker: MockerFixture) -> FakeHTTP:
    fake = FakeHTTP()
    mocker.patch("workstation_setup.fetch.requests.get", side_effect=fake.get)
    return fake


@pytest.fixture
def config(tmp_path: Path) -> Config:
    home = tmp_path / "home"
    home.mkdir()
    lists = tmp_path / "lists"
    lists.mkdir()
    return Config(
        CONFIG_DIR=lists,
        USERNAME="tester",
        USER_HOME=home,
        LOG_FILE=tmp_path / "setup.log",
    )


def make_tar(path: Path, files: dict[str, bytes], mode: str = "w:gz") -> Path:
    with tarfile.open(path, mode) as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


def tar_bytes(files: dict[str, bytes], mode: str = "w:gz") -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()
