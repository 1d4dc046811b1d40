from __future__ import annotations
from pathlib import Path
import pytest
from pytest_mock import MockerFixture
import requests
from conftest import FakeHTTP, FakeResponse, FakeRunner
from workstation_setup.errors import FetchError
from workstation_setup.fetch import clone_repo, fetch, url_filename

URL = "https://github.com/jesseduffield/lazygit/releases/download/v0.54.2/lazygit_0.54.2_linux_x86_64.tar.gz"


@pytest.mark.parametrize(
    "url,name",
    [
        (URL, "lazygit_0.54.2_linux_x86_64.tar.gz"),
        ("https://sw.kovidgoyal.net/kitty/installer.sh", "installer.sh"),
        ("https://example.com/dl/tool.gz?raw=true#frag", "tool.gz"),
    ],
)
def test_url_filename(url: str, name: str) -> None:
    assert url_filename(url) == name


@pytest.mark.parametrize("url", ["https://mise.run", "https://example.com/dir/"])
def test_url_filename_without_name(url: str) -> None:
    with pytest.raises(FetchError):
        url_filename(url)


def test_fetch_writes_url_basename(http: FakeHTTP, tmp_path: Path) -> None:
    http.served[URL] = b"tarball bytes" * 1000
    path = fetch(URL, tmp_path)
    assert path == tmp_path / "lazygit_0.54.2_linux_x86_64.tar.gz"
    assert path.read_bytes() == b"tarball bytes" * 1000
    assert http.calls == [URL]


def test_fetch_defaults_to_working_directory(
    http: FakeHTTP, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    http.served[URL] = b"data"
    assert fetch(URL) == tmp_path / "lazygit_0.54.2_linux_x86_64.tar.gz"


def test_fetch_explicit_filename(http: FakeHTTP, tmp_path: Path) -> None:
    http.served["https://setup.atuin.sh"] = b"#!/bin/bash"
    path = fetch("https://setup.atuin.sh", tmp_path, filename="install.sh")
    assert path == tmp_path / "install.sh"


def test_fetch_overwrites_previous_download(http: FakeHTTP, tmp_path: Path) -> None:
    (tmp_path / "lazygit_0.54.2_linux_x86_64.tar.gz").write_bytes(b"stale and much longer")
    http.served[URL] = b"fresh"
    assert fetch(URL, tmp_path).read_bytes() == b"fresh"


def test_fetch_missing_resource_fails(http: FakeHTTP, tmp_path: Path) -> None:
    with pytest.raises(FetchError, match="404"):
        fetch(URL, tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_fetch_network_failure(mocker: MockerFixture, tmp_path: Path) -> None:
    mocker.patch(
        "workstation_setup.fetch.requests.get",
        side_effect=requests.ConnectionError("Name or service not known"),
    )
    with pytest.raises(FetchError, match="Name or service not known"):
        fetch(URL, tmp_path)


def test_fetch_write_failure(http: FakeHTTP, tmp_path: Path) -> None:
    http.served[URL] = b"data"
    with pytest.raises(FetchError, match="Could not write"):
        fetch(URL, tmp_path / "no-such-dir")


def test_clone_repo(tmp_path: Path) -> None:
    runner = FakeRunner()
    dest = tmp_path / ".dotfiles"
    clone_repo("git@github.com:example/dotfiles.git", dest, runner)
    assert runner.calls == [["git", "clone", "git@github.com:example/dotfiles.git", str(dest)]]


def test_clone_repo_into_empty_directory(tmp_path: Path) -> None:
    runner = FakeRunner()
    clone_repo("https://example.com/repo.git", tmp_path, runner)
    assert len(runner.calls) == 1


def test_clone_repo_destination_not_empty(tmp_path: Path) -> None:
    (tmp_path / "file").write_text("x")
    runner = FakeRunner()
    with pytest.raises(FetchError, match="not empty"):
        clone_repo("https://example.com/repo.git", tmp_path, runner)
    assert runner.calls == []


def test_clone_repo_git_failure(tmp_path: Path) -> None:
    runner = FakeRunner(fail_on=["git", "clone"])
    with pytest.raises(FetchError, match="Clone of https://example.com/repo.git failed"):
        clone_repo("https://example.com/repo.git", tmp_path / "repo", runner)


def test_fetch_malformed_content_length(mocker: MockerFixture, tmp_path: Path) -> None:
    response = FakeResponse(b"data")
    response.headers["content-length"] = "lots"
    mocker.patch("workstation_setup.fetch.requests.get", return_value=response)
    assert fetch(URL, tmp_path).read_bytes() == b"data"
