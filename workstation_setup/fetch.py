"""
Downloading release artifacts and cloning repositories.
"""

import logging
import posixpath
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import requests
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
)

from workstation_setup import APP_NAME, VERSION
from workstation_setup.commands import CommandRunner
from workstation_setup.console import NordColors, console
from workstation_setup.errors import FetchError, InstallError

logger = logging.getLogger(__name__)

USER_AGENT = f"{APP_NAME.lower().replace(' ', '-')}/{VERSION}"
CHUNK_SIZE = 8192


def url_filename(url: str) -> str:
    """Return the last path segment of ``url``."""
    name = posixpath.basename(urlparse(url).path)
    if not name:
        raise FetchError(f"Cannot derive a file name from URL: {url}")
    return name


def fetch(url: str, dest_dir: Optional[Union[str, Path]] = None, filename: Optional[str] = None) -> Path:
    """
    Download ``url`` into ``dest_dir`` (the working directory by default),
    naming the file after the URL's last path segment unless ``filename`` is
    given. An existing file of that name is overwritten.
    """
    dest = Path(dest_dir) if dest_dir is not None else Path.cwd()
    path = dest / (filename or url_filename(url))
    logger.info(f"Downloading {url}")
    try:
        with requests.get(url, stream=True, headers={"User-Agent": USER_AGENT}) as response:
            response.raise_for_status()
            try:
                total_length = int(response.headers.get("content-length", 0)) or None
            except ValueError:
                total_length = None
            with (
                open(path, "wb") as out,
                Progress(
                    TextColumn(f"[{NordColors.FROST_2}]{{task.description}}"),
                    BarColumn(style=NordColors.FROST_4, complete_style=NordColors.FROST_2),
                    DownloadColumn(),
                    TimeRemainingColumn(),
                    console=console,
                    transient=True,
                ) as progress,
            ):
                task = progress.add_task(path.name, total=total_length)
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        out.write(chunk)
                        progress.update(task, advance=len(chunk))
    except requests.RequestException as e:
        path.unlink(missing_ok=True)
        raise FetchError(f"Download of {url} failed: {e}") from e
    except OSError as e:
        raise FetchError(f"Could not write {path}: {e}") from e
    logger.debug(f"Saved {url} to {path}")
    return path


def clone_repo(repo_url: str, dest_path: Union[str, Path], runner: CommandRunner) -> None:
    dest_path = Path(dest_path)
    if dest_path.exists() and (not dest_path.is_dir() or any(dest_path.iterdir())):
        raise FetchError(f"Cannot clone {repo_url}: {dest_path} already exists and is not empty")
    logger.info(f"Cloning {repo_url} to {dest_path}")
    try:
        runner.run("git", "clone", repo_url, dest_path)
    except InstallError as e:
        raise FetchError(f"Clone of {repo_url} failed: {e}") from e
