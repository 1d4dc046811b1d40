"""
Installer dispatch table.

Maps every ``InstallerKind`` to the recipe that installs a record of that
kind. Download-based recipes work in a private scratch directory that is
removed whatever happens, and finish by placing an executable in the local
bin directory. Package-manager recipes hand the package name to the
ecosystem's own tool and let its exit status decide success.
"""

import logging
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable

from workstation_setup.archive import unpack_gzip_single, unpack_tar
from workstation_setup.commands import CommandRunner
from workstation_setup.errors import InstallError
from workstation_setup.fetch import fetch
from workstation_setup.records import InstallerKind, InstallRecord

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "workstation_setup_"

Recipe = Callable[["Installer", InstallRecord], None]

RECIPES: Dict[InstallerKind, Recipe] = {}


def recipe(kind: InstallerKind) -> Callable[[Recipe], Recipe]:
    def register(func: Recipe) -> Recipe:
        RECIPES[kind] = func
        return func

    return register


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def place_executable(path: Path, name: str, bin_dir: Path) -> Path:
    """Rename ``path`` to ``name``, mark it executable and move it into ``bin_dir``."""
    try:
        if path.name != name:
            path = path.rename(path.with_name(name))
        make_executable(path)
        bin_dir.mkdir(parents=True, exist_ok=True)
        dest = bin_dir / name
        shutil.move(str(path), str(dest))
    except OSError as e:
        raise InstallError(f"Could not install {name} into {bin_dir}: {e}") from e
    logger.debug(f"Installed {dest}")
    return dest


class Installer:
    def __init__(self, runner: CommandRunner, bin_dir: Path):
        self.runner = runner
        self.bin_dir = bin_dir

    def install(self, record: InstallRecord) -> None:
        kind = record.installer_kind
        if kind is None:
            logger.warning(f"Unknown type {record.kind}, not installing {record.name}")
            return
        if kind not in (InstallerKind.TAR, InstallerKind.GZIP):
            logger.info(f"Installing {record.name} from {record.kind}")
        RECIPES[kind](self, record)

    def install_all(self, records: Iterable[InstallRecord]) -> None:
        for record in records:
            self.install(record)

    # ----------------------------------------------------------------
    # Download recipes
    # ----------------------------------------------------------------
    @recipe(InstallerKind.TAR)
    def install_tar(self, record: InstallRecord) -> None:
        logger.info(f"Installing {record.name} from {record.source}")
        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
            archive = fetch(record.source, scratch)
            extracted = unpack_tar(archive, record.rename_from or record.name)
            place_executable(extracted, record.name, self.bin_dir)

    @recipe(InstallerKind.GZIP)
    def install_gzip(self, record: InstallRecord) -> None:
        logger.info(f"Installing {record.name} from {record.source}")
        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
            archive = fetch(record.source, scratch)
            extracted = unpack_gzip_single(archive)
            place_executable(extracted, record.name, self.bin_dir)

    @recipe(InstallerKind.BINARY)
    def install_binary(self, record: InstallRecord) -> None:
        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
            downloaded = fetch(record.source, scratch, filename=record.rename_from)
            place_executable(downloaded, record.name, self.bin_dir)

    # ----------------------------------------------------------------
    # Package-manager recipes
    # ----------------------------------------------------------------
    @recipe(InstallerKind.NPM)
    def install_npm(self, record: InstallRecord) -> None:
        self.runner.run("npm", "install", "--global", record.name)

    @recipe(InstallerKind.APT)
    def install_apt(self, record: InstallRecord) -> None:
        self.runner.sudo("apt", "install", "--yes", record.name, env={"DEBIAN_FRONTEND": "noninteractive"})

    @recipe(InstallerKind.CARGO)
    def install_cargo(self, record: InstallRecord) -> None:
        self.runner.run("cargo", "install", record.name)

    @recipe(InstallerKind.PIP)
    def install_pip(self, record: InstallRecord) -> None:
        self.runner.run("pip3", "install", "--user", record.name)

    @recipe(InstallerKind.RACO)
    def install_raco(self, record: InstallRecord) -> None:
        self.runner.run("raco", "pkg", "install", record.name)

    @recipe(InstallerKind.MISE)
    def install_mise(self, record: InstallRecord) -> None:
        self.runner.run("mise", "use", "--global", f"{record.name}@{record.source or 'latest'}")


_unhandled = [kind.value for kind in InstallerKind if kind not in RECIPES]
if _unhandled:
    raise RuntimeError(f"No install recipe for kinds: {', '.join(_unhandled)}")
