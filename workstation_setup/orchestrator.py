"""
The bootstrap sequence.

Phases run strictly one after another; the first failure aborts the run.
sudo is authorised once up front and kept fresh in the background until the
sequence ends, however it ends.
"""

import logging
import tempfile
import time
from pathlib import Path
from typing import Optional

from workstation_setup import APP_NAME, tools
from workstation_setup.commands import CommandRunner, SudoKeepAlive, acquire_sudo
from workstation_setup.config import LANGUAGE_SERVERS_LIST, PACKAGES_LIST, Config, read_tokens
from workstation_setup.console import (
    console,
    create_header,
    format_elapsed,
    run_with_progress,
    summary_panel,
)
from workstation_setup.dispatch import SCRATCH_PREFIX, Installer
from workstation_setup.errors import InstallError
from workstation_setup.fetch import fetch
from workstation_setup.records import load_install_list

logger = logging.getLogger(__name__)

NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}
OS_RELEASE = Path("/etc/os-release")


def read_os_codename(path: Path = OS_RELEASE) -> str:
    """Return UBUNTU_CODENAME from os-release, or VERSION_CODENAME if absent."""
    values = {}
    try:
        for line in path.read_text().splitlines():
            key, sep, value = line.partition("=")
            if sep:
                values[key.strip()] = value.strip().strip('"')
    except OSError as e:
        raise InstallError(f"Could not read {path}: {e}") from e
    codename = values.get("UBUNTU_CODENAME") or values.get("VERSION_CODENAME")
    if not codename:
        raise InstallError(f"No distribution codename in {path}")
    return codename


class WorkstationSetup:
    def __init__(self, config: Optional[Config] = None, runner: Optional[CommandRunner] = None):
        self.config = config or Config()
        self.runner = runner or CommandRunner()
        self.installer = Installer(self.runner, self.config.local_bin)
        self.start_time = time.time()

    def run(self) -> None:
        console.print(create_header(APP_NAME))
        logger.info(f"Setting up {self.config.USERNAME} with input files from {self.config.CONFIG_DIR}")
        acquire_sudo(self.runner)
        with SudoKeepAlive(self.runner):
            run_with_progress("Installing Ubuntu packages", self.phase_packages)
            self.config.local_bin.mkdir(parents=True, exist_ok=True)
            run_with_progress("Installing dotfiles", tools.install_dotfiles, self.config, self.runner)
            run_with_progress("Installing tools", self.phase_tools)
            run_with_progress("Installing language servers", self.phase_language_servers)
            run_with_progress(f"Configuring user {self.config.USERNAME}", self.configure_user)
        self.print_summary()

    # ----------------------------------------------------------------
    # Ubuntu packages
    # ----------------------------------------------------------------
    def phase_packages(self) -> None:
        packages = read_tokens(self.config.input_file(PACKAGES_LIST))
        self.runner.sudo("apt", "update", env=NONINTERACTIVE)
        self.runner.sudo("apt", "upgrade", "--yes", env=NONINTERACTIVE)
        selections = "".join(f"{line}\n" for line in self.config.DEBCONF_SELECTIONS)
        self.runner.sudo("debconf-set-selections", input=selections)
        if packages:
            self.runner.sudo("apt", "install", "--yes", *packages, env=NONINTERACTIVE)
        self.install_docker()
        self.add_ppas()

    def install_docker(self) -> None:
        logger.info("Installing Docker from the Docker APT repository")
        for pkg in self.config.DOCKER_CONFLICTS:
            self.runner.sudo("apt", "remove", "--yes", pkg, env=NONINTERACTIVE)

        keyring = self.config.DOCKER_KEYRING
        self.runner.sudo("install", "-m", "0755", "-d", keyring.parent)
        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
            key = fetch(self.config.DOCKER_GPG_URL, scratch)
            self.runner.sudo("install", "-m", "0644", key, keyring)

        arch = self.runner.read("dpkg", "--print-architecture")
        source = (
            f"deb [arch={arch} signed-by={keyring}] {self.config.DOCKER_REPO_URL} "
            f"{read_os_codename()} stable\n"
        )
        self.runner.sudo("tee", self.config.DOCKER_SOURCES_LIST, input=source, capture_output=True)
        self.runner.sudo("apt-get", "update")
        self.runner.sudo("apt", "install", "--yes", *self.config.DOCKER_PACKAGES, env=NONINTERACTIVE)

    def add_ppas(self) -> None:
        for ppa in self.config.APT_PPAS:
            self.runner.sudo("add-apt-repository", "--yes", ppa)
        if self.config.APT_PPAS:
            self.runner.sudo("apt", "update", env=NONINTERACTIVE)

    # ----------------------------------------------------------------
    # Tools
    # ----------------------------------------------------------------
    def phase_tools(self) -> None:
        for url in self.config.DEB_URLS:
            tools.install_deb(url, self.runner)
        self.runner.run("bat", "cache", "--build")
        tools.install_tarball_tools(self.config, self.installer)
        tools.install_yazi(self.config)
        tools.install_kitty(self.config, self.runner)
        tools.install_atuin(self.config, self.runner)
        tools.install_mise(self.config, self.runner)

    def phase_language_servers(self) -> None:
        records = load_install_list(self.config.input_file(LANGUAGE_SERVERS_LIST))
        logger.debug(f"Loaded {len(records)} install records")
        self.installer.install_all(records)

    # ----------------------------------------------------------------
    # User configuration
    # ----------------------------------------------------------------
    def configure_user(self) -> None:
        user = self.config.USERNAME
        self.runner.sudo("usermod", "--append", "--groups", ",".join(self.config.USER_GROUPS), user)
        self.runner.sudo("chsh", "-s", self.config.LOGIN_SHELL, user)

    def print_summary(self) -> None:
        elapsed = format_elapsed(time.time() - self.start_time)
        logger.info(f"{APP_NAME} completed in {elapsed}")
        console.print(
            summary_panel(
                f"Completed in {elapsed}\n"
                f"Log out and back in for the new groups and login shell to take effect.",
                title="Setup Complete",
            )
        )
