"""
One-off recipes for the fixed set of tools installed before the language
servers: Debian packages from GitHub releases, yazi, kitty and its symbol
font, atuin, mise and the dotfiles.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from workstation_setup.archive import unpack_zip
from workstation_setup.commands import CommandRunner
from workstation_setup.config import DOTFILES_LIST, RUNTIMES_LIST, Config, read_tokens
from workstation_setup.dispatch import SCRATCH_PREFIX, Installer, place_executable
from workstation_setup.errors import InstallError
from workstation_setup.fetch import clone_repo, fetch, url_filename
from workstation_setup.records import InstallRecord

logger = logging.getLogger(__name__)


def install_deb(url: str, runner: CommandRunner) -> None:
    logger.info(f"Installing {url_filename(url)} from {url}")
    with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
        deb = fetch(url, scratch)
        runner.sudo("dpkg", "--install", deb)


def install_tarball_tools(config: Config, installer: Installer) -> None:
    for name, url in config.TAR_TOOLS.items():
        installer.install(InstallRecord(name=name, kind="tar", source=url))


# ----------------------------------------------------------------
# yazi
# ----------------------------------------------------------------
def install_yazi(config: Config) -> None:
    logger.info(f"Installing yazi from {config.YAZI_URL}")
    with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
        unpacked = unpack_zip(fetch(config.YAZI_URL, scratch))
        # Release zips keep everything under a folder named after the archive
        root = unpacked / unpacked.name if (unpacked / unpacked.name).is_dir() else unpacked
        for executable in ("ya", "yazi"):
            place_executable(root / executable, executable, config.local_bin)
        try:
            config.zsh_dir.mkdir(parents=True, exist_ok=True)
            for completion in ("_ya", "_yazi"):
                shutil.move(str(root / "completions" / completion), str(config.zsh_dir / completion))
        except OSError as e:
            raise InstallError(f"Could not install yazi completions: {e}") from e


# ----------------------------------------------------------------
# kitty
# ----------------------------------------------------------------
def install_nerd_font_symbols(config: Config, runner: CommandRunner) -> None:
    logger.info("Installing Symbols Nerd Fonts")
    with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
        unpacked = unpack_zip(fetch(config.NERD_FONT_URL, scratch), members=config.NERD_FONT_FILES)
        runner.sudo("mkdir", "-p", config.NERD_FONT_DIR)
        runner.sudo("mv", *[unpacked / font for font in config.NERD_FONT_FILES], config.NERD_FONT_DIR)
    runner.sudo("fc-cache")


def rewrite_desktop_file(path: Path, kitty_app: Path) -> None:
    """Point a kitty desktop entry at the absolute install location."""
    icon = kitty_app / "share" / "icons" / "hicolor" / "256x256" / "apps" / "kitty.png"
    content = path.read_text()
    content = content.replace("Icon=kitty", f"Icon={icon}")
    content = content.replace("Exec=kitty", f"Exec={kitty_app / 'bin' / 'kitty'}")
    path.write_text(content)


def install_kitty(config: Config, runner: CommandRunner) -> None:
    logger.info("Installing kitty")
    with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
        script = fetch(config.KITTY_INSTALLER_URL, scratch)
        runner.run("sh", script, "launch=n")

    home = config.USER_HOME.resolve()
    kitty_app = home / ".local" / "kitty.app"
    applications = home / ".local" / "share" / "applications"
    try:
        config.local_bin.mkdir(parents=True, exist_ok=True)
        for executable in ("kitty", "kitten"):
            link = config.local_bin / executable
            link.unlink(missing_ok=True)
            link.symlink_to(kitty_app / "bin" / executable)

        applications.mkdir(parents=True, exist_ok=True)
        for desktop in ("kitty.desktop", "kitty-open.desktop"):
            dest = applications / desktop
            shutil.copy(kitty_app / "share" / "applications" / desktop, dest)
            rewrite_desktop_file(dest, kitty_app)

        terminals = home / ".config" / "xdg-terminals.list"
        terminals.parent.mkdir(parents=True, exist_ok=True)
        terminals.write_text("kitty.desktop\n")

        terminfo = home / ".terminfo" / "x"
        terminfo.mkdir(parents=True, exist_ok=True)
        shutil.copy(kitty_app / "share" / "terminfo" / "x" / "xterm-kitty", terminfo)
    except OSError as e:
        raise InstallError(f"Could not integrate kitty with the desktop: {e}") from e

    install_nerd_font_symbols(config, runner)


# ----------------------------------------------------------------
# Vendor install scripts
# ----------------------------------------------------------------
def run_install_script(url: str, shell: str, runner: CommandRunner, *args: str) -> None:
    with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
        script = fetch(url, scratch, filename="install.sh")
        runner.run(shell, script, *args)


def install_atuin(config: Config, runner: CommandRunner) -> None:
    logger.info("Installing atuin")
    run_install_script(config.ATUIN_INSTALLER_URL, "bash", runner)


def activate_mise(config: Config) -> None:
    """Put mise and the tools it manages on PATH for the commands that follow."""
    shims = config.USER_HOME / ".local" / "share" / "mise" / "shims"
    entries = os.environ.get("PATH", "").split(os.pathsep)
    for directory in (str(config.local_bin), str(shims)):
        if directory not in entries:
            entries.insert(0, directory)
    os.environ["PATH"] = os.pathsep.join(entries)


def install_mise(config: Config, runner: CommandRunner) -> None:
    logger.info("Installing mise")
    runtimes = read_tokens(config.input_file(RUNTIMES_LIST))
    run_install_script(config.MISE_INSTALLER_URL, "sh", runner)
    activate_mise(config)
    mise = config.local_bin / "mise"
    for runtime in runtimes:
        plugin = runtime.split("@", 1)[0]
        if plugin not in config.MISE_CORE_PLUGINS:
            runner.run(mise, "plugin", "install", plugin)
        runner.run(mise, "use", "--global", runtime)


# ----------------------------------------------------------------
# Dotfiles
# ----------------------------------------------------------------
def install_dotfiles(config: Config, runner: CommandRunner) -> bool:
    """
    Clone the dotfiles repository and link every dotfile with rcup, then
    clone the zsh plugins. Returns False without touching anything when the
    dotfiles directory already exists.
    """
    dotfiles_dir = config.dotfiles_dir
    if dotfiles_dir.exists():
        logger.warning(f"{dotfiles_dir} already installed")
        return False
    dotfiles = read_tokens(config.input_file(DOTFILES_LIST))

    logger.info(f"Installing {config.DOTFILES_REPO} to {dotfiles_dir}")
    clone_repo(config.DOTFILES_REPO, dotfiles_dir, runner)
    for dotfile in dotfiles:
        runner.run("rcup", "-v", dotfile, cwd=dotfiles_dir)

    for plugin in config.ZSH_PLUGINS:
        name = url_filename(plugin)
        if name.endswith(".git"):
            name = name[: -len(".git")]
        clone_repo(plugin, config.zsh_dir / name, runner)
    return True
