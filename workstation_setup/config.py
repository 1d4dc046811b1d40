import getpass
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from workstation_setup.errors import ConfigError

DOTFILES_LIST = "dotfiles"
PACKAGES_LIST = "packages"
RUNTIMES_LIST = "runtimes"
LANGUAGE_SERVERS_LIST = "language-servers"


@dataclass
class Config:
    CONFIG_DIR: Path = field(default_factory=Path.cwd)
    USERNAME: str = field(default_factory=getpass.getuser)
    USER_HOME: Path = field(default_factory=Path.home)
    LOG_FILE: Path = field(
        default_factory=lambda: Path.home() / ".local" / "state" / "workstation-setup" / "setup.log"
    )

    DOTFILES_REPO: str = "git@github.com:jbromley/dotfiles.git"
    ZSH_PLUGINS: List[str] = field(default_factory=lambda: [
        "https://github.com/zsh-users/zsh-autosuggestions",
        "https://github.com/zsh-users/zsh-syntax-highlighting.git",
        "https://github.com/zsh-users/zsh-completions.git",
    ])

    # Packages the installer preseeds answers for, as debconf-set-selections lines
    DEBCONF_SELECTIONS: List[str] = field(default_factory=lambda: [
        "wireshark-common wireshark-common/install-setuid boolean true",
    ])

    DOCKER_CONFLICTS: List[str] = field(default_factory=lambda: [
        "docker.io", "docker-doc", "docker-compose", "docker-compose-v2",
        "podman-docker", "containerd", "runc",
    ])
    DOCKER_GPG_URL: str = "https://download.docker.com/linux/ubuntu/gpg"
    DOCKER_REPO_URL: str = "https://download.docker.com/linux/ubuntu"
    DOCKER_KEYRING: Path = Path("/etc/apt/keyrings/docker.asc")
    DOCKER_SOURCES_LIST: Path = Path("/etc/apt/sources.list.d/docker.list")
    DOCKER_PACKAGES: List[str] = field(default_factory=lambda: [
        "docker-ce", "docker-ce-cli", "containerd.io",
        "docker-buildx-plugin", "docker-compose-plugin",
    ])
    APT_PPAS: List[str] = field(default_factory=lambda: ["ppa:kicad/kicad-9.0-releases"])

    DEB_URLS: List[str] = field(default_factory=lambda: [
        "https://github.com/sharkdp/bat/releases/download/v0.25.0/bat_0.25.0_amd64.deb",
        "https://github.com/ajeetdsouza/zoxide/releases/download/v0.9.8/zoxide_0.9.8-1_amd64.deb",
        "https://github.com/helix-editor/helix/releases/download/25.07.1/helix_25.7.1-1_amd64.deb",
    ])
    TAR_TOOLS: Dict[str, str] = field(default_factory=lambda: {
        "starship": "https://github.com/starship/starship/releases/download/v1.23.0/starship-x86_64-unknown-linux-gnu.tar.gz",
        "lazygit": "https://github.com/jesseduffield/lazygit/releases/download/v0.54.2/lazygit_0.54.2_linux_x86_64.tar.gz",
        "fzf": "https://github.com/junegunn/fzf/releases/download/v0.65.1/fzf-0.65.1-linux_amd64.tar.gz",
    })
    YAZI_URL: str = "https://github.com/sxyazi/yazi/releases/download/v25.5.31/yazi-x86_64-unknown-linux-gnu.zip"
    NERD_FONT_URL: str = "https://github.com/ryanoasis/nerd-fonts/releases/download/v3.4.0/NerdFontsSymbolsOnly.zip"
    NERD_FONT_FILES: List[str] = field(default_factory=lambda: [
        "SymbolsNerdFontMono-Regular.ttf",
        "SymbolsNerdFont-Regular.ttf",
    ])
    NERD_FONT_DIR: Path = Path("/usr/local/share/fonts/symbol-nf")
    KITTY_INSTALLER_URL: str = "https://sw.kovidgoyal.net/kitty/installer.sh"
    ATUIN_INSTALLER_URL: str = "https://setup.atuin.sh"
    MISE_INSTALLER_URL: str = "https://mise.run"
    # mise ships these plugins; anything else in the runtimes list is added first
    MISE_CORE_PLUGINS: List[str] = field(default_factory=lambda: ["erlang", "elixir", "node", "rust"])

    USER_GROUPS: List[str] = field(default_factory=lambda: ["kvm", "tcpdump", "wireshark", "libvirt", "docker"])
    LOGIN_SHELL: str = "/usr/bin/zsh"

    @property
    def local_bin(self) -> Path:
        return self.USER_HOME / ".local" / "bin"

    @property
    def dotfiles_dir(self) -> Path:
        return self.USER_HOME / ".dotfiles"

    @property
    def zsh_dir(self) -> Path:
        return self.USER_HOME / ".zsh"

    def input_file(self, name: str) -> Path:
        return self.CONFIG_DIR / name


def parse_lines(text: str) -> List[str]:
    """Return the stripped lines of ``text`` without blank lines and ``#`` comments."""
    lines = []
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            lines.append(line)
    return lines


def read_text(path: Path) -> str:
    try:
        return path.read_text()
    except FileNotFoundError:
        raise ConfigError(f"Required input file not found: {path}")
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}")


def read_lines(path: Path) -> List[str]:
    return parse_lines(read_text(path))


def read_tokens(path: Path) -> List[str]:
    """Return every whitespace-separated token of an input file."""
    return [token for line in read_lines(path) for token in line.split()]
