"""
The declarative install list.

Each non-blank line of the ``language-servers`` file describes one tool::

    <name> <kind> [<source> [<rename-from>]]

``tar``, ``gzip`` and ``binary`` records need a URL as ``source``; a
``binary`` record may name the downloaded file in ``rename-from`` when it
differs from ``name``. The package-manager kinds install the package
``name``. A ``mise`` record may give a version as ``source`` (``latest``
otherwise).
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from workstation_setup.config import parse_lines, read_text
from workstation_setup.errors import ConfigError


class InstallerKind(Enum):
    TAR = "tar"
    GZIP = "gzip"
    BINARY = "binary"
    NPM = "npm"
    APT = "apt"
    CARGO = "cargo"
    PIP = "pip"
    RACO = "raco"
    MISE = "mise"

    @classmethod
    def lookup(cls, tag: str) -> Optional["InstallerKind"]:
        try:
            return cls(tag)
        except ValueError:
            return None


URL_KINDS = frozenset({InstallerKind.TAR, InstallerKind.GZIP, InstallerKind.BINARY})


@dataclass(frozen=True)
class InstallRecord:
    name: str
    kind: str
    source: Optional[str] = None
    rename_from: Optional[str] = None

    @property
    def installer_kind(self) -> Optional[InstallerKind]:
        return InstallerKind.lookup(self.kind)


def parse_record(line: str) -> InstallRecord:
    fields = line.split()
    if len(fields) < 2:
        raise ConfigError(f"Install record needs a name and a kind: {line!r}")
    name, kind, *extra = fields
    if len(extra) > 2:
        raise ConfigError(f"Too many fields in install record: {line!r}")
    record = InstallRecord(
        name=name,
        kind=kind,
        source=extra[0] if extra else None,
        rename_from=extra[1] if len(extra) > 1 else None,
    )
    if record.installer_kind in URL_KINDS and record.source is None:
        raise ConfigError(f"{kind} record for {name} is missing its URL")
    return record


def parse_install_list(text: str) -> List[InstallRecord]:
    return [parse_record(line) for line in parse_lines(text)]


def load_install_list(path: Path) -> List[InstallRecord]:
    return parse_install_list(read_text(path))
