class SetupError(Exception):
    """Base class for every fatal bootstrap failure."""


class FetchError(SetupError):
    """A download or clone failed."""


class UnpackError(SetupError):
    """An archive was malformed, lacked the wanted member, or could not be written."""


class InstallError(SetupError):
    """A package manager or file operation did not complete."""


class ConfigError(SetupError):
    """Bad command-line usage or a missing/malformed input file."""


class PrivilegeError(SetupError):
    """sudo did not grant elevated privileges."""
