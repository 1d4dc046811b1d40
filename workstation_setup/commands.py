"""
Subprocess execution and sudo handling.

Every external tool is started through ``CommandRunner`` so that commands
are traced in the log and failures surface as ``InstallError``. Work outside
the user's home directory goes through ``CommandRunner.sudo``, which never
prompts (``sudo -n``): the one interactive prompt happens in
``acquire_sudo`` before any step runs, and ``SudoKeepAlive`` keeps that grant
fresh for the rest of the run.
"""

import logging
import shlex
import subprocess
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from workstation_setup.errors import InstallError, PrivilegeError

logger = logging.getLogger(__name__)

KEEPALIVE_INTERVAL = 60.0

Arg = Union[str, Path]


class CommandRunner:
    def run(
        self,
        *args: Arg,
        cwd: Optional[Arg] = None,
        env: Optional[Dict[str, str]] = None,
        input: Optional[str] = None,
        capture_output: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd = [str(a) for a in args]
        logger.debug(f"Running command: {shlex.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                cwd=cwd,
                env=env,
                input=input,
                capture_output=capture_output,
                text=True,
                check=check,
            )
        except subprocess.CalledProcessError as e:
            raise InstallError(f"Command failed with exit code {e.returncode}: {shlex.join(cmd)}") from e
        except FileNotFoundError as e:
            raise InstallError(f"Command not found: {cmd[0]}") from e

    def read(self, *args: Arg, cwd: Optional[Arg] = None) -> str:
        """Run a command and return its stripped stdout."""
        return self.run(*args, cwd=cwd, capture_output=True).stdout.strip()

    def sudo(self, *args: Arg, env: Optional[Dict[str, str]] = None, **kwargs) -> subprocess.CompletedProcess:
        """
        Run a command as root. ``env`` entries are passed as ``NAME=value``
        arguments to sudo, since sudo resets the caller's environment.
        """
        assignments = [f"{k}={v}" for k, v in (env or {}).items()]
        return self.run("sudo", "-n", *assignments, *args, **kwargs)


def acquire_sudo(runner: CommandRunner) -> None:
    """Drop any cached credentials and ask for the password once."""
    logger.debug("Requesting sudo authorization")
    try:
        runner.run("sudo", "-k")
        runner.run("sudo", "-v")
    except InstallError as e:
        raise PrivilegeError("sudo authentication required.") from e


class SudoKeepAlive:
    """Refresh the sudo timestamp in the background until stopped."""

    def __init__(self, runner: CommandRunner, interval: float = KEEPALIVE_INTERVAL):
        self.runner = runner
        self.interval = interval
        self.thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def _refresh(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.runner.run("sudo", "-n", "true", check=False)
            except InstallError as e:
                logger.warning(f"Could not refresh sudo timestamp: {e}")

    def start(self) -> None:
        if self.thread is not None:
            return
        self._stop_event.clear()
        self.thread = threading.Thread(target=self._refresh, name="sudo-keepalive", daemon=True)
        self.thread.start()

    def stop(self) -> None:
        if self.thread is None:
            return
        self._stop_event.set()
        self.thread.join()
        self.thread = None
        try:
            self.runner.run("sudo", "-k", check=False)
        except InstallError as e:
            logger.debug(f"Could not invalidate sudo timestamp: {e}")

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def __enter__(self) -> "SudoKeepAlive":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()
