#!/usr/bin/env python3
"""
Workstation Setup command line.

Exit codes: 0 on success, 1 on any fatal error (including bad usage), 130
when interrupted, 128 + N when terminated by signal N.
"""

import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

import click

from workstation_setup.config import Config
from workstation_setup.console import print_error, print_warning, set_color, setup_logger
from workstation_setup.errors import SetupError
from workstation_setup.orchestrator import WorkstationSetup

PROG_NAME = "workstation-setup"

logger = logging.getLogger("workstation_setup")


def signal_handler(signum, frame):
    sig = signal.Signals(signum).name
    logger.error(f"Script interrupted by {sig}. Initiating cleanup.")
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    # SIGINT already raises KeyboardInterrupt
    for s in (signal.SIGTERM, signal.SIGHUP):
        signal.signal(s, signal_handler)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, help="Print every command as it runs.")
@click.option("--no-color", is_flag=True, help="Disable colored output.")
@click.option(
    "--config-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Directory holding the dotfiles, packages, runtimes and language-servers lists.",
)
@click.option("--user", "username", default=None, help="Account to configure [default: current user].")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the debug log [default: ~/.local/state/workstation-setup/setup.log].",
)
def cli(verbose: bool, no_color: bool, config_dir: Path, username: Optional[str], log_file: Optional[Path]) -> int:
    """
    Bootstrap an Ubuntu workstation: packages, dotfiles, tools, language
    servers and user settings. Needs sudo; the password is asked for once.
    """
    set_color(not no_color)
    config = Config(CONFIG_DIR=config_dir.resolve())
    if username:
        config.USERNAME = username
    if log_file:
        config.LOG_FILE = log_file
    setup_logger(config.LOG_FILE, verbose=verbose)
    WorkstationSetup(config).run()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    install_signal_handlers()
    try:
        return cli.main(args=argv, prog_name=PROG_NAME, standalone_mode=False)
    except click.exceptions.Abort:
        print_warning("Setup interrupted by user.")
        return 130
    except click.ClickException as e:
        print_error(e.format_message())
        print_error(f"Try '{PROG_NAME} --help' for help.")
        return 1
    except SetupError as e:
        logger.debug("Fatal error", exc_info=True)
        print_error(str(e))
        return 1
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print_error(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
