"""
Terminal output and logging.

Everything the user sees goes through one themed rich console bound to
stderr, so diagnostics never mix with the output of the tools being run.
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

import pyfiglet
from rich.align import Align
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

from workstation_setup import APP_NAME, VERSION

LOGGER_NAME = "workstation_setup"


# ----------------------------------------------------------------
# Nord-Themed Colors and Theme Setup
# ----------------------------------------------------------------
class NordColors:
    POLAR_NIGHT_3: str = "#434C5E"
    SNOW_STORM_1: str = "#D8DEE9"
    SNOW_STORM_2: str = "#E5E9F0"
    FROST_1: str = "#8FBCBB"
    FROST_2: str = "#88C0D0"
    FROST_3: str = "#81A1C1"
    FROST_4: str = "#5E81AC"
    RED: str = "#BF616A"
    YELLOW: str = "#EBCB8B"
    GREEN: str = "#A3BE8C"


nord_theme = Theme(
    {
        "banner": f"bold {NordColors.FROST_2}",
        "header": f"bold {NordColors.FROST_2}",
        "info": NordColors.GREEN,
        "warning": NordColors.YELLOW,
        "error": NordColors.RED,
        "debug": NordColors.POLAR_NIGHT_3,
        "success": NordColors.GREEN,
    }
)

console = Console(theme=nord_theme, stderr=True)


def set_color(enabled: bool) -> None:
    """Turn colored output on or off for the shared console."""
    console.no_color = not enabled


# ----------------------------------------------------------------
# UI Helper: Pyfiglet Banner
# ----------------------------------------------------------------
def create_header(title: str) -> Panel:
    """
    Render ``title`` as figlet art inside a panel. The art is assembled into
    a Text object line by line so no stray markup ends up in the output.
    """
    fonts = ["slant", "small", "mini"]
    ascii_art = ""
    for font in fonts:
        try:
            ascii_art = pyfiglet.Figlet(font=font, width=80).renderText(title)
        except pyfiglet.FontNotFound:
            continue
        if ascii_art.strip():
            break
    ascii_lines = [line for line in ascii_art.splitlines() if line.strip()]
    colors = [
        NordColors.FROST_1,
        NordColors.FROST_2,
        NordColors.FROST_3,
        NordColors.FROST_4,
    ]
    combined_text = Text()
    for i, line in enumerate(ascii_lines):
        combined_text.append(line, style=f"bold {colors[i % len(colors)]}")
        if i < len(ascii_lines) - 1:
            combined_text.append("\n")
    return Panel(
        Align.center(combined_text),
        border_style=NordColors.FROST_1,
        padding=(1, 2),
        title=Text(f"{APP_NAME} v{VERSION}", style=f"bold {NordColors.SNOW_STORM_2}"),
        title_align="right",
    )


# ----------------------------------------------------------------
# Simple Message Printing Helpers
# ----------------------------------------------------------------
def print_message(text: str, style: str = NordColors.FROST_2, prefix: str = "•") -> None:
    console.print(f"[{style}]{prefix} {text}[/{style}]", highlight=False)


def print_success(message: str) -> None:
    print_message(message, NordColors.GREEN, "✓")


def print_warning(message: str) -> None:
    print_message(message, NordColors.YELLOW, "⚠")


def print_error(message: str) -> None:
    print_message(message, NordColors.RED, "✗")


def print_step(message: str) -> None:
    print_message(message, NordColors.FROST_2, "→")


# ----------------------------------------------------------------
# Logger Setup
# ----------------------------------------------------------------
def setup_logger(log_file: Union[str, Path], verbose: bool = False) -> logging.Logger:
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    console_handler = RichHandler(console=console, rich_tracebacks=True, show_path=verbose)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.addHandler(console_handler)
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    try:
        os.chmod(str(log_file), 0o600)
    except OSError as e:
        logger.warning(f"Could not set permissions on log file {log_file}: {e}")
    return logger


# ----------------------------------------------------------------
# Progress Utility: Run a Step and Report its Timing
# ----------------------------------------------------------------
def run_with_progress(description: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Run ``func`` as one named step. A plain start/finish report is used
    instead of a live spinner because downloads inside the step draw their
    own progress bar, and rich allows only one live display at a time.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.debug(f"Starting: {description}")
    print_step(description)
    start = time.time()
    try:
        result = func(*args, **kwargs)
    except Exception as e:
        elapsed = time.time() - start
        logger.debug(f"{description} failed in {elapsed:.2f}s: {e}")
        print_error(f"{description} failed after {elapsed:.2f}s")
        raise
    elapsed = time.time() - start
    logger.debug(f"{description} completed in {elapsed:.2f}s")
    print_success(f"{description} completed in {elapsed:.2f}s")
    return result


def format_elapsed(seconds: float) -> str:
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{int(hours)}h {int(minutes)}m {int(secs)}s"


def summary_panel(message: str, title: Optional[str] = None) -> Panel:
    return Panel(
        Text(message, style=NordColors.SNOW_STORM_1),
        border_style=NordColors.FROST_3,
        padding=(1, 2),
        title=f"[bold {NordColors.FROST_2}]{title}[/]" if title else None,
    )
