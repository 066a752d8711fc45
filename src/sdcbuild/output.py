"""
Centralized operator output for sdcbuild.

Every line is prefixed with the time elapsed since program launch in MM:SS.cc
format, so long watch sessions show where each rebuild spent its time.

Example output:
    00:00.04 sdcbuild v0.3.0
    00:00.05 PROFILE=watch MINIFY=off SOURCEMAP=on
    00:00.05 [1/3] Cleaning output...
    00:00.07       Done (0.02s)
    00:01.91 Watch has started
    00:09.12 change - components/card/src/c-card.scss

Usage:
    from sdcbuild.output import log, log_phase, log_detail, log_error

    log("Building theme...")
    log_phase(1, 3, "Cleaning output...")
    log_detail("Removed 4 files")
    log_error("Error during build: ...")

Lines are rendered through a rich Console wrapped around the current output
stream. Errors are red, warnings yellow and success messages green when the
stream is a terminal; plain text otherwise.
"""

import sys
import time
from types import TracebackType
from typing import Optional, TextIO

from rich.console import Console
from rich.text import Text

# Global state for the timer
_start_time: Optional[float] = None
_output_stream: TextIO = sys.stdout
_verbose: bool = True
_console: Optional[Console] = None


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    Call this at program startup to set the reference time for all timestamps.
    If not called explicitly, it will be called automatically on first log.

    Args:
        output_stream: Optional output stream (defaults to sys.stdout)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    if output_stream is not None:
        _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """Enable or disable verbose-only messages."""
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """Seconds elapsed since timer initialization."""
    global _start_time
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """
    Format the current elapsed time as MM:SS.cc.

    Returns:
        Formatted timestamp string
    """
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _get_console() -> Console:
    """Return a console bound to the current output stream.

    The stream may be swapped (tests, redirection), so the console is rebuilt
    whenever it no longer points at it.
    """
    global _console
    if _console is None or _console.file is not _output_stream:
        _console = Console(file=_output_stream, highlight=False, soft_wrap=True)
    return _console


def _print(message: str, style: Optional[str] = None) -> None:
    """
    Internal print function with timestamp.

    Args:
        message: Message to print
        style: Optional rich style applied to the message part
    """
    line = Text(f"{format_timestamp()} ")
    line.append(message, style=style)
    _get_console().print(line)
    _output_stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a pipeline stage message.

    Format: [N/M] message
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """
    Log a detail message (indented).

    Args:
        message: Detail message
        indent: Number of spaces to indent (default 6)
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_file(action: str, filename: str, verbose_only: bool = True) -> None:
    """
    Log a per-file action.

    Format: [action] filename
    """
    if verbose_only and not _verbose:
        return
    _print(f"      [{action}] {filename}")


def log_header(title: str, version: str) -> None:
    """Log the program header."""
    _print(f"{title} v{version}", style="bold")


def log_report(report: str) -> None:
    """Log a multi-line tool report verbatim, one timestamped line each."""
    for line in report.rstrip().splitlines():
        _print(line)


def log_error(message: str) -> None:
    """Log an error message."""
    _print(message, style="red")


def log_warning(message: str) -> None:
    """Log a warning message."""
    _print(f"WARNING: {message}", style="yellow")


def log_success(message: str) -> None:
    """Log a success message."""
    _print(message, style="green")


class TimedLogger:
    """
    Context manager for logging a pipeline stage with elapsed time.

    Usage:
        with TimedLogger("Cleaning output", phase=(1, 3)) as logger:
            removed = ...
            logger.detail(f"Removed {len(removed)} files")
        # Logs "Done (0.02s)" when the block exits without an exception
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        log_detail(message, verbose_only=self.verbose_only)
