"""Console output formatting utilities for cookbook."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

QUIET = 0     # errors only
NORMAL = 1    # warnings and errors
INFO = 2
DEBUG = 3


class Console:
    """Centralized console output formatting."""

    def __init__(self, verbosity: int = NORMAL, debug: bool = False, tee: Optional[TextIO] = None):
        """
        Initialize console formatter.

        Args:
            verbosity: QUIET, NORMAL, INFO or DEBUG
            debug: If True, show stack traces for errors
            tee: Optional open file that mirrors everything written
        """
        self.verbosity = verbosity
        self.debug = debug
        self.tee = tee

    def _write(self, text: str, err: bool = False) -> None:
        print(text, file=sys.stderr if err else sys.stdout, flush=True)
        if self.tee is not None:
            self.tee.write(text + "\n")
            self.tee.flush()

    def echo(self, message: str) -> None:
        """Print a message regardless of verbosity (info steps, child output)."""
        self._write(message)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        if self.verbosity >= INFO:
            self._write(f"[INFO] {message}")

    def print_debug(self, message: str) -> None:
        """Print debug message (only at the highest verbosity)."""
        if self.verbosity >= DEBUG:
            self._write(f"[DEBUG] {message}", err=True)

    def print_warning(self, message: str) -> None:
        if self.verbosity >= NORMAL:
            self._write(f"[WARNING] {message}", err=True)

    def print_recipe_started(self, name: str, path: str, step_count: int) -> None:
        """Print recipe start information."""
        if self.verbosity >= INFO:
            self._write("\nRECIPE STARTED")
            self._write(f"Recipe: {name}")
            self._write(f"File: {path}")
            self._write(f"Steps: {step_count}")
            self._write("")

    def print_step_start(self, index: int, keyword: str, summary: str, cwd: str) -> None:
        self.print_info(f"step.start = {index} {keyword} {summary}")
        self.print_info(f"step.pwd = {index} {cwd}")

    def print_step_end(self, index: int, elapsed: float) -> None:
        self.print_info(f"step.end = {index} {elapsed:.03f}")

    def print_results(self, results: list) -> None:
        """Print final results summary."""
        if self.verbosity < INFO:
            return
        self._write("\n" + "=" * 40)
        self._write("RESULTS")
        self._write("=" * 40)
        for r in results:
            status_display = "SUCCESS" if r.status == "ok" else r.status.upper()
            self._write(f"  {r.index:3d} {r.keyword:<20} {status_display} ({r.elapsed:.03f}s)")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        self._write(f"\nERROR: {title}", err=True)
        self._write(f"{message}", err=True)
        if details:
            for detail in details:
                self._write(f"  {detail}", err=True)
        if suggestion:
            self._write(f"\n{suggestion}", err=True)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            self._write(f"Error: {exc}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
