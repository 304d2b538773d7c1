# process.py
from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .ui.console import Console

# exit code reported when the child could not be started at all
NOT_STARTED = 127


@dataclass
class CommandResult:
    argv: List[str]
    returncode: int
    elapsed: float
    output: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    argv: Sequence[str],
    *,
    cwd: str | Path,
    env: Dict[str, str],
    console: Console,
    silent: bool = False,
) -> CommandResult:
    """
    Run a child process and wait for it.

    stdout and stderr are merged and streamed line by line through the
    console as they arrive (unless `silent`); the lines are also kept on
    the result. There is no timeout.
    """
    argv = list(argv)
    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            argv,
            cwd=str(cwd),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            bufsize=1,
        )
    except OSError as e:
        # missing executable, not executable, bad interpreter...
        return CommandResult(
            argv=argv,
            returncode=NOT_STARTED,
            elapsed=time.monotonic() - start,
            error=f"{e.strerror or e}: {argv[0] if argv else ''}",
        )

    output: List[str] = []
    with proc.stdout:
        for line in proc.stdout:
            line = line.rstrip("\n")
            output.append(line)
            if not silent:
                console.echo(line)
    returncode = proc.wait()

    return CommandResult(
        argv=argv,
        returncode=returncode,
        elapsed=time.monotonic() - start,
        output=output,
    )
