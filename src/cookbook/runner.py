# runner.py
from __future__ import annotations

import contextlib
import os
import stat
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from . import shellwords
from .errors import ChildProcessFailure, FilesystemPredicateFailure, StepFailure, UnterminatedQuote
from .exports import parse_exports
from .model import Directive, Recipe, Step
from .process import CommandResult, run_command
from .ui.console import Console
from .variables import resolve_variables, substitute

STATUS_OK = "ok"
STATUS_WARNING = "warning"


# ----------------------------------------------------------------------
# Execution state
# ----------------------------------------------------------------------

@dataclass
class ExecutionContext:
    """
    Everything a step may read or change, passed explicitly.

    The runner never touches the interpreter's own working directory or
    os.environ: `cd` and `export` update this object and children are
    spawned from it.
    """
    cwd: Path
    env: Dict[str, str]
    variables: Dict[str, str]
    script_dir: Path
    console: Console
    pid: int = field(default_factory=os.getpid)

    @classmethod
    def create(
        cls,
        variables: Dict[str, str],
        *,
        script_dir: str | Path,
        console: Console,
        cwd: str | Path | None = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ExecutionContext:
        return cls(
            cwd=Path(cwd or os.getcwd()).resolve(),
            env=dict(os.environ if env is None else env),
            variables=dict(variables),
            script_dir=Path(script_dir).expanduser(),
            console=console,
        )


@dataclass(frozen=True)
class StepResult:
    index: int
    directive: Directive
    data: str
    status: str
    elapsed: float

    @property
    def keyword(self) -> str:
        return self.directive.value


# ----------------------------------------------------------------------
# Anonymous scripts
# ----------------------------------------------------------------------

@contextlib.contextmanager
def anonymous_script(body: str, script_dir: Path, pid: int, console: Console) -> Iterator[Path]:
    """
    Write a script body to a fresh executable file and remove it afterwards.

    The file is deleted on every exit path, including exceptions.
    """
    script_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix=f"{pid}-", suffix=".sh", dir=str(script_dir))
    path = Path(name)
    try:
        console.print_info(f"creating anonymous script file: {path}")
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(body)
            if not body.endswith("\n"):
                fp.write("\n")
        path.chmod(stat.S_IRWXU)
        yield path
    finally:
        console.print_info(f"deleting anonymous script file: {path}")
        with contextlib.suppress(FileNotFoundError):
            path.unlink()


# ----------------------------------------------------------------------
# Runner
# ----------------------------------------------------------------------

class RecipeRunner:
    """Runs the steps of a recipe in order, stopping at the first failure."""

    def __init__(self, context: ExecutionContext):
        self.context = context

    @property
    def console(self) -> Console:
        return self.context.console

    def run(self, steps: Sequence[Step]) -> List[StepResult]:
        results: List[StepResult] = []
        for index, step in enumerate(steps, start=1):
            results.append(self.run_step(index, step))
        return results

    def run_step(self, index: int, step: Step) -> StepResult:
        ctx = self.context

        # variables may have changed since the previous step (###export)
        data = substitute(step.data, ctx.variables)
        summary = "multi-line" if "\n" in data else data
        self.console.print_step_start(index, step.keyword, summary, str(ctx.cwd))

        start = time.monotonic()
        status = _HANDLERS[step.directive](self, index, data)
        elapsed = time.monotonic() - start

        self.console.print_step_end(index, elapsed)
        return StepResult(index=index, directive=step.directive, data=data, status=status, elapsed=elapsed)

    # ---- directives ----

    def _cd(self, index: int, data: str) -> str:
        target = self._path(data)
        self.console.print_info(f"cd to {target}")
        if not target.is_dir() or not os.access(target, os.X_OK):
            raise StepFailure(index, Directive.CD.value, f"failed to change directory to {target}")
        self.context.cwd = target.resolve()
        self.console.print_info(f"pwd = {self.context.cwd}")
        return STATUS_OK

    def _export(self, index: int, data: str) -> str:
        key, _, val = data.partition("=")
        key = key.strip()
        if not key or "\0" in key or "\0" in val:
            raise StepFailure(
                index,
                Directive.EXPORT.value,
                f"failed to set the environment variable '{key}'",
            )
        self.console.print_info(f"export {key}={val}")
        self.context.env[key] = val
        return STATUS_OK

    def _exec(self, index: int, data: str) -> str:
        self._spawn(index, Directive.EXEC, self._argv(index, Directive.EXEC, data), data)
        return STATUS_OK

    def _exec_no_exit(self, index: int, data: str) -> str:
        argv = self._argv(index, Directive.EXEC_NO_EXIT, data)
        try:
            self._spawn(index, Directive.EXEC_NO_EXIT, argv, data)
        except ChildProcessFailure as e:
            self.console.print_warning(str(e))
            return STATUS_WARNING
        return STATUS_OK

    def _info(self, index: int, data: str) -> str:
        # not subject to --quiet
        self.console.echo(data)
        return STATUS_OK

    def _must_exist_dir(self, index: int, data: str) -> str:
        if not self._path(data).is_dir():
            raise FilesystemPredicateFailure(index, Directive.MUST_EXIST_DIR.value, f"directory does not exist: {data}")
        return STATUS_OK

    def _must_exist_file(self, index: int, data: str) -> str:
        if not self._path(data).is_file():
            raise FilesystemPredicateFailure(index, Directive.MUST_EXIST_FILE.value, f"file does not exist: {data}")
        return STATUS_OK

    def _must_not_exist_dir(self, index: int, data: str) -> str:
        if self._path(data).is_dir():
            raise FilesystemPredicateFailure(index, Directive.MUST_NOT_EXIST_DIR.value, f"directory exists: {data}")
        return STATUS_OK

    def _must_not_exist_file(self, index: int, data: str) -> str:
        if self._path(data).is_file():
            raise FilesystemPredicateFailure(index, Directive.MUST_NOT_EXIST_FILE.value, f"file exists: {data}")
        return STATUS_OK

    def _script(self, index: int, data: str) -> str:
        ctx = self.context
        with anonymous_script(data, ctx.script_dir, ctx.pid, self.console) as path:
            result = self._spawn(index, Directive.SCRIPT, [str(path)], str(path))

        exports = parse_exports(result.output)
        for key, val in exports.items():
            self.console.print_info(f"variable {key} = {val} (exported by step {index})")
            ctx.variables[key] = val
        return STATUS_OK

    # ---- helpers ----

    def _path(self, data: str) -> Path:
        p = Path(os.path.expanduser(data))
        if not p.is_absolute():
            p = self.context.cwd / p
        return p

    def _argv(self, index: int, directive: Directive, data: str) -> List[str]:
        try:
            argv = shellwords.split(data)
        except UnterminatedQuote as e:
            raise StepFailure(index, directive.value, str(e)) from e
        if not argv:
            raise StepFailure(index, directive.value, "empty command")
        return argv

    def _spawn(self, index: int, directive: Directive, argv: List[str], display: str) -> CommandResult:
        ctx = self.context
        self.console.print_info(f"cmd.cmd = {shellwords.join(argv)}")
        self.console.print_info(f"cmd.pwd = {ctx.cwd}")

        result = run_command(argv, cwd=ctx.cwd, env=ctx.env, console=self.console)

        self.console.print_info(f"cmd.elapsed = {result.elapsed:.03f}")
        if result.error is not None:
            raise ChildProcessFailure(index, directive.value, result.error, cmd=display, exit_code=result.returncode)
        if not result.ok:
            raise ChildProcessFailure(index, directive.value, "command failed", cmd=display, exit_code=result.returncode)
        self.console.print_info("cmd.status = passed")
        return result


_HANDLERS: Dict[Directive, Callable[[RecipeRunner, int, str], str]] = {
    Directive.CD: RecipeRunner._cd,
    Directive.EXPORT: RecipeRunner._export,
    Directive.EXEC: RecipeRunner._exec,
    Directive.EXEC_NO_EXIT: RecipeRunner._exec_no_exit,
    Directive.INFO: RecipeRunner._info,
    Directive.MUST_EXIST_DIR: RecipeRunner._must_exist_dir,
    Directive.MUST_EXIST_FILE: RecipeRunner._must_exist_file,
    Directive.MUST_NOT_EXIST_DIR: RecipeRunner._must_not_exist_dir,
    Directive.MUST_NOT_EXIST_FILE: RecipeRunner._must_not_exist_file,
    Directive.SCRIPT: RecipeRunner._script,
}

if set(_HANDLERS) != set(Directive):
    raise RuntimeError(f"missing step handlers: {set(Directive) - set(_HANDLERS)}")


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_recipe(
    recipe: Recipe,
    overrides: Sequence[str],
    *,
    script_dir: str | Path,
    console: Console,
    cwd: str | Path | None = None,
    env: Optional[Dict[str, str]] = None,
) -> List[StepResult]:
    """Resolve the recipe variables against the overrides and run every step."""
    variables = resolve_variables(recipe.variables, overrides)
    for key in sorted(variables):
        console.print_debug(f"variable {key} = {variables[key]}")

    ctx = ExecutionContext.create(variables, script_dir=script_dir, console=console, cwd=cwd, env=env)
    console.print_recipe_started(recipe.name, recipe.path, len(recipe.steps))
    return RecipeRunner(ctx).run(recipe.steps)
