# cli.py
from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from cookbook import shellwords
from cookbook.config import (
    DEFAULT_RECIPE_DIR,
    DEFAULT_SCRIPT_DIR,
    PROG,
    RECIPES_ENVVAR,
    SCRIPTS_ENVVAR,
    VERSION,
)
from cookbook.context import HostContext
from cookbook.errors import CookbookError, MissingRequiredVariables, UnknownVariableFlag
from cookbook.loader import read_recipe_lines
from cookbook.parser import load_all_recipes, load_recipe, resolve_recipe_path
from cookbook.process import run_command
from cookbook.runner import run_recipe
from cookbook.ui.console import DEBUG, NORMAL, QUIET, Console, get_console, set_console


def _fail(ctx: click.Context, title: str, exc: Exception, suggestion: str | None = None) -> None:
    """Report a fatal error and exit with status 1."""
    console = get_console()
    if isinstance(exc, CookbookError):
        console.print_error(title, str(exc), suggestion=suggestion)
        if ctx.obj.get("debug", False):
            import traceback
            traceback.print_exc()
    else:
        console.print_exception(exc)
    sys.exit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-r",
    "--recipes",
    "recipe_dir",
    envvar=RECIPES_ENVVAR,
    default=DEFAULT_RECIPE_DIR,
    show_default=True,
    help="Directory that contains the recipes",
)
@click.option(
    "--script-dir",
    envvar=SCRIPTS_ENVVAR,
    default=DEFAULT_SCRIPT_DIR,
    show_default=True,
    help="Scratch directory for anonymous scripts",
)
@click.option("-q", "--quiet", is_flag=True, default=False, help="Only report errors")
@click.option("-v", "--verbose", count=True, help="More output (-v info, -vv debug)")
@click.option("-t", "--tee", is_flag=True, default=False, help="Mirror all output to a log file")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.version_option(VERSION, prog_name=PROG)
@click.pass_context
def cli(ctx, recipe_dir, script_dir, quiet, verbose, tee, debug):
    """cookbook - run recipes of build and operations steps."""
    verbosity = QUIET if quiet else min(NORMAL + verbose, DEBUG)

    host = HostContext.collect(recipe_dir=recipe_dir, script_dir=script_dir)
    tee_fp = None
    if tee:
        host.tee = f"{PROG}-{host.timestamp}-{host.user}.log"
        tee_fp = ctx.with_resource(open(host.tee, "w", encoding="utf-8"))

    console = Console(verbosity=verbosity, debug=debug, tee=tee_fp)
    set_console(console)
    host.print_context(console)

    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["recipe_dir"] = recipe_dir
    ctx.obj["script_dir"] = script_dir
    ctx.obj["host"] = host


def _child_env(host: HostContext) -> dict[str, str]:
    console = get_console()
    env = dict(os.environ)
    for key, val in host.builtin_env().items():
        console.print_info(f"built-in env var {key}={val}")
        env[key] = val
    return env


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument("recipe")
@click.argument("recipe_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, recipe, recipe_args):
    """Run RECIPE, setting its variables with --<name> <value>."""
    console = get_console()

    try:
        r = load_recipe(recipe, ctx.obj["recipe_dir"])
    except CookbookError as e:
        _fail(ctx, "Failed to load recipe", e)

    try:
        results = run_recipe(
            r,
            list(recipe_args),
            script_dir=ctx.obj["script_dir"],
            console=console,
            env=_child_env(ctx.obj["host"]),
        )
        console.print_results(results)
    except (UnknownVariableFlag, MissingRequiredVariables) as e:
        _fail(ctx, "Invalid recipe options", e, suggestion=f"See the recipe variables:\n  {PROG} show {recipe}")
    except CookbookError as e:
        _fail(ctx, f"Recipe {r.name} failed", e)
    except KeyboardInterrupt:
        console.echo("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, "Internal error", e)


@cli.command(name="list")
@click.pass_context
def list_recipes(ctx):
    """List all recipes with their brief descriptions."""
    console = get_console()
    try:
        recipes = load_all_recipes(ctx.obj["recipe_dir"])
    except CookbookError as e:
        _fail(ctx, "Failed to list recipes", e)

    # align the brief descriptions
    width = max((len(r.name) for r in recipes), default=0)
    for r in recipes:
        console.echo(f"{r.name:<{width}} - {r.brief}")


@cli.command()
@click.argument("recipe")
@click.pass_context
def show(ctx, recipe):
    """Show the full description and the variables of RECIPE."""
    console = get_console()
    try:
        r = load_recipe(recipe, ctx.obj["recipe_dir"])
    except CookbookError as e:
        _fail(ctx, "Failed to load recipe", e)

    console.echo(f"Help for {r.name} - {r.path}")
    console.echo(r.full)
    if r.variables:
        console.echo("")
        console.echo("Variables:")
        width = max(len(k) for k in r.variables) + 2
        for key in sorted(r.variables):
            default = r.variables[key]
            shown = "(required)" if key in r.required else f"default: {default}"
            console.echo(f"  --{key:<{width}} {shown}")


@cli.command()
@click.argument("recipe")
@click.pass_context
def flatten(ctx, recipe):
    """Print RECIPE with all includes expanded."""
    console = get_console()
    try:
        path = resolve_recipe_path(recipe, ctx.obj["recipe_dir"])
        lines = read_recipe_lines(path)
    except CookbookError as e:
        _fail(ctx, "Failed to load recipe", e)

    current = None
    for record in lines:
        if record.path != current:
            current = record.path
            console.echo(f"# {current}")
        console.echo(record.text)


@cli.command(name="exec", context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("--silent", is_flag=True, default=False, help="Do not echo the command output")
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def exec_command(ctx, silent, args):
    """Run a single command the way recipe steps run it.

    Example:
        cb -v exec /bin/bash -c 'echo -e "this is a \\ntest"'
    """
    console = get_console()
    console.print_info(f"cmd    = {shellwords.join(args)}")
    result = run_command(
        args,
        cwd=Path.cwd(),
        env=_child_env(ctx.obj["host"]),
        console=console,
        silent=silent,
    )
    console.print_info(f"time   = {result.elapsed:.03f}")
    console.print_info(f"size   = {sum(len(line) + 1 for line in result.output)}")
    if result.ok:
        console.print_info("status = passed")
        return
    console.print_info(f"status = failed - {result.error or f'exit status {result.returncode}'}")
    sys.exit(result.returncode)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
